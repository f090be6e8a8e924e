import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students import service
from app.api.v1.students.schemas import StudentCreate, StudentUpdate
from app.core.exceptions import ConflictError, ImmutableRecordError, ValidationError


def _create(matric_no: str = "csc/2021/001", **kwargs) -> StudentCreate:
    return StudentCreate(full_name="Ada Obi", email="Ada@Uni.edu.ng", matric_no=matric_no, **kwargs)


@pytest.mark.asyncio
async def test_create_student_normalises_matric_and_email(db_session: AsyncSession) -> None:
    student = await service.create_student(db_session, _create())
    assert student.matric_no == "CSC/2021/001"
    assert student.email == "ada@uni.edu.ng"
    assert student.school_supervisor_id is None

    with pytest.raises(ConflictError):
        await service.create_student(db_session, _create(matric_no="CSC/2021/001"))


@pytest.mark.asyncio
async def test_create_with_auto_assign(db_session: AsyncSession, current_session, make_supervisor, sink) -> None:
    sup = await make_supervisor(name="Dr. Musa")
    student = await service.create_student(db_session, _create(auto_assign=True), notifier=sink)

    assert student.school_supervisor_id == sup.id
    assert student.school_supervisor_name == "Dr. Musa"
    assert len(sink.events) == 2


@pytest.mark.asyncio
async def test_auto_assign_without_supervisor_keeps_student(db_session: AsyncSession, current_session) -> None:
    student = await service.create_student(db_session, _create(auto_assign=True))
    assert student.school_supervisor_id is None
    assert await service.get_student(db_session, student.id) is not None


@pytest.mark.asyncio
async def test_finalized_matric_is_immutable(db_session: AsyncSession) -> None:
    student = await service.create_student(db_session, _create(matric_finalized=True))

    with pytest.raises(ImmutableRecordError):
        await service.update_student(db_session, student.id, StudentUpdate(matric_no="CSC/2021/999"))

    updated = await service.update_student(db_session, student.id, StudentUpdate(department="Computer Science"))
    assert updated.department == "Computer Science"
    assert updated.matric_no == "CSC/2021/001"


@pytest.mark.asyncio
async def test_unfinalized_matric_can_change(db_session: AsyncSession) -> None:
    student = await service.create_student(db_session, _create())
    updated = await service.update_student(db_session, student.id, StudentUpdate(matric_no="csc/2021/002"))
    assert updated.matric_no == "CSC/2021/002"


@pytest.mark.asyncio
async def test_finalized_matric_cannot_be_reopened(db_session: AsyncSession) -> None:
    student = await service.create_student(db_session, _create(matric_finalized=True))

    with pytest.raises(ImmutableRecordError):
        await service.update_student(db_session, student.id, StudentUpdate(matric_finalized=False))
    with pytest.raises(ImmutableRecordError):
        await service.update_student(
            db_session, student.id, StudentUpdate(matric_finalized=False, matric_no="CSC/2021/999")
        )

    stored = await service.get_student(db_session, student.id)
    assert stored.matric_finalized is True
    assert stored.matric_no == "CSC/2021/001"


@pytest.mark.asyncio
async def test_matric_can_be_finalized_by_update(db_session: AsyncSession) -> None:
    student = await service.create_student(db_session, _create())
    updated = await service.update_student(db_session, student.id, StudentUpdate(matric_finalized=True))
    assert updated.matric_finalized is True


@pytest.mark.asyncio
async def test_required_fields_cannot_be_nulled(db_session: AsyncSession) -> None:
    student = await service.create_student(db_session, _create())

    with pytest.raises(ValidationError, match="full_name"):
        await service.update_student(db_session, student.id, StudentUpdate(full_name=None))

    cleared = await service.update_student(db_session, student.id, StudentUpdate(department=None))
    assert cleared.department is None
    assert cleared.full_name == "Ada Obi"


@pytest.mark.asyncio
async def test_lock_and_unlock(db_session: AsyncSession) -> None:
    student = await service.create_student(db_session, _create())
    locked = await service.set_student_lock(db_session, student.id, True)
    assert locked.locked is True
    assert locked.locked_at is not None

    unlocked = await service.set_student_lock(db_session, student.id, False)
    assert unlocked.locked is False
    assert unlocked.locked_at is None


@pytest.mark.asyncio
async def test_student_endpoints(client, admin_headers, headers_for) -> None:
    user_id = uuid.uuid4()
    response = await client.post(
        "/api/v1/students",
        json={"full_name": "Ada Obi", "email": "ada@uni.edu.ng", "matric_no": "CSC/2021/001", "user_id": str(user_id)},
        headers=admin_headers,
    )
    assert response.status_code == 201

    response = await client.get("/api/v1/students/me", headers=headers_for(user_id, "STUDENT"))
    assert response.status_code == 200
    assert response.json()["matric_no"] == "CSC/2021/001"

    response = await client.get("/api/v1/students", headers=headers_for(user_id, "STUDENT"))
    assert response.status_code == 403
