import uuid
from datetime import date

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.academic_sessions.service import set_current_session
from app.api.v1.assignments.service import assign_student_automatically, reassign_manually
from app.api.v1.weeks import service
from app.api.v1.weeks.schemas import WeekAdminUpdate, WeekSubmit
from app.core.enums import EventType, SupervisorType, WeekStatus
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ImmutableRecordError,
    NotFoundError,
    StudentLockedError,
    ValidationError,
)
from app.core.models import AcademicSession, Week

FULL_WEEK = {
    "monday_activity": "Set up development environment",
    "tuesday_activity": "Reviewed network topology",
    "wednesday_activity": "Configured VLANs",
    "thursday_activity": "Wrote incident report",
    "friday_activity": "Shadowed senior engineer",
    "saturday_activity": "Documentation",
}


def _submit(week_number: int, **overrides) -> WeekSubmit:
    return WeekSubmit(week_number=week_number, **{**FULL_WEEK, **overrides})


@pytest.fixture()
async def assigned(db_session: AsyncSession, current_session, make_supervisor, make_student):
    sup = await make_supervisor(name="Dr. Bello")
    student = await make_student(placement_start_date=date(2025, 1, 6))
    await assign_student_automatically(db_session, student.id)
    return student, sup


@pytest.mark.asyncio
@pytest.mark.parametrize("week_number", [0, -1, 25, 100])
async def test_week_number_out_of_range(db_session: AsyncSession, make_student, week_number: int) -> None:
    student = await make_student()
    with pytest.raises(ValidationError):
        await service.submit_week(db_session, student.id, _submit(week_number))


@pytest.mark.asyncio
async def test_submit_unknown_student(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await service.submit_week(db_session, uuid.uuid4(), _submit(1))


@pytest.mark.asyncio
async def test_submit_computes_week_dates(db_session: AsyncSession, make_student) -> None:
    student = await make_student(placement_start_date=date(2025, 1, 6))

    week = await service.submit_week(db_session, student.id, _submit(3))

    assert week.status == WeekStatus.SUBMITTED.value
    assert week.start_date == date(2025, 1, 20)
    assert week.end_date == date(2025, 1, 26)
    assert week.submitted_at is not None


@pytest.mark.asyncio
async def test_submit_without_placement_start_leaves_dates_unset(db_session: AsyncSession, make_student) -> None:
    student = await make_student()
    week = await service.submit_week(db_session, student.id, _submit(2))
    assert week.start_date is None
    assert week.end_date is None


@pytest.mark.asyncio
async def test_editing_submitted_week_keeps_single_row(db_session: AsyncSession, make_student) -> None:
    student = await make_student()
    first = await service.submit_week(db_session, student.id, _submit(1))
    second = await service.submit_week(db_session, student.id, _submit(1, monday_activity="Updated"))

    assert first.id == second.id
    assert second.status == WeekStatus.SUBMITTED.value
    assert second.monday_activity == "Updated"
    assert len(await service.list_student_weeks(db_session, student.id)) == 1


@pytest.mark.asyncio
async def test_approved_week_is_immutable(db_session: AsyncSession, assigned) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(3))
    await service.review_week(db_session, week.id, sup.id, "approve")

    with pytest.raises(ImmutableRecordError):
        await service.submit_week(db_session, student.id, _submit(3, monday_activity="New text"))

    stored = await service.get_week(db_session, week.id)
    assert stored.monday_activity == FULL_WEEK["monday_activity"]


@pytest.mark.asyncio
async def test_resubmission_after_rejection_clears_review(db_session: AsyncSession, assigned) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(2))

    rejected = await service.review_week(db_session, week.id, sup.id, "reject", comment="Too brief")
    assert rejected.status == WeekStatus.REJECTED.value
    assert rejected.rejection_reason == "Too brief"
    assert rejected.reviewed_by == sup.id

    resubmitted = await service.submit_week(db_session, student.id, _submit(2, friday_activity="Much more detail"))
    assert resubmitted.status == WeekStatus.SUBMITTED.value
    assert resubmitted.rejection_reason is None
    assert resubmitted.reviewed_by is None
    assert resubmitted.reviewed_at is None
    assert resubmitted.grade is None


@pytest.mark.asyncio
async def test_approve_is_idempotent_and_reject_after_approve_refused(db_session: AsyncSession, assigned) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(4))

    approved = await service.review_week(db_session, week.id, sup.id, "approve", grade=70)
    again = await service.review_week(db_session, week.id, sup.id, "approve", grade=10)
    assert again.grade == 70
    assert again.approved_at == approved.approved_at

    with pytest.raises(ImmutableRecordError):
        await service.review_week(db_session, week.id, sup.id, "reject", comment="Changed my mind")


@pytest.mark.asyncio
async def test_reject_clears_approved_at(db_session: AsyncSession, assigned) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(5))
    rejected = await service.review_week(db_session, week.id, sup.id, "reject", comment="Missing Saturday")
    assert rejected.approved_at is None


@pytest.mark.asyncio
async def test_review_validation(db_session: AsyncSession, assigned) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(1))

    with pytest.raises(ValidationError):
        await service.review_week(db_session, week.id, sup.id, "escalate")
    with pytest.raises(ValidationError):
        await service.review_week(db_session, week.id, sup.id, "approve", grade=101)
    with pytest.raises(NotFoundError):
        await service.review_week(db_session, uuid.uuid4(), sup.id, "approve")


@pytest.mark.asyncio
async def test_reviewer_must_be_active_assigned_school_supervisor(
    db_session: AsyncSession, assigned, make_supervisor
) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(1))
    industry = await make_supervisor(supervisor_type=SupervisorType.INDUSTRY)
    inactive = await make_supervisor(is_active=False)
    stranger = await make_supervisor()

    for reviewer in (industry, inactive, stranger):
        with pytest.raises(AuthorizationError):
            await service.review_week(db_session, week.id, reviewer.id, "approve")
    with pytest.raises(AuthorizationError):
        await service.review_week(db_session, week.id, None, "approve")


@pytest.mark.asyncio
async def test_locked_student_cannot_submit(db_session: AsyncSession, make_student) -> None:
    student = await make_student(locked=True)
    with pytest.raises(StudentLockedError):
        await service.submit_week(db_session, student.id, _submit(1))


@pytest.mark.asyncio
async def test_submit_and_review_emit_events(db_session: AsyncSession, assigned, sink) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(1), notifier=sink)
    await service.review_week(db_session, week.id, sup.id, "approve", notifier=sink)

    submitted, reviewed = sink.events
    assert submitted.event_type == EventType.WEEK_SUBMITTED
    assert submitted.recipient_user_id == sup.user_id
    assert reviewed.event_type == EventType.WEEK_REVIEWED
    assert reviewed.recipient_user_id == student.user_id
    assert reviewed.payload["status"] == WeekStatus.APPROVED.value


@pytest.mark.asyncio
async def test_admin_can_reopen_and_edit_approved_week(db_session: AsyncSession, assigned) -> None:
    student, sup = assigned
    week = await service.submit_week(db_session, student.id, _submit(6))
    await service.review_week(db_session, week.id, sup.id, "approve", grade=90)

    edited = await service.admin_update_week(db_session, week.id, WeekAdminUpdate(comments="Admin note", week_number=7))
    assert edited.status == WeekStatus.APPROVED.value
    assert edited.week_number == 7
    assert edited.start_date == date(2025, 2, 17)

    reopened = await service.admin_set_week_status(db_session, week.id, WeekStatus.SUBMITTED)
    assert reopened.approved_at is None
    assert reopened.grade is None

    resubmitted = await service.submit_week(db_session, student.id, _submit(7, monday_activity="Revised"))
    assert resubmitted.monday_activity == "Revised"


@pytest.mark.asyncio
async def test_admin_update_enforces_bounds_and_uniqueness(db_session: AsyncSession, make_student) -> None:
    student = await make_student()
    w1 = await service.submit_week(db_session, student.id, _submit(1))
    await service.submit_week(db_session, student.id, _submit(2))

    with pytest.raises(ValidationError):
        await service.admin_update_week(db_session, w1.id, WeekAdminUpdate(week_number=30))
    with pytest.raises(ConflictError):
        await service.admin_update_week(db_session, w1.id, WeekAdminUpdate(week_number=2))


@pytest.mark.asyncio
async def test_admin_set_rejected_and_delete(db_session: AsyncSession, make_student) -> None:
    student = await make_student()
    week = await service.submit_week(db_session, student.id, _submit(1))

    rejected = await service.admin_set_week_status(
        db_session, week.id, WeekStatus.REJECTED, rejection_reason="Wrong week"
    )
    assert rejected.rejection_reason == "Wrong week"

    await service.admin_delete_week(db_session, week.id)
    assert await db_session.get(Week, week.id) is None
    with pytest.raises(NotFoundError):
        await service.admin_delete_week(db_session, week.id)


@pytest.mark.asyncio
async def test_supervisee_weeks_only_include_assigned_students(
    db_session: AsyncSession, assigned, make_student
) -> None:
    student, sup = assigned
    other = await make_student()
    await service.submit_week(db_session, student.id, _submit(1))
    await service.submit_week(db_session, other.id, _submit(1))

    weeks = await service.list_supervisee_weeks(db_session, sup.id)
    assert [w.student_id for w in weeks] == [student.id]
    assert await service.list_supervisee_weeks(db_session, sup.id, WeekStatus.APPROVED) == []


@pytest.mark.asyncio
async def test_end_to_end_submit_approve_resubmit(
    client, headers_for, db_session: AsyncSession, current_session, make_supervisor, make_student
) -> None:
    sup = await make_supervisor()
    student = await make_student(matric_no="S001", placement_start_date=date(2025, 1, 6))
    await assign_student_automatically(db_session, student.id)
    student_headers = headers_for(student.user_id, "STUDENT")
    supervisor_headers = headers_for(sup.user_id, "SUPERVISOR")

    response = await client.post("/api/v1/weeks", json={"week_number": 1, **FULL_WEEK}, headers=student_headers)
    assert response.status_code == 201
    week = response.json()
    assert week["status"] == "submitted"

    response = await client.post(
        f"/api/v1/weeks/{week['id']}/review",
        json={"action": "approve", "grade": 85},
        headers=supervisor_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["grade"] == 85

    response = await client.post(
        "/api/v1/weeks", json={"week_number": 1, **FULL_WEEK, "monday_activity": "x"}, headers=student_headers
    )
    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "immutable_record"

    response = await client.get("/api/v1/weeks/me", headers=student_headers)
    assert [w["week_number"] for w in response.json()] == [1]


@pytest.mark.asyncio
async def test_week_routes_enforce_roles(client, admin_headers, headers_for, make_student) -> None:
    student = await make_student()
    student_headers = headers_for(student.user_id, "STUDENT")

    response = await client.post("/api/v1/weeks", json={"week_number": 1}, headers=admin_headers)
    assert response.status_code == 403

    response = await client.get("/api/v1/weeks", headers=student_headers)
    assert response.status_code == 403

    response = await client.post("/api/v1/weeks", json={"week_number": 25}, headers=student_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "validation_error"

    response = await client.get("/api/v1/weeks/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_racing_first_submission_falls_back_to_update(
    db_session: AsyncSession, assigned, sink, monkeypatch
) -> None:
    student, sup = assigned
    student_id, supervisor_user_id = student.id, sup.user_id
    first = await service.submit_week(db_session, student_id, _submit(2))

    real_find = service._find_week
    calls = {"n": 0}

    async def find_misses_once(*args, **kwargs):
        # The other request's row is not visible yet on the first lookup.
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_find(*args, **kwargs)

    monkeypatch.setattr(service, "_find_week", find_misses_once)
    second = await service.submit_week(
        db_session, student_id, _submit(2, monday_activity="Retried"), notifier=sink
    )

    assert second.id == first.id
    assert second.status == WeekStatus.SUBMITTED.value
    assert second.monday_activity == "Retried"
    assert [e.event_type for e in sink.events] == [EventType.WEEK_SUBMITTED]
    assert sink.events[0].recipient_user_id == supervisor_user_id


@pytest.mark.asyncio
async def test_resubmission_loses_to_concurrent_approval(db_session: AsyncSession, assigned) -> None:
    student, _ = assigned
    week = await service.submit_week(db_session, student.id, _submit(3))
    # Keep the loaded row in the identity map so the service reads the stale status.
    stale = await db_session.get(Week, week.id)
    await db_session.execute(
        update(Week)
        .where(Week.id == week.id)
        .values(status=WeekStatus.APPROVED.value)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()

    with pytest.raises(ImmutableRecordError, match="concurrently"):
        await service.submit_week(db_session, student.id, _submit(3, monday_activity="Late edit"))

    await db_session.refresh(stale)
    assert stale.status == WeekStatus.APPROVED.value
    assert stale.monday_activity == FULL_WEEK["monday_activity"]


@pytest.mark.asyncio
async def test_review_conflicts_when_status_changed_underneath(db_session: AsyncSession, assigned) -> None:
    student, sup = assigned
    sup_id = sup.id
    week = await service.submit_week(db_session, student.id, _submit(4))
    stale = await db_session.get(Week, week.id)
    await db_session.execute(
        update(Week)
        .where(Week.id == week.id)
        .values(status=WeekStatus.REJECTED.value, rejection_reason="Admin override")
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()

    with pytest.raises(ConflictError):
        await service.review_week(db_session, week.id, sup_id, "approve", grade=80)

    await db_session.refresh(stale)
    assert stale.status == WeekStatus.REJECTED.value
    assert stale.grade is None


@pytest.mark.asyncio
async def test_previous_session_supervisor_cannot_review_after_reassignment(
    db_session: AsyncSession, assigned, make_supervisor
) -> None:
    student, old_sup = assigned
    new_sup = await make_supervisor(name="Dr. Eze")
    week = await service.submit_week(db_session, student.id, _submit(1))

    next_session = AcademicSession(name="2026/2027")
    db_session.add(next_session)
    await db_session.commit()
    await db_session.refresh(next_session)
    await set_current_session(db_session, next_session.id)
    await reassign_manually(db_session, new_sup.id, [student.id], next_session.id)

    with pytest.raises(AuthorizationError):
        await service.review_week(db_session, week.id, old_sup.id, "approve")

    approved = await service.review_week(db_session, week.id, new_sup.id, "approve")
    assert approved.reviewed_by == new_sup.id
