"""Student registry. School supervisor fields are written only by the assignment engine."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assignments.service import assign_student_automatically
from app.core.exceptions import (
    ConflictError,
    ImmutableRecordError,
    NoActiveSessionError,
    NoSupervisorAvailableError,
    NotFoundError,
    ValidationError,
)
from app.core.models import Student
from app.notifications import NotificationSink

from .schemas import StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

# Non-nullable columns a partial update may not null out
_REQUIRED_FIELDS = ("full_name", "email", "matric_no", "matric_finalized", "is_active")


def _to_response(s: Student) -> StudentResponse:
    return StudentResponse.model_validate(s)


async def _matric_taken(db: AsyncSession, matric_no: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(Student.id).where(Student.matric_no == matric_no)
    if exclude_id is not None:
        stmt = stmt.where(Student.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def create_student(
    db: AsyncSession,
    payload: StudentCreate,
    notifier: Optional[NotificationSink] = None,
) -> StudentResponse:
    """
    Register a student. With auto_assign the assignment engine is called explicitly
    after the insert; if no session or supervisor is available the student is kept
    unassigned.
    """
    matric_no = payload.matric_no.strip().upper()
    if await _matric_taken(db, matric_no):
        raise ConflictError(f"Matric number '{matric_no}' is already registered")

    data = payload.model_dump(exclude={"auto_assign", "matric_no", "email"})
    student = Student(**data, matric_no=matric_no, email=payload.email.lower())
    db.add(student)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Matric number or login is already registered")
    await db.refresh(student)
    logger.info("Registered student %s (%s)", student.id, student.matric_no)

    if payload.auto_assign:
        try:
            await assign_student_automatically(db, student.id, notifier=notifier)
        except (NoActiveSessionError, NoSupervisorAvailableError) as e:
            logger.warning("Student %s left unassigned: %s", student.id, e.message)
        await db.refresh(student)
    return _to_response(student)


async def update_student(db: AsyncSession, student_id: UUID, payload: StudentUpdate) -> StudentResponse:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    data = payload.model_dump(exclude_unset=True)
    for field in _REQUIRED_FIELDS:
        if field in data and data[field] is None:
            raise ValidationError(f"{field} cannot be cleared")
    if student.matric_finalized and data.get("matric_finalized") is False:
        raise ImmutableRecordError("Matric number is finalized and cannot be reopened")

    if "matric_no" in data:
        matric_no = data.pop("matric_no").strip().upper()
        if matric_no != student.matric_no:
            if student.matric_finalized:
                raise ImmutableRecordError("Matric number is finalized and can no longer be changed")
            if await _matric_taken(db, matric_no, exclude_id=student.id):
                raise ConflictError(f"Matric number '{matric_no}' is already registered")
            student.matric_no = matric_no
    if data.get("email"):
        data["email"] = data["email"].lower()

    for field, value in data.items():
        setattr(student, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Student update conflicts with an existing record")
    await db.refresh(student)
    return _to_response(student)


async def get_student(db: AsyncSession, student_id: UUID) -> Optional[StudentResponse]:
    student = await db.get(Student, student_id)
    return _to_response(student) if student else None


async def list_students(db: AsyncSession, supervisor_id: Optional[UUID] = None) -> List[StudentResponse]:
    stmt = select(Student)
    if supervisor_id is not None:
        stmt = stmt.where(Student.school_supervisor_id == supervisor_id)
    stmt = stmt.order_by(Student.matric_no)
    result = await db.execute(stmt)
    return [_to_response(s) for s in result.scalars().all()]


async def set_student_lock(db: AsyncSession, student_id: UUID, locked: bool) -> StudentResponse:
    """Locked students can no longer submit weeks or record attendance."""
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    student.locked = locked
    student.locked_at = datetime.utcnow() if locked else None
    await db.commit()
    await db.refresh(student)
    logger.info("Student %s locked=%s", student.id, locked)
    return _to_response(student)
