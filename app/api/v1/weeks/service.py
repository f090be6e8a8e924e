"""
Weekly log state machine.

Persisted states are submitted, approved and rejected:

    (no row) --submit--> submitted --approve--> approved   (terminal for students)
                         submitted --reject---> rejected --submit--> submitted

Status transitions are conditional UPDATEs on the status that was read, so a
submission racing an approval can never overwrite the approved row.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.academic_sessions.service import get_current_session_row
from app.api.v1.assignments.service import assigned_student_ids
from app.api.v1.supervisors.service import require_active_school_supervisor
from app.core.config import settings
from app.core.enums import ReviewAction, SupervisorType, WeekStatus
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ImmutableRecordError,
    NotFoundError,
    StudentLockedError,
    ValidationError,
)
from app.core.models import Student, Supervisor, SupervisorAssignment, Week
from app.core.models.week import DAY_FIELDS
from app.notifications import NotificationSink, emit_safely
from app.notifications.events import week_reviewed, week_submitted

from .schemas import WeekAdminUpdate, WeekResponse, WeekSubmit

logger = logging.getLogger(__name__)

# Cleared whenever a week goes back to submitted
_REVIEW_RESET = {
    "reviewed_by": None,
    "reviewed_at": None,
    "approved_at": None,
    "review_comment": None,
    "rejection_reason": None,
    "grade": None,
}


def _to_response(w: Week) -> WeekResponse:
    return WeekResponse.model_validate(w)


def validate_week_number(week_number: Optional[int]) -> int:
    if week_number is None:
        raise ValidationError("week_number is required")
    if week_number < 1 or week_number > settings.max_weeks:
        raise ValidationError(f"week_number must be between 1 and {settings.max_weeks}")
    return week_number


def _validate_grade(grade: Optional[float]) -> None:
    if grade is not None and not 0 <= grade <= 100:
        raise ValidationError("grade must be between 0 and 100")


def week_dates(placement_start: Optional[date], week_number: int) -> Tuple[Optional[date], Optional[date]]:
    """Monday-to-Sunday span of a placement week; unset while the placement start is unknown."""
    if placement_start is None:
        return None, None
    start = placement_start + timedelta(days=7 * (week_number - 1))
    return start, start + timedelta(days=6)


async def _find_week(db: AsyncSession, student_id: UUID, week_number: int) -> Optional[Week]:
    result = await db.execute(
        select(Week).where(Week.student_id == student_id, Week.week_number == week_number)
    )
    return result.scalar_one_or_none()


async def _resubmit(db: AsyncSession, week: Week, values: Dict[str, Any]) -> None:
    """Overwrite an existing unapproved week. Zero rows means an approval got there first."""
    if week.status == WeekStatus.APPROVED.value:
        raise ImmutableRecordError(f"Week {week.week_number} is approved and can no longer be changed")
    result = await db.execute(
        update(Week)
        .where(Week.id == week.id, Week.status != WeekStatus.APPROVED.value)
        .values(**values, **_REVIEW_RESET)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise ImmutableRecordError(f"Week {week.week_number} was approved concurrently and can no longer be changed")
    await db.commit()


async def submit_week(
    db: AsyncSession,
    student_id: UUID,
    payload: WeekSubmit,
    notifier: Optional[NotificationSink] = None,
) -> WeekResponse:
    """
    Create or resubmit the student's week. Resubmitting a rejected week clears the
    previous review (reason, comment, grade, reviewer).
    """
    if student_id is None:
        raise ValidationError("student_id is required")
    week_number = validate_week_number(payload.week_number)
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    if student.locked:
        raise StudentLockedError("Placement is locked; weeks can no longer be submitted")

    start_date, end_date = week_dates(student.placement_start_date, week_number)
    now = datetime.utcnow()
    values: Dict[str, Any] = {field: getattr(payload, field) for field in DAY_FIELDS}
    values.update(
        comments=payload.comments,
        image_urls=list(payload.image_urls),
        start_date=start_date,
        end_date=end_date,
        status=WeekStatus.SUBMITTED.value,
        submitted_at=now,
        updated_at=now,
    )

    week = await _find_week(db, student.id, week_number)
    if week is None:
        week = Week(student_id=student.id, week_number=week_number, **values)
        db.add(week)
        try:
            await db.commit()
        except IntegrityError:
            # Concurrent first submission of the same week; fall through to the update path once.
            await db.rollback()
            await db.refresh(student)
            week = await _find_week(db, student_id, week_number)
            if week is None:
                raise ConflictError("Week could not be saved; retry")
            await _resubmit(db, week, values)
    else:
        await _resubmit(db, week, values)
    await db.refresh(week)

    logger.info("Student %s submitted week %d", student.id, week.week_number)
    response = _to_response(week)
    supervisor_user_id = None
    if student.school_supervisor_id:
        supervisor = await db.get(Supervisor, student.school_supervisor_id)
        supervisor_user_id = supervisor.user_id if supervisor else None
    await emit_safely(notifier, [week_submitted(week, student, supervisor_user_id)])
    return response


async def _is_assigned(db: AsyncSession, supervisor_id: UUID, student_id: UUID) -> bool:
    """School assignment in the current session; earlier sessions grant no review rights."""
    session = await get_current_session_row(db)
    if session is None:
        return False
    result = await db.execute(
        select(SupervisorAssignment.id).where(
            SupervisorAssignment.supervisor_id == supervisor_id,
            SupervisorAssignment.student_id == student_id,
            SupervisorAssignment.session_id == session.id,
            SupervisorAssignment.assignment_type == SupervisorType.SCHOOL.value,
        )
    )
    return result.first() is not None


async def review_week(
    db: AsyncSession,
    week_id: UUID,
    reviewer_id: Optional[UUID],
    action: str,
    comment: Optional[str] = None,
    grade: Optional[float] = None,
    notifier: Optional[NotificationSink] = None,
) -> WeekResponse:
    """
    Approve or reject a submitted week. The reviewer must be an active school
    supervisor assigned to the week's student in the current session. Approving
    an approved week is a no-op; rejecting one is refused (administrators reopen
    via set_week_status).
    """
    reviewer = await require_active_school_supervisor(db, reviewer_id)
    week = await db.get(Week, week_id)
    if not week:
        raise NotFoundError("Week not found")
    try:
        review_action = ReviewAction(action)
    except ValueError:
        raise ValidationError(f"Unknown review action '{action}'; expected approve or reject")
    _validate_grade(grade)
    if not await _is_assigned(db, reviewer.id, week.student_id):
        raise AuthorizationError("Supervisor is not assigned to this student")

    read_status = week.status
    now = datetime.utcnow()
    if review_action == ReviewAction.APPROVE:
        if read_status == WeekStatus.APPROVED.value:
            return _to_response(week)
        values: Dict[str, Any] = {
            "status": WeekStatus.APPROVED.value,
            "approved_at": now,
            "review_comment": comment,
            "rejection_reason": None,
        }
        if grade is not None:
            values["grade"] = grade
    else:
        if read_status == WeekStatus.APPROVED.value:
            raise ImmutableRecordError("Approved weeks cannot be rejected")
        values = {
            "status": WeekStatus.REJECTED.value,
            "rejection_reason": comment,
            "approved_at": None,
        }
    values.update(reviewed_by=reviewer.id, reviewed_at=now, updated_at=now)

    result = await db.execute(
        update(Week).where(Week.id == week.id, Week.status == read_status).values(**values)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise ConflictError("Week changed while it was being reviewed; reload and retry")
    await db.commit()
    await db.refresh(week)

    logger.info("Supervisor %s %s week %s", reviewer.id, week.status, week.id)
    response = _to_response(week)
    student = await db.get(Student, week.student_id)
    await emit_safely(notifier, [week_reviewed(week, student)])
    return response


async def admin_update_week(db: AsyncSession, week_id: UUID, updates: WeekAdminUpdate) -> WeekResponse:
    """Edit any field, including approved weeks. week_number keeps its bounds and uniqueness."""
    week = await db.get(Week, week_id)
    if not week:
        raise NotFoundError("Week not found")
    data = updates.model_dump(exclude_unset=True)
    _validate_grade(data.get("grade"))

    if "week_number" in data and data["week_number"] != week.week_number:
        week_number = validate_week_number(data["week_number"])
        clash = await _find_week(db, week.student_id, week_number)
        if clash is not None:
            raise ConflictError(f"Week {week_number} already exists for this student")
        student = await db.get(Student, week.student_id)
        week.week_number = week_number
        week.start_date, week.end_date = week_dates(student.placement_start_date, week_number)
    data.pop("week_number", None)

    for field, value in data.items():
        if field == "image_urls" and value is None:
            value = []
        setattr(week, field, value)
    week.updated_at = datetime.utcnow()
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Week number already used for this student")
    await db.refresh(week)
    logger.info("Admin updated week %s (%s)", week.id, ", ".join(sorted(data)) or "week_number")
    return _to_response(week)


async def admin_set_week_status(
    db: AsyncSession,
    week_id: UUID,
    status: WeekStatus,
    rejection_reason: Optional[str] = None,
    comments: Optional[str] = None,
) -> WeekResponse:
    """Force any persisted status. Going back to submitted drops the review metadata."""
    week = await db.get(Week, week_id)
    if not week:
        raise NotFoundError("Week not found")
    now = datetime.utcnow()
    if status == WeekStatus.APPROVED:
        week.approved_at = now
        week.rejection_reason = None
    elif status == WeekStatus.REJECTED:
        week.approved_at = None
        week.rejection_reason = rejection_reason
    else:
        for field, value in _REVIEW_RESET.items():
            setattr(week, field, value)
    if comments is not None:
        week.review_comment = comments
    previous = week.status
    week.status = status.value
    week.updated_at = now
    await db.commit()
    await db.refresh(week)
    logger.info("Admin moved week %s from %s to %s", week.id, previous, week.status)
    return _to_response(week)


async def admin_delete_week(db: AsyncSession, week_id: UUID) -> None:
    """Hard delete. Image references live on the row, so nothing else is left behind."""
    week = await db.get(Week, week_id)
    if not week:
        raise NotFoundError("Week not found")
    await db.delete(week)
    await db.commit()
    logger.info("Admin deleted week %s", week_id)


async def list_student_weeks(db: AsyncSession, student_id: UUID) -> List[WeekResponse]:
    result = await db.execute(
        select(Week).where(Week.student_id == student_id).order_by(Week.week_number)
    )
    return [_to_response(w) for w in result.scalars().all()]


async def get_week(db: AsyncSession, week_id: UUID) -> Optional[WeekResponse]:
    week = await db.get(Week, week_id)
    return _to_response(week) if week else None


async def list_weeks(
    db: AsyncSession,
    status: Optional[WeekStatus] = None,
    student_id: Optional[UUID] = None,
) -> List[WeekResponse]:
    stmt = select(Week)
    if status is not None:
        stmt = stmt.where(Week.status == status.value)
    if student_id is not None:
        stmt = stmt.where(Week.student_id == student_id)
    stmt = stmt.order_by(Week.student_id, Week.week_number)
    result = await db.execute(stmt)
    return [_to_response(w) for w in result.scalars().all()]


async def list_supervisee_weeks(
    db: AsyncSession,
    supervisor_id: UUID,
    status: Optional[WeekStatus] = None,
) -> List[WeekResponse]:
    """Weeks of students assigned to the supervisor in the current session."""
    session = await get_current_session_row(db)
    if session is None:
        return []
    student_ids = await assigned_student_ids(db, supervisor_id, session.id)
    if not student_ids:
        return []
    stmt = select(Week).where(Week.student_id.in_(student_ids))
    if status is not None:
        stmt = stmt.where(Week.status == status.value)
    stmt = stmt.order_by(Week.submitted_at.desc(), Week.week_number)
    result = await db.execute(stmt)
    return [_to_response(w) for w in result.scalars().all()]
