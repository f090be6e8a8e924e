"""
Supervisor assignment engine.

Owns supervisor_assignments and the cached school-supervisor fields on students.
Every assignment change projects onto students in the same transaction
(write-through); reconcile_cached_fields repairs drift from the assignment table.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.academic_sessions.service import require_session
from app.core.enums import SupervisorType
from app.core.exceptions import (
    ConflictError,
    NoSupervisorAvailableError,
    NotFoundError,
    ValidationError,
)
from app.core.models import Student, Supervisor, SupervisorAssignment
from app.notifications import NotificationSink, emit_safely
from app.notifications.events import assignment_made

from .policy import AssignmentPolicy, LeastLoadedPolicy, SupervisorLoad
from .schemas import AssignmentResponse, BulkAssignResponse, SupervisorLoadResponse

logger = logging.getLogger(__name__)


def _to_response(a: SupervisorAssignment) -> AssignmentResponse:
    return AssignmentResponse(
        id=a.id,
        student_id=a.student_id,
        supervisor_id=a.supervisor_id,
        session_id=a.session_id,
        assignment_type=a.assignment_type,
        assigned_by=a.assigned_by,
        created_at=a.created_at,
    )


async def _get_assignment(
    db: AsyncSession,
    student_id: UUID,
    session_id: UUID,
    assignment_type: str,
) -> Optional[SupervisorAssignment]:
    result = await db.execute(
        select(SupervisorAssignment).where(
            SupervisorAssignment.student_id == student_id,
            SupervisorAssignment.session_id == session_id,
            SupervisorAssignment.assignment_type == assignment_type,
        )
    )
    return result.scalar_one_or_none()


async def _lock_session(db: AsyncSession, session_id: UUID) -> None:
    """Serialize load-count-then-insert per session (PostgreSQL only; released at commit)."""
    if db.get_bind().dialect.name != "postgresql":
        return
    await db.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
        {"key": f"supervisor-assignment:{session_id}"},
    )


async def project_supervisor_onto_students(
    db: AsyncSession,
    student_ids: Iterable[UUID],
    supervisor: Optional[Supervisor],
) -> None:
    """Write-through of the cached school-supervisor fields. Caller owns the transaction."""
    ids = list(student_ids)
    if not ids:
        return
    await db.execute(
        update(Student)
        .where(Student.id.in_(ids))
        .values(
            school_supervisor_id=supervisor.id if supervisor else None,
            school_supervisor_name=supervisor.name if supervisor else None,
            school_supervisor_email=supervisor.email if supervisor else None,
        )
    )


async def load_candidates(
    db: AsyncSession,
    session_id: UUID,
    assignment_type: str,
    active_only: bool = True,
) -> List[SupervisorLoad]:
    """Per-supervisor assignment count for (session, type), zero-load supervisors included."""
    stmt = (
        select(Supervisor, func.count(SupervisorAssignment.id))
        .outerjoin(
            SupervisorAssignment,
            (SupervisorAssignment.supervisor_id == Supervisor.id)
            & (SupervisorAssignment.session_id == session_id)
            & (SupervisorAssignment.assignment_type == assignment_type),
        )
        .where(Supervisor.supervisor_type == assignment_type)
        .group_by(Supervisor.id)
        .order_by(Supervisor.created_at, Supervisor.id)
    )
    if active_only:
        stmt = stmt.where(Supervisor.is_active.is_(True))
    result = await db.execute(stmt)
    return [
        SupervisorLoad(
            supervisor_id=sup.id,
            name=sup.name,
            email=sup.email,
            is_active=sup.is_active,
            created_at=sup.created_at,
            load=count,
        )
        for sup, count in result.all()
    ]


async def supervisor_loads(
    db: AsyncSession,
    session_id: UUID,
    assignment_type: SupervisorType = SupervisorType.SCHOOL,
) -> List[SupervisorLoadResponse]:
    """Load report for (session, type); inactive supervisors are listed with their remaining load."""
    await require_session(db, session_id)
    rows = await load_candidates(db, session_id, assignment_type.value, active_only=False)
    return [
        SupervisorLoadResponse(
            supervisor_id=r.supervisor_id,
            name=r.name,
            email=r.email,
            is_active=r.is_active,
            load=r.load,
        )
        for r in rows
    ]


async def assign_student_automatically(
    db: AsyncSession,
    student_id: UUID,
    session_id: Optional[UUID] = None,
    policy: Optional[AssignmentPolicy] = None,
    notifier: Optional[NotificationSink] = None,
) -> AssignmentResponse:
    """
    Bind the student to the least-loaded active school supervisor of the session.
    Idempotent: an existing school assignment for (student, session) is returned as is.
    """
    session = await require_session(db, session_id)
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")

    school = SupervisorType.SCHOOL.value
    # Rollback expires ORM instances; keep plain ids for the recovery path.
    session_pk = session.id
    existing = await _get_assignment(db, student_id, session_pk, school)
    if existing:
        return _to_response(existing)

    await _lock_session(db, session_pk)
    candidates = await load_candidates(db, session_pk, school, active_only=True)
    chosen = (policy or LeastLoadedPolicy()).choose(candidates)
    if chosen is None:
        raise NoSupervisorAvailableError("No active school supervisor is available for assignment")
    supervisor = await db.get(Supervisor, chosen.supervisor_id)

    assignment = SupervisorAssignment(
        student_id=student_id,
        supervisor_id=supervisor.id,
        session_id=session_pk,
        assignment_type=school,
        assigned_by=None,
    )
    try:
        db.add(assignment)
        # The bulk update autoflushes the pending insert.
        await project_supervisor_onto_students(db, [student_id], supervisor)
        await db.commit()
    except IntegrityError:
        # A concurrent call assigned this student first; return that row.
        await db.rollback()
        existing = await _get_assignment(db, student_id, session_pk, school)
        if existing:
            return _to_response(existing)
        raise ConflictError("Could not assign supervisor; retry")
    await db.refresh(assignment)
    await db.refresh(student)
    logger.info(
        "Auto-assigned student %s to supervisor %s (load %d) in session %s",
        student_id, supervisor.id, chosen.load, session_pk,
    )
    response = _to_response(assignment)
    await emit_safely(notifier, assignment_made(student, supervisor, session_pk, school))
    return response


async def reassign_manually(
    db: AsyncSession,
    supervisor_id: UUID,
    student_ids: List[UUID],
    session_id: UUID,
    assignment_type: SupervisorType = SupervisorType.SCHOOL,
    assigned_by: Optional[UUID] = None,
    notifier: Optional[NotificationSink] = None,
) -> BulkAssignResponse:
    """
    Replace the supervisor's student list for (session, type) in one transaction.
    Incoming students bound to another supervisor for the same (session, type) are moved.
    Cached student fields are only written for school assignments.
    """
    supervisor = await db.get(Supervisor, supervisor_id)
    if not supervisor:
        raise NotFoundError("Supervisor not found")
    if supervisor.supervisor_type != assignment_type.value:
        raise ValidationError(
            f"Supervisor is of type '{supervisor.supervisor_type}', cannot take '{assignment_type.value}' assignments"
        )
    wanted: List[UUID] = list(dict.fromkeys(student_ids))
    if wanted and not supervisor.is_active:
        raise ValidationError("Cannot assign students to an inactive supervisor")
    session = await require_session(db, session_id)

    students: Dict[UUID, Student] = {}
    if wanted:
        result = await db.execute(select(Student).where(Student.id.in_(wanted)))
        students = {s.id: s for s in result.scalars().all()}
        missing = [str(sid) for sid in wanted if sid not in students]
        if missing:
            raise NotFoundError(f"Students not found: {', '.join(missing)}")

    type_value = assignment_type.value
    scope = (
        (SupervisorAssignment.session_id == session.id)
        & (SupervisorAssignment.assignment_type == type_value)
    )
    try:
        prev_result = await db.execute(
            select(SupervisorAssignment.student_id).where(
                scope, SupervisorAssignment.supervisor_id == supervisor.id
            )
        )
        previous: Set[UUID] = set(prev_result.scalars().all())

        await db.execute(
            delete(SupervisorAssignment).where(scope, SupervisorAssignment.supervisor_id == supervisor.id)
        )
        if wanted:
            await db.execute(
                delete(SupervisorAssignment).where(scope, SupervisorAssignment.student_id.in_(wanted))
            )
            db.add_all(
                [
                    SupervisorAssignment(
                        student_id=sid,
                        supervisor_id=supervisor.id,
                        session_id=session.id,
                        assignment_type=type_value,
                        assigned_by=assigned_by,
                    )
                    for sid in wanted
                ]
            )

        removed = [sid for sid in previous if sid not in set(wanted)]
        if assignment_type == SupervisorType.SCHOOL:
            await project_supervisor_onto_students(db, removed, None)
            await project_supervisor_onto_students(db, wanted, supervisor)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Assignment changed concurrently; nothing was applied, retry")
    except Exception:
        await db.rollback()
        raise

    added = [sid for sid in wanted if sid not in previous]
    unchanged = [sid for sid in wanted if sid in previous]
    logger.info(
        "Reassigned supervisor %s (%s, session %s): %d added, %d removed, %d unchanged",
        supervisor.id, type_value, session.id, len(added), len(removed), len(unchanged),
    )
    events = []
    for sid in added:
        events.extend(assignment_made(students[sid], supervisor, session.id, type_value))
    await emit_safely(notifier, events)

    return BulkAssignResponse(
        supervisor_id=supervisor.id,
        session_id=session.id,
        assignment_type=type_value,
        assigned=wanted,
        added=added,
        removed=removed,
        unchanged=unchanged,
    )


async def list_assignments(
    db: AsyncSession,
    session_id: UUID,
    supervisor_id: Optional[UUID] = None,
    assignment_type: Optional[SupervisorType] = None,
) -> List[AssignmentResponse]:
    stmt = select(SupervisorAssignment).where(SupervisorAssignment.session_id == session_id)
    if supervisor_id is not None:
        stmt = stmt.where(SupervisorAssignment.supervisor_id == supervisor_id)
    if assignment_type is not None:
        stmt = stmt.where(SupervisorAssignment.assignment_type == assignment_type.value)
    stmt = stmt.order_by(SupervisorAssignment.created_at)
    result = await db.execute(stmt)
    return [_to_response(a) for a in result.scalars().all()]


async def assigned_student_ids(
    db: AsyncSession,
    supervisor_id: UUID,
    session_id: UUID,
    assignment_type: SupervisorType = SupervisorType.SCHOOL,
) -> List[UUID]:
    result = await db.execute(
        select(SupervisorAssignment.student_id).where(
            SupervisorAssignment.supervisor_id == supervisor_id,
            SupervisorAssignment.session_id == session_id,
            SupervisorAssignment.assignment_type == assignment_type.value,
        )
    )
    return list(result.scalars().all())


async def reconcile_cached_fields(db: AsyncSession, session_id: Optional[UUID] = None) -> int:
    """Recompute every student's cached school-supervisor fields from the assignment table."""
    session = await require_session(db, session_id)
    result = await db.execute(
        select(SupervisorAssignment.student_id, Supervisor)
        .join(Supervisor, Supervisor.id == SupervisorAssignment.supervisor_id)
        .where(
            SupervisorAssignment.session_id == session.id,
            SupervisorAssignment.assignment_type == SupervisorType.SCHOOL.value,
        )
    )
    by_student: Dict[UUID, Supervisor] = {sid: sup for sid, sup in result.all()}

    students = (await db.execute(select(Student))).scalars().all()
    updated = 0
    for student in students:
        sup = by_student.get(student.id)
        target = (sup.id, sup.name, sup.email) if sup else (None, None, None)
        current = (student.school_supervisor_id, student.school_supervisor_name, student.school_supervisor_email)
        if current != target:
            student.school_supervisor_id, student.school_supervisor_name, student.school_supervisor_email = target
            updated += 1
    await db.commit()
    if updated:
        logger.warning("Reconciled cached supervisor fields for %d students in session %s", updated, session.id)
    return updated
