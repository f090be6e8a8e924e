"""Attendance ledger: one row per (student, date), created on check-in, completed on check-out."""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.academic_sessions.service import require_session
from app.api.v1.assignments.service import assigned_student_ids
from app.core.exceptions import (
    DuplicateCheckInError,
    DuplicateCheckOutError,
    NotFoundError,
    StudentLockedError,
)
from app.core.models import AttendanceRecord, Student

from .schemas import (
    AttendanceHistoryResponse,
    AttendanceRecordResponse,
    StudentAttendanceSummary,
    SupervisorAttendanceSummary,
    TodayStatus,
)

logger = logging.getLogger(__name__)


def _to_response(r: AttendanceRecord) -> AttendanceRecordResponse:
    return AttendanceRecordResponse(
        id=r.id,
        student_id=r.student_id,
        date=r.date,
        check_in_time=r.check_in_time,
        check_out_time=r.check_out_time,
        latitude=r.latitude,
        longitude=r.longitude,
        verified=r.verified,
        created_at=r.created_at,
    )


def _hours(r: AttendanceRecord) -> float:
    if r.check_in_time is None or r.check_out_time is None:
        return 0.0
    delta = datetime.combine(r.date, r.check_out_time) - datetime.combine(r.date, r.check_in_time)
    return max(delta.total_seconds(), 0) / 3600


async def _get_writable_student(db: AsyncSession, student_id: UUID) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    if student.locked:
        raise StudentLockedError("Placement is locked; attendance can no longer be recorded")
    return student


async def _get_record(db: AsyncSession, student_id: UUID, att_date: date) -> Optional[AttendanceRecord]:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.student_id == student_id,
            AttendanceRecord.date == att_date,
        )
    )
    return result.scalar_one_or_none()


async def check_in(
    db: AsyncSession,
    student_id: UUID,
    att_date: Optional[date] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> AttendanceRecordResponse:
    """Record today's arrival. The time is stamped by the server, so the row is marked verified."""
    student = await _get_writable_student(db, student_id)
    now = datetime.utcnow()
    att_date = att_date or now.date()

    if await _get_record(db, student.id, att_date) is not None:
        raise DuplicateCheckInError(f"Already checked in on {att_date.isoformat()}")

    record = AttendanceRecord(
        student_id=student.id,
        date=att_date,
        check_in_time=now.time().replace(microsecond=0),
        latitude=latitude,
        longitude=longitude,
        verified=True,
    )
    db.add(record)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateCheckInError(f"Already checked in on {att_date.isoformat()}")
    await db.refresh(record)
    logger.info("Student %s checked in on %s", student.id, att_date)
    return _to_response(record)


async def check_out(
    db: AsyncSession,
    student_id: UUID,
    att_date: Optional[date] = None,
) -> AttendanceRecordResponse:
    student = await _get_writable_student(db, student_id)
    now = datetime.utcnow()
    att_date = att_date or now.date()

    record = await _get_record(db, student.id, att_date)
    if record is None or record.check_in_time is None:
        raise NotFoundError(f"No check-in recorded on {att_date.isoformat()}")

    result = await db.execute(
        update(AttendanceRecord)
        .where(AttendanceRecord.id == record.id, AttendanceRecord.check_out_time.is_(None))
        .values(check_out_time=now.time().replace(microsecond=0))
    )
    if result.rowcount == 0:
        await db.rollback()
        raise DuplicateCheckOutError(f"Already checked out on {att_date.isoformat()}")
    await db.commit()
    await db.refresh(record)
    logger.info("Student %s checked out on %s", student.id, att_date)
    return _to_response(record)


async def attendance_history(db: AsyncSession, student_id: UUID) -> AttendanceHistoryResponse:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.student_id == student_id)
        .order_by(AttendanceRecord.date)
    )
    rows = result.scalars().all()
    return AttendanceHistoryResponse(
        student_id=student_id,
        records=[_to_response(r) for r in rows],
        total_days=sum(1 for r in rows if r.check_in_time is not None),
        complete_days=sum(1 for r in rows if r.check_in_time is not None and r.check_out_time is not None),
        verified_days=sum(1 for r in rows if r.verified),
        total_hours=round(sum(_hours(r) for r in rows), 2),
    )


async def summary_for_supervisor(
    db: AsyncSession,
    supervisor_id: UUID,
    on_date: Optional[date] = None,
) -> SupervisorAttendanceSummary:
    """
    Per-student totals and today's status for the supervisor's school
    assignments in the current session.
    """
    session = await require_session(db)
    on_date = on_date or datetime.utcnow().date()
    student_ids = await assigned_student_ids(db, supervisor_id, session.id)
    if not student_ids:
        return SupervisorAttendanceSummary(
            supervisor_id=supervisor_id, session_id=session.id, date=on_date, students=[]
        )

    students = (
        await db.execute(
            select(Student).where(Student.id.in_(student_ids)).order_by(Student.full_name)
        )
    ).scalars().all()

    totals_result = await db.execute(
        select(
            AttendanceRecord.student_id,
            func.count(AttendanceRecord.check_in_time),
            func.count(AttendanceRecord.check_out_time),
        )
        .where(AttendanceRecord.student_id.in_(student_ids))
        .group_by(AttendanceRecord.student_id)
    )
    totals: Dict[UUID, Tuple[int, int]] = {sid: (total, complete) for sid, total, complete in totals_result.all()}

    today_result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.student_id.in_(student_ids),
            AttendanceRecord.date == on_date,
        )
    )
    today: Dict[UUID, AttendanceRecord] = {r.student_id: r for r in today_result.scalars().all()}

    rows: List[StudentAttendanceSummary] = []
    for s in students:
        total, complete = totals.get(s.id, (0, 0))
        rec = today.get(s.id)
        rows.append(
            StudentAttendanceSummary(
                student_id=s.id,
                full_name=s.full_name,
                matric_no=s.matric_no,
                total_days=total,
                complete_days=complete,
                today=TodayStatus(
                    checked_in=rec.check_in_time is not None,
                    checked_out=rec.check_out_time is not None,
                    check_in_time=rec.check_in_time,
                    check_out_time=rec.check_out_time,
                ) if rec else None,
            )
        )
    return SupervisorAttendanceSummary(
        supervisor_id=supervisor_id, session_id=session.id, date=on_date, students=rows
    )
