"""
Rule-based final grade out of 30:

    attendance           10  check-ins / (MAX_WEEKS * 6) expected working days
    weekly reports       15  submitted-or-approved weeks / MAX_WEEKS
    supervisor approval   5  approved / submitted-or-approved weeks

Letters: A >= 25, B >= 20, C >= 15, D >= 12, otherwise F.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import WeekStatus
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import AttendanceRecord, Student, Week

from .schemas import GradeBreakdown, GradeResponse, ScoreComponent

logger = logging.getLogger(__name__)

MAX_ATTENDANCE_SCORE = 10.0
MAX_WEEKLY_REPORTS_SCORE = 15.0
MAX_SUPERVISOR_APPROVAL_SCORE = 5.0
MAX_TOTAL_SCORE = 30.0
WORKING_DAYS_PER_WEEK = 6

GRADE_THRESHOLDS = ((25, "A"), (20, "B"), (15, "C"), (12, "D"))


def score_to_grade(score: float) -> str:
    for threshold, letter in GRADE_THRESHOLDS:
        if score >= threshold:
            return letter
    return "F"


def _proportional(count: int, expected: int, max_score: float) -> float:
    if expected <= 0:
        return 0.0
    return round(min(max_score, count / expected * max_score), 2)


def compute_breakdown(
    check_ins: int,
    submitted_weeks: int,
    approved_weeks: int,
    weekly_reports_override: Optional[float] = None,
) -> GradeBreakdown:
    """Pure scoring; submitted_weeks counts weeks that are submitted or approved."""
    attendance = _proportional(check_ins, settings.max_weeks * WORKING_DAYS_PER_WEEK, MAX_ATTENDANCE_SCORE)
    weekly = _proportional(submitted_weeks, settings.max_weeks, MAX_WEEKLY_REPORTS_SCORE)
    if weekly_reports_override is not None:
        if not 0 <= weekly_reports_override <= MAX_WEEKLY_REPORTS_SCORE:
            raise ValidationError(f"Weekly reports override must be between 0 and {MAX_WEEKLY_REPORTS_SCORE:g}")
        weekly = round(weekly_reports_override, 2)
    approval = _proportional(approved_weeks, submitted_weeks, MAX_SUPERVISOR_APPROVAL_SCORE)
    total = round(min(MAX_TOTAL_SCORE, attendance + weekly + approval), 2)
    return GradeBreakdown(
        attendance=ScoreComponent(score=attendance, max=MAX_ATTENDANCE_SCORE),
        weekly_reports=ScoreComponent(score=weekly, max=MAX_WEEKLY_REPORTS_SCORE),
        supervisor_approval=ScoreComponent(score=approval, max=MAX_SUPERVISOR_APPROVAL_SCORE),
        total=ScoreComponent(score=total, max=MAX_TOTAL_SCORE),
        grade=score_to_grade(total),
        check_ins=check_ins,
        submitted_weeks=submitted_weeks,
        approved_weeks=approved_weeks,
    )


async def _gather_breakdown(
    db: AsyncSession,
    student_id: UUID,
    weekly_reports_override: Optional[float] = None,
) -> GradeBreakdown:
    check_ins = (
        await db.execute(
            select(func.count(AttendanceRecord.id)).where(
                AttendanceRecord.student_id == student_id,
                AttendanceRecord.check_in_time.is_not(None),
            )
        )
    ).scalar_one()
    week_counts = await db.execute(
        select(Week.status, func.count(Week.id))
        .where(
            Week.student_id == student_id,
            Week.status.in_([WeekStatus.SUBMITTED.value, WeekStatus.APPROVED.value]),
        )
        .group_by(Week.status)
    )
    by_status = dict(week_counts.all())
    approved = by_status.get(WeekStatus.APPROVED.value, 0)
    submitted = approved + by_status.get(WeekStatus.SUBMITTED.value, 0)
    return compute_breakdown(check_ins, submitted, approved, weekly_reports_override)


async def _require_student(db: AsyncSession, student_id: UUID) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    return student


async def preview_grade(db: AsyncSession, student_id: UUID) -> GradeResponse:
    """What the grade would be right now. Nothing is stored."""
    student = await _require_student(db, student_id)
    breakdown = await _gather_breakdown(db, student.id)
    return GradeResponse(
        student_id=student.id,
        breakdown=breakdown,
        graded=student.graded,
        graded_at=student.graded_at,
        locked=student.locked,
    )


async def finalize_grade(
    db: AsyncSession,
    student_id: UUID,
    weekly_reports_override: Optional[float] = None,
) -> GradeResponse:
    """Store the final score and grade, then lock the student. Re-finalizing overwrites."""
    student = await _require_student(db, student_id)
    breakdown = await _gather_breakdown(db, student.id, weekly_reports_override)
    now = datetime.utcnow()
    student.final_score = breakdown.total.score
    student.final_grade = breakdown.grade
    student.graded = True
    student.graded_at = now
    student.locked = True
    student.locked_at = student.locked_at or now
    await db.commit()
    await db.refresh(student)
    logger.info(
        "Finalized grade for student %s: %.2f (%s)", student.id, breakdown.total.score, breakdown.grade
    )
    return GradeResponse(
        student_id=student.id,
        breakdown=breakdown,
        graded=student.graded,
        graded_at=student.graded_at,
        locked=student.locked,
    )
