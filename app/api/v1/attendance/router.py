"""Attendance API router."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_student, get_current_supervisor
from app.auth.rbac import require_roles
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.core.models import Student, Supervisor
from app.db.retry import run_with_retry
from app.db.session import get_db

from . import service
from .schemas import (
    AttendanceHistoryResponse,
    AttendanceRecordResponse,
    CheckInRequest,
    CheckOutRequest,
    SupervisorAttendanceSummary,
)

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


# ----- Student -----
@router.post(
    "/check-in",
    response_model=AttendanceRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def check_in(
    payload: CheckInRequest,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    """Check in for the day. One check-in per student per day."""
    try:
        return await service.check_in(
            db,
            student.id,
            att_date=payload.on_date,
            latitude=payload.latitude,
            longitude=payload.longitude,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.post("/check-out", response_model=AttendanceRecordResponse)
async def check_out(
    payload: CheckOutRequest,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    """Check out of a day that already has a check-in."""
    try:
        return await service.check_out(db, student.id, att_date=payload.on_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get("/me", response_model=AttendanceHistoryResponse)
async def my_attendance(
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    try:
        return await run_with_retry(db, lambda: service.attendance_history(db, student.id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


# ----- Supervisor / Admin -----
@router.get("/supervisor/summary", response_model=SupervisorAttendanceSummary)
async def supervisor_summary(
    on_date: Optional[date] = Query(None, alias="date", description="Defaults to today (UTC)"),
    db: AsyncSession = Depends(get_db),
    supervisor: Supervisor = Depends(get_current_supervisor),
):
    """Attendance totals and today's status for each of the caller's students."""
    try:
        return await run_with_retry(db, lambda: service.summary_for_supervisor(db, supervisor.id, on_date))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get(
    "/students/{student_id}",
    response_model=AttendanceHistoryResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.SUPERVISOR))],
)
async def student_attendance(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await run_with_retry(db, lambda: service.attendance_history(db, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
