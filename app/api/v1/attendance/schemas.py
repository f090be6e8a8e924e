from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CheckInRequest(BaseModel):
    on_date: Optional[date] = Field(None, description="Defaults to today (UTC)")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class CheckOutRequest(BaseModel):
    on_date: Optional[date] = Field(None, description="Defaults to today (UTC)")


class AttendanceRecordResponse(BaseModel):
    id: UUID
    student_id: UUID
    date: date
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AttendanceHistoryResponse(BaseModel):
    """All days of one student, oldest first, with totals."""

    student_id: UUID
    records: List[AttendanceRecordResponse]
    total_days: int
    complete_days: int
    verified_days: int
    total_hours: float


class TodayStatus(BaseModel):
    checked_in: bool
    checked_out: bool
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None


class StudentAttendanceSummary(BaseModel):
    student_id: UUID
    full_name: str
    matric_no: str
    total_days: int
    complete_days: int
    today: Optional[TodayStatus] = None


class SupervisorAttendanceSummary(BaseModel):
    supervisor_id: UUID
    session_id: UUID
    date: date
    students: List[StudentAttendanceSummary]
