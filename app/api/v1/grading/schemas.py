from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class FinalizeGradeRequest(BaseModel):
    weekly_reports_override: Optional[float] = Field(
        None, description="Replace the computed weekly-reports component (0..15)"
    )


class ScoreComponent(BaseModel):
    score: float
    max: float


class GradeBreakdown(BaseModel):
    attendance: ScoreComponent
    weekly_reports: ScoreComponent
    supervisor_approval: ScoreComponent
    total: ScoreComponent
    grade: str
    check_ins: int
    submitted_weeks: int
    approved_weeks: int


class GradeResponse(BaseModel):
    student_id: UUID
    breakdown: GradeBreakdown
    graded: bool
    graded_at: Optional[datetime] = None
    locked: bool
