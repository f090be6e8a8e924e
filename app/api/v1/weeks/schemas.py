from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import WeekStatus


class WeekActivities(BaseModel):
    monday_activity: Optional[str] = None
    tuesday_activity: Optional[str] = None
    wednesday_activity: Optional[str] = None
    thursday_activity: Optional[str] = None
    friday_activity: Optional[str] = None
    saturday_activity: Optional[str] = None
    comments: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list, description="References to externally stored images")


class WeekSubmit(WeekActivities):
    """Submit or resubmit a week. Range is checked by the service (1..MAX_WEEKS)."""

    week_number: int


class WeekReview(BaseModel):
    action: str = Field(..., description="approve | reject")
    comment: Optional[str] = None
    grade: Optional[float] = Field(None, description="0..100, recorded on approve")


class WeekAdminUpdate(BaseModel):
    """Administrative edit. Only fields sent are changed."""

    week_number: Optional[int] = None
    monday_activity: Optional[str] = None
    tuesday_activity: Optional[str] = None
    wednesday_activity: Optional[str] = None
    thursday_activity: Optional[str] = None
    friday_activity: Optional[str] = None
    saturday_activity: Optional[str] = None
    comments: Optional[str] = None
    image_urls: Optional[List[str]] = None
    review_comment: Optional[str] = None
    grade: Optional[float] = None


class WeekStatusUpdate(BaseModel):
    status: WeekStatus
    rejection_reason: Optional[str] = None
    comments: Optional[str] = Field(None, description="Stored as the review comment")


class WeekResponse(BaseModel):
    id: UUID
    student_id: UUID
    week_number: int
    monday_activity: Optional[str] = None
    tuesday_activity: Optional[str] = None
    wednesday_activity: Optional[str] = None
    thursday_activity: Optional[str] = None
    friday_activity: Optional[str] = None
    saturday_activity: Optional[str] = None
    comments: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    review_comment: Optional[str] = None
    rejection_reason: Optional[str] = None
    grade: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
