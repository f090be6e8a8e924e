from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AcademicSessionCreate(BaseModel):
    """Create a placement session. name must be unique."""

    name: str = Field(..., min_length=1, max_length=50, description="e.g. 2025/2026")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    set_as_current: bool = Field(
        False,
        description="Set this session as current? If true, every other session becomes non-current.",
    )


class AcademicSessionResponse(BaseModel):
    id: UUID
    name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
