from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class StudentBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    matric_no: str = Field(..., min_length=1, max_length=50)
    department: Optional[str] = None
    faculty: Optional[str] = None
    organisation_name: Optional[str] = None
    organisation_address: Optional[str] = None
    placement_start_date: Optional[date] = None
    industry_supervisor_name: Optional[str] = None
    industry_supervisor_email: Optional[EmailStr] = None
    industry_supervisor_phone: Optional[str] = Field(None, max_length=50)


class StudentCreate(StudentBase):
    user_id: Optional[UUID] = Field(None, description="Login identity of the student")
    matric_finalized: bool = False
    auto_assign: bool = Field(False, description="Assign a school supervisor in the current session right away")


class StudentUpdate(BaseModel):
    """Partial update. School supervisor fields are owned by the assignment engine."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    matric_no: Optional[str] = Field(None, min_length=1, max_length=50)
    matric_finalized: Optional[bool] = None
    department: Optional[str] = None
    faculty: Optional[str] = None
    organisation_name: Optional[str] = None
    organisation_address: Optional[str] = None
    placement_start_date: Optional[date] = None
    industry_supervisor_name: Optional[str] = None
    industry_supervisor_email: Optional[EmailStr] = None
    industry_supervisor_phone: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class StudentLockUpdate(BaseModel):
    locked: bool


class StudentResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    full_name: str
    email: str
    matric_no: str
    matric_finalized: bool
    department: Optional[str] = None
    faculty: Optional[str] = None
    organisation_name: Optional[str] = None
    organisation_address: Optional[str] = None
    placement_start_date: Optional[date] = None
    school_supervisor_id: Optional[UUID] = None
    school_supervisor_name: Optional[str] = None
    school_supervisor_email: Optional[str] = None
    industry_supervisor_name: Optional[str] = None
    industry_supervisor_email: Optional[str] = None
    industry_supervisor_phone: Optional[str] = None
    is_active: bool
    locked: bool
    locked_at: Optional[datetime] = None
    graded: bool
    graded_at: Optional[datetime] = None
    final_score: Optional[float] = None
    final_grade: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
