from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.core.enums import SupervisorType


class SupervisorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    supervisor_type: SupervisorType = SupervisorType.SCHOOL
    user_id: Optional[UUID] = Field(None, description="Login identity; industry supervisors usually have none")


class SupervisorActiveUpdate(BaseModel):
    is_active: bool


class SupervisorResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    name: str
    email: str
    phone: Optional[str] = None
    supervisor_type: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
