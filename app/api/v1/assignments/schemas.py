from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import SupervisorType


class AutoAssignRequest(BaseModel):
    student_id: UUID
    session_id: Optional[UUID] = Field(None, description="Defaults to the current session")


class BulkAssignRequest(BaseModel):
    """Replace the full student list of one supervisor for (session, type)."""

    supervisor_id: UUID
    student_ids: List[UUID] = Field(default_factory=list)
    session_id: UUID
    assignment_type: SupervisorType = SupervisorType.SCHOOL


class AssignmentResponse(BaseModel):
    id: UUID
    student_id: UUID
    supervisor_id: UUID
    session_id: UUID
    assignment_type: str
    assigned_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class BulkAssignResponse(BaseModel):
    supervisor_id: UUID
    session_id: UUID
    assignment_type: str
    assigned: List[UUID]
    added: List[UUID]
    removed: List[UUID]
    unchanged: List[UUID]


class SupervisorLoadResponse(BaseModel):
    supervisor_id: UUID
    name: str
    email: str
    is_active: bool
    load: int


class ReconcileResponse(BaseModel):
    session_id: UUID
    updated: int
