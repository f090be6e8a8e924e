from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    id: UUID
    event_type: str
    title: str
    message: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
