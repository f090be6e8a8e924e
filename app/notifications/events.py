"""Domain events emitted by the core after a state change has been committed."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from app.core.enums import EventType


@dataclass
class DomainEvent:
    event_type: EventType
    recipient_user_id: Optional[UUID]
    title: str
    message: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.utcnow)


def assignment_made(student, supervisor, session_id: UUID, assignment_type: str) -> List[DomainEvent]:
    """ASSIGNMENT_MADE for both sides of a new student/supervisor binding."""
    payload = {
        "student_id": str(student.id),
        "supervisor_id": str(supervisor.id),
        "session_id": str(session_id),
        "assignment_type": assignment_type,
    }
    return [
        DomainEvent(
            event_type=EventType.ASSIGNMENT_MADE,
            recipient_user_id=student.user_id,
            title="Supervisor assigned",
            message=f"{supervisor.name} is now your {assignment_type} supervisor.",
            payload=payload,
        ),
        DomainEvent(
            event_type=EventType.ASSIGNMENT_MADE,
            recipient_user_id=supervisor.user_id,
            title="New student assigned",
            message=f"{student.full_name} ({student.matric_no}) has been assigned to you.",
            payload=payload,
        ),
    ]


def week_submitted(week, student, supervisor_user_id: Optional[UUID]) -> DomainEvent:
    return DomainEvent(
        event_type=EventType.WEEK_SUBMITTED,
        recipient_user_id=supervisor_user_id,
        title=f"Week {week.week_number} submitted",
        message=f"{student.full_name} submitted week {week.week_number} for review.",
        payload={"week_id": str(week.id), "student_id": str(student.id), "week_number": week.week_number},
    )


def week_reviewed(week, student) -> DomainEvent:
    return DomainEvent(
        event_type=EventType.WEEK_REVIEWED,
        recipient_user_id=student.user_id,
        title=f"Week {week.week_number} {week.status}",
        message=week.rejection_reason or week.review_comment or "",
        payload={
            "week_id": str(week.id),
            "week_number": week.week_number,
            "status": week.status,
            "grade": week.grade,
        },
    )
