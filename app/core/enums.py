from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    STUDENT = "STUDENT"


class SupervisorType(str, Enum):
    SCHOOL = "school"
    INDUSTRY = "industry"


class WeekStatus(str, Enum):
    """Persisted week states. "draft" only exists on the client."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class EventType(str, Enum):
    ASSIGNMENT_MADE = "ASSIGNMENT_MADE"
    WEEK_SUBMITTED = "WEEK_SUBMITTED"
    WEEK_REVIEWED = "WEEK_REVIEWED"
