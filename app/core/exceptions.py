from typing import Any, Dict

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    kind = "service_error"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def detail(self) -> Dict[str, Any]:
        """Body used by routers for HTTPException.detail: stable kind + readable message."""
        return {"kind": self.kind, "message": self.message}


class ValidationError(ServiceError):
    kind = "validation_error"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(ServiceError):
    kind = "not_found"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class AuthorizationError(ServiceError):
    kind = "authorization_error"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class StudentLockedError(AuthorizationError):
    """Student placement is closed (graded/locked); no further student-side writes."""

    kind = "student_locked"


class ConflictError(ServiceError):
    kind = "conflict"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class ImmutableRecordError(ConflictError):
    """Mutation attempted on an approved week."""

    kind = "immutable_record"


class DuplicateCheckInError(ConflictError):
    kind = "duplicate_check_in"


class DuplicateCheckOutError(ConflictError):
    kind = "duplicate_check_out"


class NoSupervisorAvailableError(ConflictError):
    kind = "no_supervisor_available"


class NoActiveSessionError(ConflictError):
    kind = "no_active_session"
