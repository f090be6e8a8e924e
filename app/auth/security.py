from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from uuid import UUID

from jose import jwt

from app.core.config import settings
from app.core.enums import UserRole


def create_access_token(
    *,
    user_id: UUID,
    role: Union[UserRole, str],
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Issue a bearer token carrying the claims get_current_user reads (sub, role, email)."""
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    to_encode = {
        "sub": str(user_id),
        "role": role.value if isinstance(role, UserRole) else role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
