from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated caller for role checks.
    Identity comes from the bearer token; login itself is handled elsewhere.
    """

    id: UUID
    role: str
    email: Optional[str] = None


class TokenPayload(BaseModel):
    sub: str
    role: str
    email: Optional[str] = None
