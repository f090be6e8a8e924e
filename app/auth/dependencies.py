from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser, TokenPayload
from app.core.config import settings
from app.core.enums import UserRole
from app.core.models import Student, Supervisor
from app.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
) -> CurrentUser:
    """Resolve the caller's identity (user id + role) from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        raw = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        payload = TokenPayload(**raw)
        user_id = UUID(payload.sub)
    except (JWTError, PydanticValidationError, ValueError):
        raise credentials_exception

    if payload.role not in {r.value for r in UserRole}:
        raise credentials_exception

    return CurrentUser(id=user_id, role=payload.role, email=payload.email)


async def get_current_student(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Student:
    """Student record owned by the caller. 403 for non-students or unlinked accounts."""
    if current_user.role != UserRole.STUDENT.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only students can perform this action")
    result = await db.execute(select(Student).where(Student.user_id == current_user.id))
    student = result.scalar_one_or_none()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student record not found")
    return student


async def get_current_supervisor(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Supervisor:
    """Supervisor pool row linked to the caller."""
    if current_user.role != UserRole.SUPERVISOR.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only supervisors can perform this action")
    result = await db.execute(select(Supervisor).where(Supervisor.user_id == current_user.id))
    supervisor = result.scalar_one_or_none()
    if not supervisor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supervisor record not found")
    return supervisor
