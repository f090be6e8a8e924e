from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NoActiveSessionError, NotFoundError, ValidationError
from app.core.models import AcademicSession

from .schemas import AcademicSessionCreate, AcademicSessionResponse


def _to_response(s: AcademicSession) -> AcademicSessionResponse:
    return AcademicSessionResponse(
        id=s.id,
        name=s.name,
        start_date=s.start_date,
        end_date=s.end_date,
        is_current=s.is_current,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


def _validate_dates(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date <= start_date:
        raise ValidationError("end_date must be after start_date")


async def _clear_current(db: AsyncSession) -> None:
    await db.execute(
        update(AcademicSession).where(AcademicSession.is_current.is_(True)).values(is_current=False)
    )


async def create_session(
    db: AsyncSession,
    payload: AcademicSessionCreate,
) -> AcademicSessionResponse:
    """Create session. If set_as_current, unset current on all other sessions (same transaction)."""
    _validate_dates(payload.start_date, payload.end_date)
    name = payload.name.strip()
    existing = await db.execute(select(AcademicSession).where(AcademicSession.name == name))
    if existing.scalar_one_or_none():
        raise ConflictError(f"Academic session '{name}' already exists")
    if payload.set_as_current:
        await _clear_current(db)
    session = AcademicSession(
        name=name,
        start_date=payload.start_date,
        end_date=payload.end_date,
        is_current=payload.set_as_current,
    )
    db.add(session)
    try:
        await db.commit()
        await db.refresh(session)
        return _to_response(session)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Another session is already marked as current or name conflict")


async def list_sessions(db: AsyncSession) -> List[AcademicSessionResponse]:
    result = await db.execute(select(AcademicSession).order_by(AcademicSession.created_at.desc()))
    return [_to_response(s) for s in result.scalars().all()]


async def get_current_session_row(db: AsyncSession) -> Optional[AcademicSession]:
    result = await db.execute(select(AcademicSession).where(AcademicSession.is_current.is_(True)))
    return result.scalar_one_or_none()


async def get_current_session(db: AsyncSession) -> Optional[AcademicSessionResponse]:
    """Current session (is_current=true), the default scope for assignments."""
    s = await get_current_session_row(db)
    return _to_response(s) if s else None


async def require_session(db: AsyncSession, session_id: Optional[UUID] = None) -> AcademicSession:
    """Session by id, or the current one when no id is given. Never creates one."""
    if session_id is None:
        s = await get_current_session_row(db)
        if not s:
            raise NoActiveSessionError("No current academic session. An administrator must set one.")
        return s
    s = await db.get(AcademicSession, session_id)
    if not s:
        raise NotFoundError("Academic session not found")
    return s


async def set_current_session(
    db: AsyncSession,
    session_id: UUID,
) -> AcademicSessionResponse:
    """Set this session as current. All others become is_current=false (same transaction)."""
    s = await db.get(AcademicSession, session_id)
    if not s:
        raise NotFoundError("Academic session not found")
    await _clear_current(db)
    s.is_current = True
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Another session was made current concurrently; retry")
    await db.refresh(s)
    return _to_response(s)
