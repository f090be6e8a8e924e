"""Supervisor pool: creation, listing and soft activation. Rows are never hard-deleted."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import SupervisorType
from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from app.core.models import Supervisor

from .schemas import SupervisorCreate, SupervisorResponse

logger = logging.getLogger(__name__)


def _to_response(s: Supervisor) -> SupervisorResponse:
    return SupervisorResponse(
        id=s.id,
        user_id=s.user_id,
        name=s.name,
        email=s.email,
        phone=s.phone,
        supervisor_type=s.supervisor_type,
        is_active=s.is_active,
        created_at=s.created_at,
    )


async def create_supervisor(db: AsyncSession, payload: SupervisorCreate) -> SupervisorResponse:
    email = payload.email.lower()
    existing = await db.execute(select(Supervisor).where(Supervisor.email == email))
    if existing.scalar_one_or_none():
        raise ConflictError(f"Supervisor with email '{email}' already exists")
    sup = Supervisor(
        user_id=payload.user_id,
        name=payload.name.strip(),
        email=email,
        phone=payload.phone,
        supervisor_type=payload.supervisor_type.value,
        is_active=True,
    )
    db.add(sup)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Supervisor email or login is already registered")
    await db.refresh(sup)
    logger.info("Registered %s supervisor %s", sup.supervisor_type, sup.id)
    return _to_response(sup)


async def list_supervisors(
    db: AsyncSession,
    supervisor_type: Optional[SupervisorType] = None,
    active_only: bool = False,
) -> List[SupervisorResponse]:
    stmt = select(Supervisor)
    if supervisor_type is not None:
        stmt = stmt.where(Supervisor.supervisor_type == supervisor_type.value)
    if active_only:
        stmt = stmt.where(Supervisor.is_active.is_(True))
    stmt = stmt.order_by(Supervisor.created_at, Supervisor.id)
    result = await db.execute(stmt)
    return [_to_response(s) for s in result.scalars().all()]


async def get_supervisor(db: AsyncSession, supervisor_id: UUID) -> Optional[SupervisorResponse]:
    sup = await db.get(Supervisor, supervisor_id)
    return _to_response(sup) if sup else None


async def set_supervisor_active(db: AsyncSession, supervisor_id: UUID, is_active: bool) -> SupervisorResponse:
    """Soft (de)activation. Existing assignments stay; inactive supervisors get no new ones."""
    sup = await db.get(Supervisor, supervisor_id)
    if not sup:
        raise NotFoundError("Supervisor not found")
    sup.is_active = is_active
    await db.commit()
    await db.refresh(sup)
    logger.info("Supervisor %s is_active=%s", sup.id, is_active)
    return _to_response(sup)


async def require_active_school_supervisor(db: AsyncSession, supervisor_id: Optional[UUID]) -> Supervisor:
    """The reviewing identity must be an active school-type supervisor."""
    sup = await db.get(Supervisor, supervisor_id) if supervisor_id else None
    if not sup or not sup.is_active or sup.supervisor_type != SupervisorType.SCHOOL.value:
        raise AuthorizationError("Only active school supervisors can perform this action")
    return sup
