from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin, require_roles
from app.core.enums import SupervisorType, UserRole
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import SupervisorActiveUpdate, SupervisorCreate, SupervisorResponse
from . import service

router = APIRouter(prefix="/api/v1/supervisors", tags=["supervisors"])


@router.post(
    "",
    response_model=SupervisorResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_supervisor(
    payload: SupervisorCreate,
    db: AsyncSession = Depends(get_db),
) -> SupervisorResponse:
    try:
        return await service.create_supervisor(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get(
    "",
    response_model=List[SupervisorResponse],
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.SUPERVISOR))],
)
async def list_supervisors(
    supervisor_type: Optional[SupervisorType] = Query(None),
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
) -> List[SupervisorResponse]:
    return await service.list_supervisors(db, supervisor_type=supervisor_type, active_only=active_only)


@router.get(
    "/{supervisor_id}",
    response_model=SupervisorResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.SUPERVISOR))],
)
async def get_supervisor(
    supervisor_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> SupervisorResponse:
    sup = await service.get_supervisor(db, supervisor_id)
    if not sup:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supervisor not found")
    return sup


@router.patch(
    "/{supervisor_id}/active",
    response_model=SupervisorResponse,
    dependencies=[Depends(require_admin)],
)
async def set_supervisor_active(
    supervisor_id: UUID,
    payload: SupervisorActiveUpdate,
    db: AsyncSession = Depends(get_db),
) -> SupervisorResponse:
    """Activate or deactivate (soft) a supervisor. Admin only."""
    try:
        return await service.set_supervisor_active(db, supervisor_id, payload.is_active)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
