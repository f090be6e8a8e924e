from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import require_admin
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import AcademicSessionCreate, AcademicSessionResponse
from . import service

router = APIRouter(prefix="/api/v1/academic-sessions", tags=["academic-sessions"])


@router.post(
    "",
    response_model=AcademicSessionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_session(
    payload: AcademicSessionCreate,
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionResponse:
    """Create a session. set_as_current=true makes it the only current session. Admin only."""
    try:
        return await service.create_session(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get(
    "",
    response_model=List[AcademicSessionResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_sessions(
    db: AsyncSession = Depends(get_db),
) -> List[AcademicSessionResponse]:
    return await service.list_sessions(db)


@router.get(
    "/current",
    response_model=Optional[AcademicSessionResponse],
    dependencies=[Depends(get_current_user)],
)
async def get_current_session(
    db: AsyncSession = Depends(get_db),
) -> Optional[AcademicSessionResponse]:
    """Get the current session (is_current=true). Default scope for assignments."""
    return await service.get_current_session(db)


@router.post(
    "/{session_id}/set-current",
    response_model=AcademicSessionResponse,
    dependencies=[Depends(require_admin)],
)
async def set_current_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionResponse:
    """Set this session as current. All others become non-current. Admin only."""
    try:
        return await service.set_current_session(db, session_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
