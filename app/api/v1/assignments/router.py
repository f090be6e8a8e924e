from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin
from app.auth.schemas import CurrentUser
from app.core.enums import SupervisorType
from app.core.exceptions import ServiceError
from app.db.retry import run_with_retry
from app.db.session import get_db
from app.notifications import NotificationSink, get_notification_sink

from .schemas import (
    AssignmentResponse,
    AutoAssignRequest,
    BulkAssignRequest,
    BulkAssignResponse,
    ReconcileResponse,
    SupervisorLoadResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/assignments", tags=["assignments"])


@router.post(
    "/auto",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def assign_supervisor(
    payload: AutoAssignRequest,
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> AssignmentResponse:
    """
    Assign the least-loaded active school supervisor to a student.
    Idempotent: a student already assigned in the session keeps their supervisor.
    """
    try:
        return await run_with_retry(
            db,
            lambda: service.assign_student_automatically(
                db, payload.student_id, payload.session_id, notifier=notifier
            ),
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.put(
    "/bulk",
    response_model=BulkAssignResponse,
)
async def bulk_assign(
    payload: BulkAssignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> BulkAssignResponse:
    """Replace a supervisor's student list for (session, type). All-or-nothing."""
    try:
        return await service.reassign_manually(
            db,
            payload.supervisor_id,
            payload.student_ids,
            payload.session_id,
            payload.assignment_type,
            assigned_by=current_user.id,
            notifier=notifier,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get(
    "/loads",
    response_model=List[SupervisorLoadResponse],
    dependencies=[Depends(require_admin)],
)
async def supervisor_loads(
    session_id: UUID,
    assignment_type: SupervisorType = Query(SupervisorType.SCHOOL),
    db: AsyncSession = Depends(get_db),
) -> List[SupervisorLoadResponse]:
    try:
        return await run_with_retry(db, lambda: service.supervisor_loads(db, session_id, assignment_type))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get(
    "",
    response_model=List[AssignmentResponse],
    dependencies=[Depends(require_admin)],
)
async def list_assignments(
    session_id: UUID,
    supervisor_id: Optional[UUID] = Query(None),
    assignment_type: Optional[SupervisorType] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[AssignmentResponse]:
    return await service.list_assignments(
        db, session_id, supervisor_id=supervisor_id, assignment_type=assignment_type
    )


@router.post(
    "/reconcile",
    response_model=ReconcileResponse,
    dependencies=[Depends(require_admin)],
)
async def reconcile(
    session_id: Optional[UUID] = Query(None, description="Defaults to the current session"),
    db: AsyncSession = Depends(get_db),
) -> ReconcileResponse:
    """Recompute cached supervisor name/email on students from the assignment table."""
    try:
        session = await service.require_session(db, session_id)
        updated = await service.reconcile_cached_fields(db, session.id)
        return ReconcileResponse(session_id=session.id, updated=updated)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
