from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_student, get_current_supervisor
from app.auth.rbac import require_admin, require_roles
from app.core.enums import UserRole, WeekStatus
from app.core.exceptions import ServiceError
from app.core.models import Student, Supervisor
from app.db.retry import run_with_retry
from app.db.session import get_db
from app.notifications import NotificationSink, get_notification_sink

from .schemas import WeekAdminUpdate, WeekResponse, WeekReview, WeekStatusUpdate, WeekSubmit
from . import service

router = APIRouter(prefix="/api/v1/weeks", tags=["weeks"])


# ----- Student -----
@router.post(
    "",
    response_model=WeekResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_week(
    payload: WeekSubmit,
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> WeekResponse:
    """Submit (or resubmit after rejection) one of the caller's weeks. Approved weeks are read-only."""
    try:
        return await service.submit_week(db, student.id, payload, notifier=notifier)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get("/me", response_model=List[WeekResponse])
async def list_my_weeks(
    db: AsyncSession = Depends(get_db),
    student: Student = Depends(get_current_student),
) -> List[WeekResponse]:
    return await run_with_retry(db, lambda: service.list_student_weeks(db, student.id))


# ----- Supervisor -----
@router.get("/supervisees", response_model=List[WeekResponse])
async def list_supervisee_weeks(
    week_status: Optional[WeekStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    supervisor: Supervisor = Depends(get_current_supervisor),
) -> List[WeekResponse]:
    """Weeks of the caller's students in the current session (newest submissions first)."""
    return await run_with_retry(db, lambda: service.list_supervisee_weeks(db, supervisor.id, week_status))


@router.post("/{week_id}/review", response_model=WeekResponse)
async def review_week(
    week_id: UUID,
    payload: WeekReview,
    db: AsyncSession = Depends(get_db),
    supervisor: Supervisor = Depends(get_current_supervisor),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> WeekResponse:
    try:
        return await service.review_week(
            db,
            week_id,
            supervisor.id,
            payload.action,
            comment=payload.comment,
            grade=payload.grade,
            notifier=notifier,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


# ----- Admin -----
@router.get(
    "",
    response_model=List[WeekResponse],
    dependencies=[Depends(require_admin)],
)
async def list_weeks(
    week_status: Optional[WeekStatus] = Query(None, alias="status"),
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[WeekResponse]:
    return await run_with_retry(db, lambda: service.list_weeks(db, week_status, student_id))


@router.get(
    "/{week_id}",
    response_model=WeekResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.SUPERVISOR))],
)
async def get_week(
    week_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> WeekResponse:
    week = await service.get_week(db, week_id)
    if not week:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Week not found")
    return week


@router.patch(
    "/{week_id}",
    response_model=WeekResponse,
    dependencies=[Depends(require_admin)],
)
async def admin_update_week(
    week_id: UUID,
    payload: WeekAdminUpdate,
    db: AsyncSession = Depends(get_db),
) -> WeekResponse:
    """Edit any week field, approved or not. Admin only."""
    try:
        return await service.admin_update_week(db, week_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.put(
    "/{week_id}/status",
    response_model=WeekResponse,
    dependencies=[Depends(require_admin)],
)
async def admin_set_week_status(
    week_id: UUID,
    payload: WeekStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> WeekResponse:
    """Force a week's status (e.g. reopen an approved week). Admin only."""
    try:
        return await service.admin_set_week_status(
            db, week_id, payload.status, payload.rejection_reason, payload.comments
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.delete(
    "/{week_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def admin_delete_week(
    week_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    try:
        await service.admin_delete_week(db, week_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
