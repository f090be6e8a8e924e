from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_student
from app.auth.rbac import require_admin, require_roles
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.core.models import Student
from app.db.session import get_db
from app.notifications import NotificationSink, get_notification_sink

from .schemas import StudentCreate, StudentLockUpdate, StudentResponse, StudentUpdate
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> StudentResponse:
    """Register a student. auto_assign=true also assigns a school supervisor. Admin only."""
    try:
        return await service.create_student(db, payload, notifier=notifier)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.get("/me", response_model=StudentResponse)
async def get_my_record(
    student: Student = Depends(get_current_student),
) -> StudentResponse:
    return StudentResponse.model_validate(student)


@router.get(
    "",
    response_model=List[StudentResponse],
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.SUPERVISOR))],
)
async def list_students(
    supervisor_id: Optional[UUID] = Query(None, description="Filter by assigned school supervisor"),
    db: AsyncSession = Depends(get_db),
) -> List[StudentResponse]:
    return await service.list_students(db, supervisor_id=supervisor_id)


@router.get(
    "/{student_id}",
    response_model=StudentResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.SUPERVISOR))],
)
async def get_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    student = await service.get_student(db, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


@router.patch(
    "/{student_id}",
    response_model=StudentResponse,
    dependencies=[Depends(require_admin)],
)
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    """Update profile/placement details. Matric number is fixed once finalized."""
    try:
        return await service.update_student(db, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.patch(
    "/{student_id}/lock",
    response_model=StudentResponse,
    dependencies=[Depends(require_admin)],
)
async def set_student_lock(
    student_id: UUID,
    payload: StudentLockUpdate,
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    try:
        return await service.set_student_lock(db, student_id, payload.locked)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
