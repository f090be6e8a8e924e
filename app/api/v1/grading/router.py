from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin
from app.core.exceptions import ServiceError
from app.db.retry import run_with_retry
from app.db.session import get_db

from .schemas import FinalizeGradeRequest, GradeResponse
from . import service

router = APIRouter(
    prefix="/api/v1/grading",
    tags=["grading"],
    dependencies=[Depends(require_admin)],
)


@router.get("/{student_id}/preview", response_model=GradeResponse)
async def preview_grade(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> GradeResponse:
    """Current 30-point breakdown without saving."""
    try:
        return await run_with_retry(db, lambda: service.preview_grade(db, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.post("/{student_id}/finalize", response_model=GradeResponse)
async def finalize_grade(
    student_id: UUID,
    payload: FinalizeGradeRequest,
    db: AsyncSession = Depends(get_db),
) -> GradeResponse:
    """Store final score/grade and lock the student's placement. Admin only."""
    try:
        return await service.finalize_grade(db, student_id, payload.weekly_reports_override)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
