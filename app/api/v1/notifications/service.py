from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.models import Notification

from .schemas import NotificationResponse

LATEST_LIMIT = 50


async def list_notifications(db: AsyncSession, user_id: UUID) -> List[NotificationResponse]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(LATEST_LIMIT)
    )
    return [NotificationResponse.model_validate(n) for n in result.scalars().all()]


async def mark_read(db: AsyncSession, user_id: UUID, notification_id: UUID) -> NotificationResponse:
    """Only the recipient can mark a notification; others get 404."""
    notification = await db.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        await db.commit()
        await db.refresh(notification)
    return NotificationResponse.model_validate(notification)
