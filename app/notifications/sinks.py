"""
Notification sinks. The core hands events to a sink after commit; delivery
failures are logged and swallowed so they never undo the state change.
"""

import logging
from typing import Iterable, Optional, Protocol

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import Notification
from app.db.session import get_db
from app.notifications.events import DomainEvent

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    async def emit(self, event: DomainEvent) -> None:
        ...


class LoggingNotificationSink:
    """Writes events to the application log only."""

    async def emit(self, event: DomainEvent) -> None:
        logger.info(
            "event=%s recipient=%s title=%s payload=%s",
            event.event_type.value, event.recipient_user_id, event.title, event.payload,
        )


class DatabaseNotificationSink:
    """Stores events as in-app notifications, in a commit separate from the triggering change."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def emit(self, event: DomainEvent) -> None:
        if event.recipient_user_id is None:
            logger.debug("Skipping %s: recipient has no login", event.event_type.value)
            return
        self.db.add(
            Notification(
                user_id=event.recipient_user_id,
                event_type=event.event_type.value,
                title=event.title,
                message=event.message,
                payload=event.payload,
            )
        )
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise


async def emit_safely(sink: Optional[NotificationSink], events: Iterable[DomainEvent]) -> None:
    """Fire-and-forget: a failing sink is logged, never propagated."""
    if sink is None:
        return
    for event in events:
        try:
            await sink.emit(event)
        except Exception:
            logger.exception("Failed to emit %s notification", event.event_type.value)


async def get_notification_sink(db: AsyncSession = Depends(get_db)) -> NotificationSink:
    return DatabaseNotificationSink(db)
