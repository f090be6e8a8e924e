from app.notifications.events import DomainEvent
from app.notifications.sinks import (
    DatabaseNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
    emit_safely,
    get_notification_sink,
)

__all__ = [
    "DatabaseNotificationSink",
    "DomainEvent",
    "LoggingNotificationSink",
    "NotificationSink",
    "emit_safely",
    "get_notification_sink",
]
