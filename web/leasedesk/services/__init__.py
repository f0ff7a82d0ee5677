from .lease_service import (
    Actor,
    LeaseRequestFilters,
    LeaseWorkflowEngine,
    Page,
)
from .notification_service import (
    LeaseEvent,
    LoggingNotificationSink,
    NotificationDispatcher,
    TelegramNotificationSink,
    build_notification_sink,
)
from .requester_service import RequesterResolver, ResolvedRequester

__all__ = [
    # Workflow
    "Actor",
    "LeaseRequestFilters",
    "LeaseWorkflowEngine",
    "Page",

    # Notifications
    "LeaseEvent",
    "LoggingNotificationSink",
    "NotificationDispatcher",
    "TelegramNotificationSink",
    "build_notification_sink",

    # Requester resolution
    "RequesterResolver",
    "ResolvedRequester",
]
