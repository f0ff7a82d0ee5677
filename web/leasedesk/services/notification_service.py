"""Side-channel notifications for the lease workflow.

Events are only published after the owning transaction committed and are
delivered in background tasks: a slow or failing sink never blocks an
operation and never rolls anything back.
"""
from __future__ import annotations

import asyncio
import html
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol, Set

from leasedesk.core.config import Settings
from leasedesk.services.telegram_service import TelegramService

logger = logging.getLogger(__name__)


GUEST_REQUEST_CREATED = "lease.guest_request_created"
OWNER_DECIDED = "lease.owner_decided"
REQUEST_DECIDED = "lease.request_decided"
ROLE_UPGRADED = "lease.role_upgraded"
REQUEST_CANCELLED = "lease.request_cancelled"


@dataclass(frozen=True)
class LeaseEvent:
    kind: str
    request_id: int
    apartment_id: int
    payload: Dict[str, Any] = field(default_factory=dict)


class NotificationSink(Protocol):
    async def emit(self, event: LeaseEvent) -> None: ...


class LoggingNotificationSink:
    """Writes events to the application log."""

    async def emit(self, event: LeaseEvent) -> None:
        logger.info(
            "event=%s request_id=%s apartment_id=%s payload=%s",
            event.kind, event.request_id, event.apartment_id, event.payload,
        )


def format_event(event: LeaseEvent) -> str:
    """Render *event* as the HTML text sent to the staff chat."""
    p = event.payload
    if event.kind == GUEST_REQUEST_CREATED:
        return (
            f"🏠 <b>New guest request</b>\n\n"
            f"<b>Request:</b> #{event.request_id} ({html.escape(str(p.get('type', '')))})\n"
            f"<b>Apartment:</b> #{event.apartment_id}\n"
            f"<b>Contact:</b> {html.escape(str(p.get('contact_name') or '—'))}, "
            f"{html.escape(str(p.get('contact_email') or '—'))}, "
            f"{html.escape(str(p.get('contact_phone') or '—'))}"
        )
    if event.kind == ROLE_UPGRADED:
        return (
            f"⬆️ <b>Role upgraded</b>\n\n"
            f"<b>User:</b> #{p.get('user_id')}\n"
            f"<b>Role:</b> {p.get('old_role')} → {p.get('new_role')}\n"
            f"<b>Request:</b> #{event.request_id}\n"
            f"<b>Apartment:</b> {html.escape(str(p.get('apartment_number') or event.apartment_id))}"
        )
    return (
        f"<b>{html.escape(event.kind)}</b>\n"
        f"<b>Request:</b> #{event.request_id}\n"
        f"<b>Apartment:</b> #{event.apartment_id}\n"
        f"<b>Status:</b> {html.escape(str(p.get('status', '—')))}"
    )


class TelegramNotificationSink:
    """Forwards events to a staff Telegram chat."""

    def __init__(self, telegram: TelegramService, chat_id: int):
        self._tg = telegram
        self._chat_id = chat_id

    async def emit(self, event: LeaseEvent) -> None:
        await self._tg.send_message(chat_id=self._chat_id, text=format_event(event))


class NotificationDispatcher:
    """Fire-and-forget delivery of events to a sink."""

    def __init__(self, sink: NotificationSink):
        self._sink = sink
        self._tasks: Set[asyncio.Task] = set()

    def publish(self, event: LeaseEvent) -> None:
        """Schedule delivery of *event* and return immediately."""
        task = asyncio.create_task(self._deliver(event))
        # keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, event: LeaseEvent) -> None:
        try:
            await self._sink.emit(event)
        except Exception:
            logger.exception(
                "Failed to deliver %s for lease request %s", event.kind, event.request_id
            )

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def build_notification_sink(settings: Settings) -> NotificationSink:
    """Telegram sink when a bot and chat are configured, log sink otherwise."""
    if settings.BOT_TOKEN and settings.LEASE_NOTIFY_CHAT_ID:
        return TelegramNotificationSink(
            TelegramService(settings.BOT_TOKEN),
            settings.LEASE_NOTIFY_CHAT_ID,
        )
    logger.info("Telegram notifications not configured; lease events will be logged only")
    return LoggingNotificationSink()
