"""Event formatting and fire-and-forget delivery."""

import json
import logging
from types import SimpleNamespace

import httpx
import pytest

from leasedesk.services.notification_service import (
    GUEST_REQUEST_CREATED,
    REQUEST_DECIDED,
    ROLE_UPGRADED,
    LeaseEvent,
    LoggingNotificationSink,
    NotificationDispatcher,
    TelegramNotificationSink,
    build_notification_sink,
    format_event,
)
from leasedesk.services.telegram_service import TelegramService


class FailingSink:
    async def emit(self, event):
        raise RuntimeError("sink is down")


class TestFormatEvent:

    def test_guest_request_is_escaped(self):
        event = LeaseEvent(
            kind=GUEST_REQUEST_CREATED,
            request_id=5,
            apartment_id=9,
            payload={"type": "rent", "contact_name": "<b>Eve</b>", "contact_email": "eve@mail.com"},
        )
        text = format_event(event)
        assert "#5" in text
        assert "&lt;b&gt;Eve&lt;/b&gt;" in text
        assert "<b>Eve</b>" not in text

    def test_role_upgrade(self):
        event = LeaseEvent(
            kind=ROLE_UPGRADED,
            request_id=5,
            apartment_id=9,
            payload={"user_id": 3, "old_role": "user", "new_role": "resident", "apartment_number": "B-12"},
        )
        text = format_event(event)
        assert "user → resident" in text
        assert "B-12" in text

    def test_generic_status_event(self):
        text = format_event(LeaseEvent(REQUEST_DECIDED, 5, 9, {"status": "approved"}))
        assert "approved" in text


class TestDispatcher:

    async def test_failures_are_logged_not_raised(self, caplog):
        dispatcher = NotificationDispatcher(FailingSink())

        with caplog.at_level(logging.ERROR, logger="leasedesk.services.notification_service"):
            dispatcher.publish(LeaseEvent(REQUEST_DECIDED, 1, 2, {"status": "approved"}))
            await dispatcher.drain()

        assert "Failed to deliver" in caplog.text

    async def test_logging_sink(self, caplog):
        dispatcher = NotificationDispatcher(LoggingNotificationSink())

        with caplog.at_level(logging.INFO, logger="leasedesk.services.notification_service"):
            dispatcher.publish(LeaseEvent(REQUEST_DECIDED, 1, 2, {"status": "rejected"}))
            await dispatcher.drain()

        assert "event=lease.request_decided request_id=1" in caplog.text


class TestTelegramSink:

    async def test_posts_html_message(self):
        sent = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"ok": True})

        telegram = TelegramService("123:abc", transport=httpx.MockTransport(handler))
        sink = TelegramNotificationSink(telegram, chat_id=-100500)

        await sink.emit(LeaseEvent(REQUEST_DECIDED, 1, 2, {"status": "approved"}))

        path, body = sent[0]
        assert path == "/bot123:abc/sendMessage"
        assert body["chat_id"] == -100500
        assert body["parse_mode"] == "HTML"

    async def test_bot_api_errors_surface_to_dispatcher(self, caplog):
        telegram = TelegramService(
            "123:abc", transport=httpx.MockTransport(lambda request: httpx.Response(502))
        )
        dispatcher = NotificationDispatcher(TelegramNotificationSink(telegram, chat_id=1))

        with caplog.at_level(logging.ERROR):
            dispatcher.publish(LeaseEvent(REQUEST_DECIDED, 1, 2, {"status": "approved"}))
            await dispatcher.drain()

        assert "Failed to deliver lease.request_decided" in caplog.text

    def test_requires_token(self):
        with pytest.raises(RuntimeError):
            TelegramService("")


class TestBuildSink:

    def test_falls_back_to_logging(self):
        unconfigured = SimpleNamespace(BOT_TOKEN="", LEASE_NOTIFY_CHAT_ID=None)
        assert isinstance(build_notification_sink(unconfigured), LoggingNotificationSink)

    def test_telegram_when_configured(self):
        configured = SimpleNamespace(BOT_TOKEN="123:abc", LEASE_NOTIFY_CHAT_ID=42)
        assert isinstance(build_notification_sink(configured), TelegramNotificationSink)
