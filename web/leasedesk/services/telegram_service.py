from __future__ import annotations

import httpx
import logging
from typing import Optional, Dict, Any


logger = logging.getLogger(__name__)


class TelegramService:
    """Lightweight async client for Telegram Bot API interactions."""

    def __init__(
        self,
        bot_token: str,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not bot_token:
            raise RuntimeError("A bot token is required for TelegramService")

        self.bot_token = bot_token
        self._api_base = f"https://api.telegram.org/bot{self.bot_token}"
        self._timeout = timeout
        self._transport = transport

    async def send_message(self, chat_id: int, text: str, reply_markup: Optional[Dict[str, Any]] = None) -> None:
        """Send an HTML message to a chat.

        Raises httpx.HTTPError when the Bot API is unreachable or rejects the
        message; callers decide whether that matters.
        """
        if not chat_id:
            logger.warning("Attempted to send Telegram message with empty chat_id; skipping")
            return

        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML"
        }

        if reply_markup:
            payload["reply_markup"] = reply_markup

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(f"{self._api_base}/sendMessage", json=payload)
            response.raise_for_status()
