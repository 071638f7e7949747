"""Telegram Bot API sender used by the dispatcher.

Each call posts one ``sendMessage`` request. There is no retry: a failed
call raises :class:`DeliveryError` and the dispatcher moves on.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import httpx

from tgnotify.models import OutboundMessage

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.telegram.org"

# Capability the dispatcher depends on; tests substitute a recorder.
Deliver = Callable[[OutboundMessage], Awaitable[None]]


class DeliveryError(Exception):
    """Raised when the Bot API call fails or answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TelegramSender:
    """Posts outbound messages to the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    @property
    def url(self) -> str:
        return f"{self._api_base}/bot{self._bot_token}/sendMessage"

    async def deliver(self, message: OutboundMessage) -> None:
        """Send ``message``; raise :class:`DeliveryError` on any failure.

        TLS certificate verification is always enabled.
        """
        async with httpx.AsyncClient(verify=True) as client:
            try:
                resp = await client.post(
                    self.url, json=message.to_payload(), timeout=self._timeout,
                )
            except httpx.HTTPError as e:
                # httpx error text can include the request URL, which carries the token
                raise DeliveryError(
                    f"sendMessage to chat {message.destination_id} failed: "
                    f"{type(e).__name__}",
                ) from None

        if resp.status_code >= 300:
            raise DeliveryError(
                f"sendMessage to chat {message.destination_id} "
                f"returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        logger.debug("Delivered message to chat %s", message.destination_id)
