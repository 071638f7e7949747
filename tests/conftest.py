"""Shared test fixtures for tgnotify."""

from __future__ import annotations

from typing import Any

import pytest

from tgnotify.models import OutboundMessage, RelaySettings, RenderMode
from tgnotify.relay.routing import RoutingTable, parse_rules
from tgnotify.relay.telegram import DeliveryError


class RecordingSender:
    """Stand-in for the Telegram sender that records every delivery."""

    def __init__(self, fail_for: set[int] | None = None) -> None:
        self.sent: list[OutboundMessage] = []
        self.attempted: list[OutboundMessage] = []
        self._fail_for = fail_for or set()

    async def deliver(self, message: OutboundMessage) -> None:
        self.attempted.append(message)
        if message.destination_id in self._fail_for:
            raise DeliveryError(f"chat {message.destination_id} unreachable", status_code=400)
        self.sent.append(message)


@pytest.fixture
def recording_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def routing_table() -> RoutingTable:
    """``alice`` fans out to two chats; everyone else goes to 999."""
    return parse_rules("alice:111,222;999")


# --- Factory functions for test data ---


def make_message(**kwargs: Any) -> OutboundMessage:
    """Factory for OutboundMessage with sensible defaults."""
    defaults: dict[str, Any] = {
        "destination_id": 111,
        "text": "hello",
        "render_mode": RenderMode.PLAIN,
        "silent": True,
    }
    defaults.update(kwargs)
    return OutboundMessage(**defaults)


def make_settings(**kwargs: Any) -> RelaySettings:
    """Factory for RelaySettings with sensible defaults."""
    defaults: dict[str, Any] = {
        "host": "127.0.0.1",
        "port": 8000,
        "token": "123:ABC",
        "default_mode": "text",
        "queue_capacity": 100,
    }
    defaults.update(kwargs)
    return RelaySettings(**defaults)
