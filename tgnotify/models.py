"""Shared Pydantic data models for tgnotify."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class RenderMode(str, Enum):
    """How the Bot API interprets message text (``parse_mode``)."""

    PLAIN = ""
    HTML = "html"
    MARKDOWN = "markdown"


# --- Delivery Models ---


class OutboundMessage(BaseModel):
    """One unit of work for the dispatcher: a single text for a single chat."""

    model_config = ConfigDict(frozen=True)

    destination_id: int
    text: str = Field(min_length=1)
    render_mode: RenderMode = RenderMode.PLAIN
    suppress_link_preview: bool = True
    silent: bool = True

    def to_payload(self) -> dict[str, Any]:
        """Build the ``sendMessage`` request body.

        ``chat_id`` is sent string-encoded. ``parse_mode`` is omitted for
        plain text and ``disable_notification`` only appears when set.
        """
        payload: dict[str, Any] = {
            "chat_id": str(self.destination_id),
            "text": self.text,
        }
        if self.render_mode is not RenderMode.PLAIN:
            payload["parse_mode"] = self.render_mode.value
        if self.suppress_link_preview:
            payload["disable_web_page_preview"] = True
        if self.silent:
            payload["disable_notification"] = True
        return payload


# --- Settings ---


class RelaySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=0, le=65535)
    token: str = ""
    default_mode: str = "text"
    api_base: str = "https://api.telegram.org"
    queue_capacity: int = Field(default=100, ge=1)
    send_timeout: float | None = None  # None: wait for the Bot API indefinitely
