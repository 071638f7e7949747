"""Tests for the Telegram Bot API sender."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from tests.conftest import make_message
from tgnotify.models import RenderMode
from tgnotify.relay.telegram import DeliveryError, TelegramSender


def _mock_client(mock_client_cls: MagicMock, **post_kwargs: object) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.post = AsyncMock(**post_kwargs)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


class TestTelegramSender:
    def test_url_built_from_base_and_token(self) -> None:
        sender = TelegramSender("123:ABC", api_base="http://bot-api.local/")
        assert sender.url == "http://bot-api.local/bot123:ABC/sendMessage"

    def test_default_base_is_telegram(self) -> None:
        sender = TelegramSender("123:ABC")
        assert sender.url == "https://api.telegram.org/bot123:ABC/sendMessage"

    @pytest.mark.asyncio
    async def test_posts_payload_with_tls_verification(self) -> None:
        sender = TelegramSender("123:ABC")
        message = make_message(
            destination_id=12345, text="<b>ci:</b> ok", render_mode=RenderMode.HTML,
        )

        with patch("tgnotify.relay.telegram.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(
                mock_client_cls, return_value=MagicMock(status_code=200),
            )
            await sender.deliver(message)

            mock_client_cls.assert_called_once_with(verify=True)
            mock_client.post.assert_called_once()
            call_args = mock_client.post.call_args
            assert call_args[0][0] == "https://api.telegram.org/bot123:ABC/sendMessage"
            assert call_args[1]["json"] == {
                "chat_id": "12345",
                "text": "<b>ci:</b> ok",
                "parse_mode": "html",
                "disable_web_page_preview": True,
                "disable_notification": True,
            }
            assert call_args[1]["timeout"] is None

    @pytest.mark.asyncio
    async def test_configured_timeout_passed_through(self) -> None:
        sender = TelegramSender("123:ABC", timeout=2.5)
        with patch("tgnotify.relay.telegram.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(
                mock_client_cls, return_value=MagicMock(status_code=200),
            )
            await sender.deliver(make_message())
            assert mock_client.post.call_args[1]["timeout"] == 2.5

    @pytest.mark.asyncio
    async def test_non_2xx_raises_without_retry(self) -> None:
        sender = TelegramSender("123:ABC")
        with patch("tgnotify.relay.telegram.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(
                mock_client_cls, return_value=MagicMock(status_code=500),
            )
            with pytest.raises(DeliveryError) as exc_info:
                await sender.deliver(make_message())

            assert exc_info.value.status_code == 500
            assert mock_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_not_retried(self) -> None:
        sender = TelegramSender("123:ABC")
        with patch("tgnotify.relay.telegram.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(
                mock_client_cls, return_value=MagicMock(status_code=429),
            )
            with pytest.raises(DeliveryError):
                await sender.deliver(make_message())
            assert mock_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_raises_without_leaking_token(self) -> None:
        sender = TelegramSender("123:SECRET")
        with patch("tgnotify.relay.telegram.httpx.AsyncClient") as mock_client_cls:
            _mock_client(
                mock_client_cls,
                side_effect=httpx.ConnectError("connect to .../bot123:SECRET failed"),
            )
            with pytest.raises(DeliveryError) as exc_info:
                await sender.deliver(make_message())

            assert "SECRET" not in str(exc_info.value)
            assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_works_against_mock_transport(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        transport = httpx.MockTransport(handler)
        real_client = httpx.AsyncClient

        def client_factory(**kwargs: object) -> httpx.AsyncClient:
            return real_client(transport=transport)

        sender = TelegramSender("123:ABC")
        with patch("tgnotify.relay.telegram.httpx.AsyncClient", side_effect=client_factory):
            await sender.deliver(make_message(destination_id=42, text="ping", silent=False))

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/bot123:ABC/sendMessage"
        assert seen[0].headers["content-type"] == "application/json"
