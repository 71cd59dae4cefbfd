"""Unit tests for notification sinks."""

from __future__ import annotations

import io
import json
import urllib.error
import urllib.request

import pytest

from inbox_notifier.exceptions import NotificationDeliveryError
from inbox_notifier.models import MessageSummary
from inbox_notifier.notify import LogNotifier, TelegramNotifier, build_notifier, format_summary
from inbox_notifier.notify.telegram import MAX_MESSAGE_LENGTH


class _Response(io.BytesIO):
    def __enter__(self) -> "_Response":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    """Capture Telegram requests and answer with {"ok": true}."""
    calls: list[dict] = []

    def fake_urlopen(req: urllib.request.Request, timeout: int):
        calls.append(
            {
                "url": req.full_url,
                "body": json.loads(req.data.decode("utf-8")),
                "timeout": timeout,
            }
        )
        return _Response(b'{"ok": true, "result": {}}')

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    return calls


def _summary() -> MessageSummary:
    return MessageSummary(id="m1", sender="Alice <alice@example.com>", subject="Lunch?")


class TestTelegramNotifier:
    """Test suite for TelegramNotifier class."""

    @pytest.mark.asyncio
    async def test_notify_posts_sender_and_subject(self, captured) -> None:
        notifier = TelegramNotifier("123:abc", "42", timeout=3)

        await notifier.notify(_summary())

        assert captured == [
            {
                "url": "https://api.telegram.org/bot123:abc/sendMessage",
                "body": {"chat_id": "42", "text": "Alice <alice@example.com>\nLunch?"},
                "timeout": 3,
            }
        ]

    @pytest.mark.asyncio
    async def test_long_text_is_truncated(self, captured) -> None:
        notifier = TelegramNotifier("123:abc", "42")

        await notifier.send_text("x" * (MAX_MESSAGE_LENGTH + 10))

        text = captured[0]["body"]["text"]
        assert len(text) == MAX_MESSAGE_LENGTH
        assert text.endswith("...")

    @pytest.mark.asyncio
    async def test_http_error_raises_delivery_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req, timeout):
            raise urllib.error.HTTPError(req.full_url, 403, "Forbidden", {}, None)

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
        notifier = TelegramNotifier("123:secret", "42")

        with pytest.raises(NotificationDeliveryError) as excinfo:
            await notifier.send_text("hi")

        assert "403" in str(excinfo.value)
        assert "secret" not in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_network_error_raises_delivery_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req, timeout):
            raise urllib.error.URLError("name resolution failed")

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        with pytest.raises(NotificationDeliveryError):
            await TelegramNotifier("t", "c").send_text("hi")

    @pytest.mark.asyncio
    async def test_not_ok_response_raises_delivery_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            urllib.request,
            "urlopen",
            lambda req, timeout: _Response(b'{"ok": false, "description": "chat not found"}'),
        )

        with pytest.raises(NotificationDeliveryError, match="chat not found"):
            await TelegramNotifier("t", "c").send_text("hi")

    def test_requires_token_and_chat(self) -> None:
        with pytest.raises(ValueError):
            TelegramNotifier("", "42")


class TestBuildNotifier:
    """Test suite for build_notifier."""

    def test_log_notifier_without_telegram_config(self, mock_settings) -> None:
        assert isinstance(build_notifier(mock_settings), LogNotifier)

    def test_telegram_notifier_when_configured(self, mock_settings) -> None:
        settings = mock_settings.model_copy(
            update={"telegram_bot_token": "123:abc", "telegram_chat_id": "42"}
        )

        notifier = build_notifier(settings)

        assert isinstance(notifier, TelegramNotifier)
        assert notifier.chat_id == "42"

    @pytest.mark.asyncio
    async def test_log_notifier_never_raises(self) -> None:
        notifier = LogNotifier()

        await notifier.notify(_summary())
        await notifier.send_text("hello")


def test_format_summary() -> None:
    assert format_summary(_summary()) == "Alice <alice@example.com>\nLunch?"
