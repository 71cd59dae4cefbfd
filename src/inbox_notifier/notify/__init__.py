"""Outbound new-mail notifications.

Delivery is best-effort: sinks raise NotificationDeliveryError and callers log it.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from inbox_notifier.config import Settings
from inbox_notifier.models import MessageSummary

from .telegram import TelegramNotifier, format_summary

logger = structlog.get_logger()


class NotificationSink(Protocol):
    async def notify(self, summary: MessageSummary) -> None: ...

    async def send_text(self, text: str) -> None: ...


class LogNotifier:
    """Fallback sink that only writes notifications to the log."""

    async def notify(self, summary: MessageSummary) -> None:
        logger.info(
            "new_mail",
            message_id=summary.id,
            sender=summary.sender,
            subject=summary.subject,
        )

    async def send_text(self, text: str) -> None:
        logger.info("notification_text", text=text)


def build_notifier(settings: Settings) -> NotificationSink:
    """Pick the Telegram sink when it is configured, else the log sink."""
    if settings.telegram_enabled:
        return TelegramNotifier(
            settings.telegram_bot_token or "",
            settings.telegram_chat_id or "",
            api_base=settings.telegram_api_base,
            timeout=settings.notification_timeout,
        )
    logger.warning("telegram_not_configured", fallback="log")
    return LogNotifier()


__all__ = [
    "LogNotifier",
    "NotificationSink",
    "TelegramNotifier",
    "build_notifier",
    "format_summary",
]
