"""Telegram Bot API notifier."""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request

import structlog

from inbox_notifier.exceptions import NotificationDeliveryError
from inbox_notifier.models import MessageSummary

logger = structlog.get_logger()

# Telegram rejects messages longer than this.
MAX_MESSAGE_LENGTH = 4096


def format_summary(summary: MessageSummary) -> str:
    return f"{summary.sender}\n{summary.subject}"


class TelegramNotifier:
    """Sends notifications through a Telegram bot `sendMessage` call."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        *,
        api_base: str = "https://api.telegram.org",
        timeout: int = 10,
    ) -> None:
        if not bot_token or not chat_id:
            raise ValueError("Telegram bot token and chat id are required")
        self._bot_token = bot_token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    async def notify(self, summary: MessageSummary) -> None:
        await self.send_text(format_summary(summary))
        logger.info("new_mail_notified", message_id=summary.id, subject=summary.subject)

    async def send_text(self, text: str) -> None:
        """Send a plain text message.

        Raises:
            NotificationDeliveryError: If the Bot API call fails.
        """
        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[: MAX_MESSAGE_LENGTH - 3] + "..."
        await asyncio.to_thread(self._post_message, text)

    def _post_message(self, text: str) -> None:
        payload = json.dumps({"chat_id": self.chat_id, "text": text}).encode("utf-8")
        req = urllib.request.Request(
            url=f"{self.api_base}/bot{self._bot_token}/sendMessage",
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # noqa: S310
                data = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            # Never include the URL: it carries the bot token.
            raise NotificationDeliveryError(f"Telegram API error {e.code}") from e
        except (urllib.error.URLError, OSError) as e:
            raise NotificationDeliveryError(f"Telegram API unreachable: {e}") from e
        except ValueError as e:
            raise NotificationDeliveryError("Telegram API returned invalid JSON") from e

        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else None
            raise NotificationDeliveryError(f"Telegram API rejected message: {description}")
