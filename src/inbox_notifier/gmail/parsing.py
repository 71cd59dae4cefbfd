"""Helpers for parsing Gmail message metadata into internal models."""

from __future__ import annotations

from typing import Any

from inbox_notifier.models import MessageSummary

METADATA_HEADERS: tuple[str, ...] = ("From", "Subject", "Date")


def _header_map(message: dict[str, Any]) -> dict[str, str]:
    payload = message.get("payload") or {}
    headers = payload.get("headers") or []
    result: dict[str, str] = {}
    for h in headers:
        name = h.get("name")
        value = h.get("value")
        if isinstance(name, str) and isinstance(value, str):
            # Gmail can include duplicates; keep the first.
            result.setdefault(name.lower(), value)
    return result


def message_to_summary(message: dict[str, Any]) -> MessageSummary:
    """Convert a Gmail API message (format=metadata) to MessageSummary.

    Args:
        message: Gmail API message dict.

    Returns:
        MessageSummary: Parsed summary used for notifications.
    """

    hm = _header_map(message)

    return MessageSummary(
        id=str(message.get("id") or ""),
        sender=hm.get("from") or "Unknown",
        subject=hm.get("subject") or "(No subject)",
        snippet=str(message.get("snippet") or ""),
        date=hm.get("date") or "",
        thread_id=str(message.get("threadId") or "") or None,
    )
