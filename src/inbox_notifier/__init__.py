"""Inbox Notifier - Gmail new-mail notifications.

This package polls a Gmail inbox for unread mail, detects messages that
arrived since the previous poll and sends one notification per new message.
"""

__version__ = "0.1.0"

from inbox_notifier.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
