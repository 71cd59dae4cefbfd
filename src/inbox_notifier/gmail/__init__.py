"""Gmail API access."""

from .client import GmailClient
from .parsing import message_to_summary

__all__ = ["GmailClient", "message_to_summary"]
