"""Data models for Inbox Notifier.

This module contains Pydantic models for data validation and serialization.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from inbox_notifier.models.message_summary import MessageSummary


class PollOutcome(str, Enum):
    """Result category of a single poll execution."""

    OK = "ok"
    FETCH_FAILED = "fetch_failed"
    AUTH_EXPIRED = "auth_expired"


class PollResult(BaseModel):
    """Result of one poll execution."""

    outcome: PollOutcome = Field(description="How the poll ended")
    fetched_count: int = Field(default=0, description="Number of unread messages fetched")
    new_ids: list[str] = Field(default_factory=list, description="IDs not seen on the previous poll")
    notified_count: int = Field(default=0, description="Notifications launched by this poll")
    baseline: bool = Field(
        default=False,
        description="Whether this poll only recorded the initial unread set",
    )
    finished_at: datetime = Field(description="When the poll finished")

    @property
    def succeeded(self) -> bool:
        return self.outcome is PollOutcome.OK


__all__ = ["MessageSummary", "PollOutcome", "PollResult"]
