"""Unread message summary model.

Only the headers needed to describe a message in a notification are kept; the
body is never fetched.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MessageSummary(BaseModel):
    """A short, immutable description of one unread Gmail message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Gmail message ID")
    sender: str = Field(default="Unknown", description="Raw From header")
    subject: str = Field(default="(No subject)", description="Subject header")
    snippet: str = Field(default="", description="Gmail snippet of the body")
    date: str = Field(default="", description="Raw Date header")
    thread_id: str | None = Field(default=None, alias="threadId", description="Gmail thread ID")
