"""API models for the control surface."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from inbox_notifier.models import MessageSummary


class StatusResponse(BaseModel):
    authenticated: bool
    monitoring: bool
    state: str
    interval_seconds: float
    last_poll_at: datetime | None = None
    last_outcome: str | None = None
    seen_count: int = 0


class EmailListResponse(BaseModel):
    emails: list[MessageSummary]
    count: int


class ActionResponse(BaseModel):
    success: bool
    message: str | None = None


class SetIntervalRequest(BaseModel):
    # `seconds` wins when both are given.
    minutes: float | None = None
    seconds: float | None = None

    def interval_seconds(self) -> float | None:
        if self.seconds is not None:
            return self.seconds
        if self.minutes is not None:
            return self.minutes * 60
        return None


class AuthStatusResponse(BaseModel):
    authenticated: bool
    monitoring: bool
