"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from inbox_notifier.exceptions import NotificationDeliveryError
from inbox_notifier.models import MessageSummary


class FakeCredentialStore:
    """In-memory stand-in for CredentialStore."""

    def __init__(self, authenticated: bool = True) -> None:
        self.authenticated_on_load = authenticated
        self._authenticated = authenticated
        self.credentials: Any | None = object() if authenticated else None
        self.invalidate_calls = 0
        self.load_calls = 0

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def load(self) -> bool:
        self.load_calls += 1
        self._authenticated = self.authenticated_on_load
        return self._authenticated

    def invalidate(self) -> None:
        self.invalidate_calls += 1
        self._authenticated = False


class FakeMailClient:
    """Scripted unread-mail source.

    Each fetch pops the next scripted step: a list of ids/summaries or an
    exception instance to raise. The last step repeats once the script runs out.
    An optional gate blocks every fetch until it is set.
    """

    def __init__(self, *steps: Any) -> None:
        self.steps = list(steps) or [[]]
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    async def fetch_unread(self) -> list[MessageSummary]:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            if self.gate is not None:
                await self.gate.wait()
            step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
            if isinstance(step, BaseException):
                raise step
            return [
                s if isinstance(s, MessageSummary) else MessageSummary(id=s, subject=f"subject {s}")
                for s in step
            ]
        finally:
            self.active -= 1


class RecordingNotifier:
    """Notifier that records calls and can fail for chosen message ids."""

    def __init__(self, fail_ids: set[str] | None = None) -> None:
        self.fail_ids = fail_ids or set()
        self.notified: list[str] = []
        self.texts: list[str] = []

    async def notify(self, summary: MessageSummary) -> None:
        await asyncio.sleep(0)
        if summary.id in self.fail_ids:
            raise NotificationDeliveryError(f"cannot deliver {summary.id}")
        self.notified.append(summary.id)

    async def send_text(self, text: str) -> None:
        self.texts.append(text)


@pytest.fixture
def mock_settings(tmp_path: Path):
    """Provide settings isolated from the environment and working directory."""
    from inbox_notifier.config import Settings

    return Settings(
        _env_file=None,
        gmail_token_path=tmp_path / "token.json",
        gmail_credentials_path=tmp_path / "credentials.json",
        poll_interval_seconds=60,
        monitor_on_startup=False,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def credential_store() -> FakeCredentialStore:
    return FakeCredentialStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def mail_client_factory():
    """Build scripted fake Gmail clients."""
    return FakeMailClient


@pytest.fixture
def notifier_factory():
    return RecordingNotifier


@pytest.fixture
def credential_store_factory():
    return FakeCredentialStore


@pytest.fixture
def write_token(tmp_path: Path):
    """Write an authorized-user token file and return its path."""

    def _write(path: Path | None = None, **overrides: Any) -> Path:
        data = {
            "token": "ya29.access-token",
            "refresh_token": "1//refresh-token",
            "token_uri": "https://oauth2.googleapis.com/token",
            "client_id": "client-id.apps.googleusercontent.com",
            "client_secret": "client-secret",
            "scopes": ["https://www.googleapis.com/auth/gmail.readonly"],
            "expiry": "2099-01-01T00:00:00Z",
        }
        data.update(overrides)
        target = path or tmp_path / "token.json"
        target.write_text(json.dumps(data), encoding="utf-8")
        return target

    return _write


@pytest.fixture
def sample_email_data() -> dict:
    """Provide a Gmail API message in format=metadata."""
    return {
        "id": "msg123456",
        "threadId": "thread789",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "This week: new features in Python 3.13",
        "payload": {
            "headers": [
                {"name": "Subject", "value": "Weekly Newsletter - Python Tips"},
                {"name": "From", "value": "Python Weekly <newsletter@python.org>"},
                {"name": "Date", "value": "Mon, 19 Oct 2026 09:30:00 +0000"},
            ],
        },
    }
