"""Integration tests against a real Gmail account.

Set INBOX_NOTIFIER_INTEGRATION_TOKEN to the path of an authorized token.json
to run them.
"""

import os
from pathlib import Path

import pytest

from inbox_notifier.auth.credentials import CredentialStore
from inbox_notifier.config import Settings
from inbox_notifier.gmail.client import GmailClient
from inbox_notifier.monitor.poller import Poller
from inbox_notifier.notify import LogNotifier

TOKEN_PATH = os.getenv("INBOX_NOTIFIER_INTEGRATION_TOKEN")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not TOKEN_PATH, reason="INBOX_NOTIFIER_INTEGRATION_TOKEN not set"),
]


@pytest.fixture
def live_settings() -> Settings:
    return Settings(_env_file=None, gmail_token_path=Path(TOKEN_PATH or "token.json"))


class TestGmailIntegration:
    """Integration tests for Gmail API."""

    @pytest.mark.asyncio
    async def test_fetch_unread(self, live_settings: Settings) -> None:
        store = CredentialStore(live_settings)
        assert store.load() is True

        emails = await GmailClient(store, live_settings).fetch_unread()

        assert len(emails) <= live_settings.gmail_max_results
        assert all(e.id for e in emails)

    @pytest.mark.asyncio
    async def test_two_polls_report_no_new_mail_in_between(self, live_settings: Settings) -> None:
        store = CredentialStore(live_settings)
        store.load()
        poller = Poller(GmailClient(store, live_settings), store, LogNotifier())

        first = await poller.poll_once()
        second = await poller.poll_once()
        await poller.drain()

        assert first.baseline is True
        assert second.succeeded
