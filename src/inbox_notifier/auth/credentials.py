"""Persisted Gmail OAuth credential.

The token file is written by `inbox-notifier authorize` and only read here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from inbox_notifier.config import Settings

logger = structlog.get_logger()


class CredentialStore:
    """Holds the Gmail credential and the process-wide authenticated flag."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Create a store.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from inbox_notifier.config import get_settings

        self.settings = settings or get_settings()
        self._credentials: Any | None = None
        self._authenticated = False

    @property
    def token_path(self) -> Path:
        return Path(self.settings.gmail_token_path)

    @property
    def credentials(self) -> Any | None:
        """The loaded google-auth credential, or None."""
        return self._credentials

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def load(self) -> bool:
        """Read the token file.

        A missing file is the normal unauthenticated state, not an error.

        Returns:
            Whether a usable credential is now held.
        """
        # Imported lazily to keep import-time cost low and tests fast.
        from google.oauth2.credentials import Credentials

        token_path = self.token_path
        if not token_path.exists():
            logger.info("credential_token_missing", token_path=str(token_path))
            self._credentials = None
            self._authenticated = False
            return False

        try:
            creds = Credentials.from_authorized_user_file(
                str(token_path),
                scopes=[self.settings.gmail_scope],
            )
        except (OSError, ValueError) as exc:
            logger.error("credential_load_failed", token_path=str(token_path), error=str(exc))
            self._credentials = None
            self._authenticated = False
            return False

        # An expired access token is fine as long as it can be refreshed.
        usable = bool(creds.valid or creds.refresh_token)
        self._credentials = creds if usable else None
        self._authenticated = usable
        logger.info(
            "credential_loaded",
            token_path=str(token_path),
            authenticated=usable,
            expired=bool(creds.expired),
        )
        return usable

    def invalidate(self) -> None:
        """Mark the credential as unusable until the next successful load()."""
        if self._authenticated:
            logger.warning(
                "credential_invalidated",
                hint="Run `inbox-notifier authorize` then POST /auth/reload",
            )
        self._authenticated = False
