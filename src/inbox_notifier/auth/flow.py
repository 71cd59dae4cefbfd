"""One-time interactive Gmail OAuth.

Run this once with a browser available; it writes the token file that the
service reads at startup.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from inbox_notifier.config import Settings
from inbox_notifier.exceptions import ConfigurationError

logger = structlog.get_logger()


def authorize(
    settings: Settings,
    *,
    port: int = 0,
    open_browser: bool = True,
    force: bool = False,
) -> bool:
    """Run the installed-app OAuth flow and write the token file.

    Args:
        settings: Application settings (paths and scope).
        port: Local callback port; 0 picks a free one.
        open_browser: Whether to open the consent page automatically.
        force: Re-authorize even when a token file already exists.

    Returns:
        True if a new token was written, False if an existing token was kept.

    Raises:
        ConfigurationError: If the client secrets file is missing.
    """
    from google_auth_oauthlib.flow import InstalledAppFlow

    credentials_path = Path(settings.gmail_credentials_path)
    token_path = Path(settings.gmail_token_path)

    if token_path.exists() and not force:
        logger.info("authorize_skipped_existing_token", token_path=str(token_path))
        return False

    if not credentials_path.exists():
        raise ConfigurationError(
            f"Gmail client secrets file not found: {credentials_path}. "
            "Download an OAuth desktop client from the Google Cloud console."
        )

    logger.info(
        "authorize_started",
        credentials_path=str(credentials_path),
        token_path=str(token_path),
        scope=settings.gmail_scope,
        port=port,
    )

    flow = InstalledAppFlow.from_client_secrets_file(
        str(credentials_path),
        scopes=[settings.gmail_scope],
    )
    creds = flow.run_local_server(port=port, open_browser=open_browser)

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json(), encoding="utf-8")
    logger.info("authorize_completed", token_path=str(token_path))
    return True
