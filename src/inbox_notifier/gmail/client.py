"""Gmail API client implementation.

This module fetches the current set of unread messages from the Gmail API.

Notes:
    The Google API client is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the poller and the HTTP handlers stay async.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import structlog

from inbox_notifier.auth.credentials import CredentialStore
from inbox_notifier.config import Settings
from inbox_notifier.exceptions import AuthExpiredError, TransientFetchError, UnauthenticatedError
from inbox_notifier.gmail.parsing import METADATA_HEADERS, message_to_summary
from inbox_notifier.models import MessageSummary

logger = structlog.get_logger()

ServiceFactory = Callable[[Any], Any]


def _build_service(credentials: Any) -> Any:
    from googleapiclient.discovery import build

    # cache_discovery=False prevents writing discovery docs to disk.
    return build("gmail", "v1", credentials=credentials, cache_discovery=False)


def _http_status(err: Exception) -> int | None:
    resp = getattr(err, "resp", None)
    status = getattr(resp, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _is_auth_failure(err: Exception) -> bool:
    from google.auth.exceptions import RefreshError

    return isinstance(err, RefreshError) or _http_status(err) == 401


class GmailClient:
    """Gmail API client for unread-message retrieval."""

    def __init__(
        self,
        credential_store: CredentialStore,
        settings: Settings | None = None,
        service_factory: ServiceFactory | None = None,
    ) -> None:
        """Initialize Gmail client.

        Args:
            credential_store: Source of the OAuth credential.
            settings: Application settings. If None, uses default settings.
            service_factory: Builds a Gmail service from a credential. Defaults to
                `googleapiclient.discovery.build`.
        """
        from inbox_notifier.config import get_settings

        self.settings = settings or get_settings()
        self.credential_store = credential_store
        self._service_factory = service_factory or _build_service
        self._service: Any | None = None
        self._service_credentials: Any | None = None
        # The service and its httplib2.Http are not thread-safe.
        self._fetch_lock = asyncio.Lock()
        logger.info("gmail_client_initialized", query=self.settings.gmail_query)

    async def fetch_unread(self) -> list[MessageSummary]:
        """Fetch summaries of the messages matching the configured query.

        Returns:
            Message summaries, newest first as returned by Gmail.

        Raises:
            UnauthenticatedError: If no valid credential is held.
            AuthExpiredError: If Gmail rejects the credential.
            TransientFetchError: For any other API or network failure.
        """
        logger.debug(
            "listing_unread_messages",
            query=self.settings.gmail_query,
            max_results=self.settings.gmail_max_results,
        )

        async with self._fetch_lock:
            try:
                service = self._ensure_service()
                return await asyncio.to_thread(self._fetch_unread_sync, service)
            except UnauthenticatedError:
                raise
            except Exception as exc:  # noqa: BLE001
                if _is_auth_failure(exc):
                    logger.warning("gmail_auth_rejected", error=str(exc))
                    raise AuthExpiredError(str(exc)) from exc
                logger.warning("gmail_fetch_failed", error=str(exc), status=_http_status(exc))
                raise TransientFetchError(str(exc)) from exc

    def _ensure_service(self) -> Any:
        store = self.credential_store
        credentials = store.credentials
        if not store.is_authenticated or credentials is None:
            raise UnauthenticatedError(
                "Gmail credential is missing or invalid. Run `inbox-notifier authorize`."
            )

        if self._service is None or self._service_credentials is not credentials:
            self._service = self._service_factory(credentials)
            self._service_credentials = credentials
            logger.info("gmail_service_built")
        return self._service

    def _fetch_unread_sync(self, service: Any) -> list[MessageSummary]:
        user_id = self.settings.gmail_user_id
        response = (
            service.users()
            .messages()
            .list(
                userId=user_id,
                q=self.settings.gmail_query,
                maxResults=self.settings.gmail_max_results,
            )
            .execute()
        )

        summaries: list[MessageSummary] = []
        for ref in response.get("messages", []) or []:
            message_id = ref.get("id")
            if not isinstance(message_id, str) or not message_id:
                continue

            try:
                raw = (
                    service.users()
                    .messages()
                    .get(
                        userId=user_id,
                        id=message_id,
                        format="metadata",
                        metadataHeaders=list(METADATA_HEADERS),
                    )
                    .execute()
                )
            except Exception as exc:  # noqa: BLE001
                # Deleted between list and get.
                if _http_status(exc) == 404:
                    logger.info("gmail_message_vanished", message_id=message_id)
                    continue
                raise

            summaries.append(message_to_summary(raw))

        return summaries
