"""Control API.

Thin HTTP adapter over the poller, the credential store and the Gmail client.
Only authentication and argument errors are client errors; a failed Gmail call
during an explicit request is reported as 500.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import ValidationError

from inbox_notifier.api.models import (
    ActionResponse,
    AuthStatusResponse,
    EmailListResponse,
    SetIntervalRequest,
    StatusResponse,
)
from inbox_notifier.auth.credentials import CredentialStore
from inbox_notifier.config import Settings
from inbox_notifier.exceptions import (
    AuthExpiredError,
    InvalidArgumentError,
    NotificationDeliveryError,
    TransientFetchError,
    UnauthenticatedError,
)
from inbox_notifier.gmail.client import GmailClient
from inbox_notifier.models import PollOutcome
from inbox_notifier.monitor.poller import Poller
from inbox_notifier.notify import NotificationSink

logger = structlog.get_logger()

router = APIRouter(tags=["control"])

NOT_AUTHENTICATED = "Not authenticated. Run: inbox-notifier authorize"
TEST_NOTIFICATION_TEXT = "Inbox Notifier test notification - working"


def get_poller(request: Request) -> Poller:
    return request.app.state.poller


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.poller.credential_store


def get_gmail_client(request: Request) -> GmailClient:
    return request.app.state.poller.client


def get_notifier(request: Request) -> NotificationSink:
    return request.app.state.poller.notifier


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/status", response_model=StatusResponse)
async def status(
    poller: Poller = Depends(get_poller),
    store: CredentialStore = Depends(get_credential_store),
) -> StatusResponse:
    last = poller.last_result
    return StatusResponse(
        authenticated=store.is_authenticated,
        monitoring=poller.monitoring,
        state=poller.state.value,
        interval_seconds=poller.interval_seconds,
        last_poll_at=poller.last_poll_at,
        last_outcome=last.outcome.value if last else None,
        seen_count=len(poller.tracker.seen),
    )


@router.get("/emails", response_model=EmailListResponse)
async def list_emails(
    client: GmailClient = Depends(get_gmail_client),
    store: CredentialStore = Depends(get_credential_store),
) -> EmailListResponse:
    if not store.is_authenticated:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)

    try:
        emails = await client.fetch_unread()
    except AuthExpiredError as exc:
        store.invalidate()
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED) from exc
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED) from exc
    except TransientFetchError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch emails: {exc}") from exc

    return EmailListResponse(emails=emails, count=len(emails))


@router.post("/check-now", response_model=ActionResponse)
async def check_now(
    poller: Poller = Depends(get_poller),
    store: CredentialStore = Depends(get_credential_store),
) -> ActionResponse:
    if not store.is_authenticated:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)

    try:
        result = await poller.poll_once()
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED) from exc

    if result.outcome is PollOutcome.AUTH_EXPIRED:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)
    if result.outcome is PollOutcome.FETCH_FAILED:
        raise HTTPException(status_code=500, detail="Failed to check emails")

    return ActionResponse(
        success=True,
        message=f"Checked for new emails ({len(result.new_ids)} new)",
    )


@router.post("/set-interval", response_model=ActionResponse)
async def set_interval(
    payload: Any = Body(default=None),
    poller: Poller = Depends(get_poller),
) -> ActionResponse:
    # Malformed bodies answer 400, not FastAPI's 422.
    try:
        body = SetIntervalRequest.model_validate(payload) if payload is not None else None
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid interval") from exc

    seconds = body.interval_seconds() if body is not None else None
    if seconds is None:
        raise HTTPException(status_code=400, detail="Invalid interval")

    try:
        if poller.monitoring:
            poller.set_interval(seconds)
        else:
            poller.start(seconds)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid interval: {exc}") from exc

    return ActionResponse(success=True, message=f"Interval set to {seconds:g} sec(s)")


@router.post("/test", response_model=ActionResponse)
async def send_test_notification(notifier: NotificationSink = Depends(get_notifier)) -> ActionResponse:
    try:
        await notifier.send_text(TEST_NOTIFICATION_TEXT)
    except NotificationDeliveryError as exc:
        logger.warning("test_notification_failed", error=str(exc))
    return ActionResponse(success=True)


@router.post("/auth/reload", response_model=AuthStatusResponse)
async def reload_credentials(
    poller: Poller = Depends(get_poller),
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_app_settings),
) -> AuthStatusResponse:
    authenticated = store.load()
    if authenticated and settings.monitor_on_startup and not poller.monitoring:
        poller.start()
    return AuthStatusResponse(authenticated=authenticated, monitoring=poller.monitoring)
