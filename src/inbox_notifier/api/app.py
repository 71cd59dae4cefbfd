"""FastAPI application wiring.

`create_app` builds the credential store, Gmail client, notifier and poller
unless they are passed in, loads the token on startup and stops the poller on
shutdown.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inbox_notifier.api.routes import router
from inbox_notifier.auth.credentials import CredentialStore
from inbox_notifier.config import Settings
from inbox_notifier.gmail.client import GmailClient
from inbox_notifier.monitor.poller import Poller
from inbox_notifier.notify import build_notifier

logger = structlog.get_logger()

SHUTDOWN_DRAIN_SECONDS = 10.0


def build_poller(settings: Settings) -> Poller:
    """Wire the default collaborators for `settings`."""
    store = CredentialStore(settings)
    return Poller(
        GmailClient(store, settings),
        store,
        build_notifier(settings),
        interval_seconds=settings.poll_interval_seconds,
        notify_on_first_poll=settings.notify_on_first_poll,
    )


def create_app(settings: Settings | None = None, poller: Poller | None = None) -> FastAPI:
    """Create the control API.

    Args:
        settings: Application settings. If None, uses default settings.
        poller: Pre-built poller (tests inject fakes here). If None, one is built.

    Returns:
        FastAPI: The configured application.
    """
    from inbox_notifier.config import get_settings

    settings = settings or get_settings()
    poller = poller or build_poller(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if poller.credential_store.load():
            logger.info("startup_authenticated")
            if settings.monitor_on_startup:
                poller.start()
        else:
            logger.warning("startup_not_authenticated", hint="Run: inbox-notifier authorize")

        yield

        await poller.stop()
        try:
            await asyncio.wait_for(poller.drain(), timeout=SHUTDOWN_DRAIN_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("shutdown_drain_timeout", pending=poller.pending_notifications)
        logger.info("shutdown_complete")

    app = FastAPI(title="Inbox Notifier", lifespan=lifespan)
    app.state.settings = settings
    app.state.poller = poller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app
