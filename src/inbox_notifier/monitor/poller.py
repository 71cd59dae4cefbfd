"""Inbox polling loop.

The poller owns the repeating timer, the seen-set tracker and the single
in-flight poll slot. Two sources trigger polls:

- the timer, every `interval_seconds`;
- on-demand requests from the control API (`poll_once`).

At most one poll executes at a time. An on-demand request that arrives while a
poll is running joins that poll and receives its result. A timer tick that
fires while a poll is running is dropped.

Notifications are launched as independent tasks. The seen set is committed as
soon as they are launched; a failed notification is logged and never retried.
"""

from __future__ import annotations

import asyncio
import math
from contextlib import suppress
from datetime import datetime, timezone
from enum import Enum

import structlog

from inbox_notifier.auth.credentials import CredentialStore
from inbox_notifier.exceptions import (
    AuthExpiredError,
    InvalidArgumentError,
    NotificationDeliveryError,
    TransientFetchError,
    UnauthenticatedError,
)
from inbox_notifier.gmail.client import GmailClient
from inbox_notifier.models import MessageSummary, PollOutcome, PollResult
from inbox_notifier.monitor.tracker import SeenSetTracker
from inbox_notifier.notify import NotificationSink

logger = structlog.get_logger()


class PollerState(str, Enum):
    """Lifecycle state of the poller."""

    IDLE = "idle"
    POLLING = "polling"
    SCHEDULED = "scheduled"


def validate_interval(interval_seconds: float) -> float:
    """Return the interval as a float or raise InvalidArgumentError."""
    if isinstance(interval_seconds, bool) or not isinstance(interval_seconds, (int, float)):
        raise InvalidArgumentError(f"Interval must be a number, got {interval_seconds!r}")
    if not math.isfinite(interval_seconds) or interval_seconds <= 0:
        raise InvalidArgumentError(f"Interval must be greater than zero, got {interval_seconds}")
    return float(interval_seconds)


class Poller:
    """Polls Gmail for unread mail and notifies once per new message."""

    def __init__(
        self,
        client: GmailClient,
        credential_store: CredentialStore,
        notifier: NotificationSink,
        *,
        interval_seconds: float = 60.0,
        notify_on_first_poll: bool = False,
        tracker: SeenSetTracker | None = None,
    ) -> None:
        """Create a poller.

        Args:
            client: Source of the current unread messages.
            credential_store: Authenticated flag checked before every fetch.
            notifier: Sink receiving one call per new message.
            interval_seconds: Period of the repeating timer.
            notify_on_first_poll: Notify for mail already unread at startup.
                When False the first successful poll only records a baseline.
            tracker: Seen-set tracker; a fresh one is created if None.
        """
        self.client = client
        self.credential_store = credential_store
        self.notifier = notifier
        self.notify_on_first_poll = notify_on_first_poll
        self.tracker = tracker or SeenSetTracker()

        self._interval = validate_interval(interval_seconds)
        self._timer: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[PollResult] | None = None
        self._notifications: set[asyncio.Task[None]] = set()

        self.last_result: PollResult | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def monitoring(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def polling(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def state(self) -> PollerState:
        if self.polling:
            return PollerState.POLLING
        if self.monitoring:
            return PollerState.SCHEDULED
        return PollerState.IDLE

    @property
    def last_poll_at(self) -> datetime | None:
        return self.last_result.finished_at if self.last_result else None

    @property
    def pending_notifications(self) -> int:
        return len(self._notifications)

    def start(self, interval_seconds: float | None = None) -> None:
        """Poll immediately, then every interval. Must run inside an event loop.

        Raises:
            InvalidArgumentError: If `interval_seconds` is not positive.
        """
        if interval_seconds is not None:
            self._interval = validate_interval(interval_seconds)

        self._cancel_timer()
        logger.info("monitoring_started", interval_seconds=self._interval)
        self._trigger("start")
        self._arm_timer()

    def set_interval(self, interval_seconds: float) -> None:
        """Change the polling period starting from the next tick.

        An in-flight poll is left untouched.

        Raises:
            InvalidArgumentError: If `interval_seconds` is not positive.
        """
        seconds = validate_interval(interval_seconds)
        previous = self._interval
        self._interval = seconds

        if self.monitoring:
            self._cancel_timer()
            self._arm_timer()

        logger.info(
            "poll_interval_changed",
            previous_seconds=previous,
            interval_seconds=seconds,
            monitoring=self.monitoring,
        )

    async def stop(self) -> None:
        """Cancel the timer. Safe to call repeatedly."""
        timer = self._timer
        self._timer = None
        if timer is None:
            return

        timer.cancel()
        with suppress(asyncio.CancelledError):
            await timer
        logger.info("monitoring_stopped")

    async def poll_once(self) -> PollResult:
        """Run a poll now, or join the one already running.

        Raises:
            UnauthenticatedError: If no valid credential is held.
        """
        inflight = self._inflight
        if inflight is not None and not inflight.done():
            logger.info("poll_coalesced", trigger="on_demand", policy="join")
        else:
            inflight = self._launch()
        # Shielded so a cancelled caller does not abort the shared poll.
        return await asyncio.shield(inflight)

    async def drain(self) -> None:
        """Wait for the in-flight poll and every pending notification."""
        while True:
            pending: set[asyncio.Task] = set(self._notifications)
            if self.polling and self._inflight is not None:
                pending.add(self._inflight)
            if not pending:
                return
            await asyncio.wait(pending)

    def _arm_timer(self) -> None:
        self._timer = asyncio.create_task(self._run_timer(), name="inbox-poll-timer")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run_timer(self) -> None:
        # The timer never awaits a poll, so cancelling it cannot abort one.
        while True:
            await asyncio.sleep(self._interval)
            self._trigger("timer")

    def _trigger(self, trigger: str) -> None:
        if self.polling:
            logger.info("poll_coalesced", trigger=trigger, policy="drop")
            return
        self._launch()

    def _launch(self) -> asyncio.Task[PollResult]:
        task = asyncio.create_task(self._execute(), name="inbox-poll")
        self._inflight = task
        task.add_done_callback(self._on_poll_done)
        return task

    def _on_poll_done(self, task: asyncio.Task[PollResult]) -> None:
        if self._inflight is task:
            self._inflight = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and not isinstance(exc, UnauthenticatedError):
            logger.error("poll_crashed", error=str(exc), exc_info=exc)

    async def _execute(self) -> PollResult:
        if not self.credential_store.is_authenticated:
            logger.info("poll_skipped_unauthenticated")
            raise UnauthenticatedError("Not authenticated")

        try:
            summaries = await self.client.fetch_unread()
        except AuthExpiredError as exc:
            self.credential_store.invalidate()
            logger.warning("poll_auth_expired", error=str(exc))
            return self._finish(PollOutcome.AUTH_EXPIRED)
        except TransientFetchError as exc:
            logger.warning("poll_fetch_failed", error=str(exc))
            return self._finish(PollOutcome.FETCH_FAILED)

        fetched_ids = [s.id for s in summaries]
        new_ids = self.tracker.diff(fetched_ids)
        baseline = not self.tracker.primed and not self.notify_on_first_poll

        launched: set[str] = set()
        if baseline:
            logger.info("poll_baseline_recorded", unread_count=len(new_ids))
        else:
            for summary in summaries:
                if summary.id in new_ids and summary.id not in launched:
                    launched.add(summary.id)
                    self._dispatch(summary)

        self.tracker.commit(fetched_ids)

        return self._finish(
            PollOutcome.OK,
            fetched_count=len(summaries),
            new_ids=sorted(new_ids),
            notified_count=len(launched),
            baseline=baseline,
        )

    def _finish(self, outcome: PollOutcome, **fields: object) -> PollResult:
        result = PollResult(outcome=outcome, finished_at=datetime.now(timezone.utc), **fields)
        self.last_result = result
        logger.info(
            "poll_completed",
            outcome=outcome.value,
            fetched=result.fetched_count,
            new=len(result.new_ids),
            notified=result.notified_count,
            baseline=result.baseline,
        )
        return result

    def _dispatch(self, summary: MessageSummary) -> None:
        task = asyncio.create_task(self._deliver(summary), name=f"notify-{summary.id}")
        self._notifications.add(task)
        task.add_done_callback(self._notifications.discard)

    async def _deliver(self, summary: MessageSummary) -> None:
        try:
            await self.notifier.notify(summary)
        except NotificationDeliveryError as exc:
            logger.warning("notification_failed", message_id=summary.id, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("notification_crashed", message_id=summary.id, error=str(exc))
