"""Recurring broadcast of current conditions to every subscription.

The scheduler is a two-state machine. It sits in ``IDLE`` between ticks
and in ``RUNNING`` while a cycle walks a snapshot of the subscription
store. A tick that fires while a cycle is still running is dropped and
counted; cycles never overlap.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from weatherpush._constants import DEFAULT_SHUTDOWN_GRACE, DEFAULT_TICK_INTERVAL
from weatherpush.config import WeatherPushConfig
from weatherpush.exceptions import FetchError, FetchErrorKind
from weatherpush.fetcher import Fetcher
from weatherpush.formatting import format_push
from weatherpush.models.cycle import CycleReport, PairResult
from weatherpush.models.subscription import ChatId
from weatherpush.sink import NotificationSink
from weatherpush.state.store import SubscriptionStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


class BroadcastScheduler:
    """Push a condition update for every (chat, location) pair on a timer.

    Parameters
    ----------
    store : SubscriptionStore
        Source of the pairs; read once per cycle via ``snapshot()``.
    fetcher : Fetcher
        Called once per pair. Nothing is cached between pairs or cycles.
    sink : NotificationSink
        Receives one message per successfully fetched pair.
    interval : float
        Seconds between ticks.
    max_concurrent_fetches : int
        Upper bound on pairs processed at once. ``1`` is sequential.
    units : str
        Unit system used when formatting messages.
    run_on_start : bool
        Fire the first tick immediately instead of after one interval.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        fetcher: Fetcher,
        sink: NotificationSink,
        *,
        interval: float = DEFAULT_TICK_INTERVAL,
        max_concurrent_fetches: int = 1,
        units: str = "metric",
        run_on_start: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if max_concurrent_fetches < 1:
            raise ValueError(f"max_concurrent_fetches must be >= 1, got {max_concurrent_fetches}")
        self._store = store
        self._fetcher = fetcher
        self._sink = sink
        self._interval = interval
        self._max_concurrent_fetches = max_concurrent_fetches
        self._units = units
        self._run_on_start = run_on_start
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._timer_task: asyncio.Task[None] | None = None
        self._cycle_task: asyncio.Task[CycleReport | None] | None = None
        self.dropped_ticks = 0
        self.cycles_completed = 0
        self.last_report: CycleReport | None = None

    @classmethod
    def from_config(
        cls,
        config: WeatherPushConfig,
        store: SubscriptionStore,
        fetcher: Fetcher,
        sink: NotificationSink,
    ) -> BroadcastScheduler:
        return cls(
            store,
            fetcher,
            sink,
            interval=config.tick_interval,
            max_concurrent_fetches=config.max_concurrent_fetches,
            units=config.units,
            run_on_start=config.send_on_start,
        )

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        """Whether a cycle is in progress."""
        return self._state is SchedulerState.RUNNING

    @property
    def is_started(self) -> bool:
        """Whether the timer is active."""
        return self._timer_task is not None and not self._timer_task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BroadcastScheduler:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    def start(self) -> None:
        """Start the recurring timer. Calling it twice is a no-op."""
        if self.is_started:
            return
        self._timer_task = asyncio.create_task(self._timer_loop(), name="weatherpush-timer")
        _logger.info("Broadcast scheduler started interval=%.0fs", self._interval)

    async def stop(self, grace: float = DEFAULT_SHUTDOWN_GRACE) -> None:
        """Stop ticking and let an in-flight cycle finish for up to *grace* seconds.

        A cycle still running after the grace period is cancelled.
        """
        timer = self._timer_task
        self._timer_task = None
        if timer is not None:
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer

        cycle = self._cycle_task
        self._cycle_task = None
        if cycle is not None and not cycle.done():
            done, _pending = await asyncio.wait({cycle}, timeout=grace)
            if not done:
                _logger.warning("Broadcast cycle still running after %.1fs grace period, cancelling", grace)
                cycle.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await cycle
        _logger.info("Broadcast scheduler stopped")

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def _timer_loop(self) -> None:
        loop = asyncio.get_running_loop()
        if self._run_on_start:
            self.tick()
        next_at = loop.time() + self._interval
        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            # Fixed-rate schedule: an overrunning cycle drops ticks instead of shifting them.
            next_at += self._interval
            self.tick()

    def tick(self) -> bool:
        """Handle one timer event.

        Starts a cycle in the background and returns ``True``, or drops
        the tick and returns ``False`` when a cycle is still running.
        """
        if self.is_running or (self._cycle_task is not None and not self._cycle_task.done()):
            self._drop_tick()
            return False
        task = asyncio.create_task(self.run_cycle(), name="weatherpush-cycle")
        task.add_done_callback(self._on_cycle_done)
        self._cycle_task = task
        return True

    def _drop_tick(self) -> None:
        self.dropped_ticks += 1
        _logger.warning(
            "Broadcast cycle still running, dropping tick (dropped so far: %d)",
            self.dropped_ticks,
        )

    @staticmethod
    def _on_cycle_done(task: asyncio.Task[CycleReport | None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Broadcast cycle crashed", exc_info=exc)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_cycle(self) -> CycleReport | None:
        """Run one full pass over the current subscriptions.

        Returns the cycle report, or ``None`` when another cycle is
        already running (the call then counts as a dropped tick).
        """
        if self.is_running:
            self._drop_tick()
            return None
        self._state = SchedulerState.RUNNING
        report = CycleReport(started_at=self._clock())
        try:
            snapshot = self._store.snapshot()
            pairs = [(chat_id, location) for chat_id, locations in snapshot.items() for location in locations]
            _logger.debug("Broadcast cycle starting chats=%d pairs=%d", len(snapshot), len(pairs))

            semaphore = asyncio.Semaphore(self._max_concurrent_fetches)
            outcomes = await asyncio.gather(
                *(self._process_pair(chat_id, location, semaphore, report) for chat_id, location in pairs),
                return_exceptions=True,
            )
            for (chat_id, location), outcome in zip(pairs, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    _logger.error(
                        "Unexpected error processing location=%s chat=%s",
                        location,
                        chat_id,
                        exc_info=outcome,
                    )
        except asyncio.CancelledError:
            report.cancelled = True
            raise
        finally:
            report.finished_at = self._clock()
            self.last_report = report
            self._state = SchedulerState.IDLE
            if not report.cancelled:
                self.cycles_completed += 1
            _logger.info(
                "Broadcast cycle %s pairs=%d delivered=%d fetch_failures=%d delivery_failures=%d",
                "cancelled" if report.cancelled else "finished",
                report.pair_count,
                len(report.delivered),
                len(report.fetch_failures),
                len(report.delivery_failures),
            )
        return report

    async def _process_pair(
        self,
        chat_id: ChatId,
        location: str,
        semaphore: asyncio.Semaphore,
        report: CycleReport,
    ) -> None:
        async with semaphore:
            try:
                snapshot = await self._fetcher.fetch(location)
            except FetchError as exc:
                _logger.warning(
                    "Fetch failed location=%s chat=%s kind=%s: %s",
                    location,
                    chat_id,
                    exc.kind,
                    exc,
                )
                report.results.append(
                    PairResult(chat_id=chat_id, location=location, error_kind=exc.kind, error_message=str(exc))
                )
                return
            except Exception as exc:
                _logger.warning(
                    "Fetch failed location=%s chat=%s kind=%s: %r",
                    location,
                    chat_id,
                    FetchErrorKind.UNAVAILABLE,
                    exc,
                    exc_info=True,
                )
                report.results.append(
                    PairResult(
                        chat_id=chat_id,
                        location=location,
                        error_kind=FetchErrorKind.UNAVAILABLE,
                        error_message=repr(exc),
                    )
                )
                return

            try:
                await self._sink.send(chat_id, format_push(snapshot, units=self._units))
            except Exception as exc:
                _logger.warning("Delivery failed chat=%s location=%s: %s", chat_id, location, exc)
                report.results.append(
                    PairResult(chat_id=chat_id, location=location, snapshot=snapshot, delivery_error=str(exc))
                )
                return

            report.results.append(PairResult(chat_id=chat_id, location=location, snapshot=snapshot, delivered=True))
