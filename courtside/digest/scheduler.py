"""
Local digest scheduler.

Polls the clock, and when the user's local time reaches a trigger time
fires one digest fetch for that day.
"""

import asyncio
import logging
from datetime import datetime, timezone as dt_timezone
from typing import Callable, Optional, Sequence

from courtside.database.models import Preferences
from courtside.preferences import PreferenceGate
from .fetcher import DigestFetcher
from .models import DigestMode, FetchResult
from .state import ViewState
from .triggers import DEFAULT_TRIGGERS, ZONE_ERRORS, TriggerTime, match_trigger

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(dt_timezone.utc)


class DigestScheduler:
    """Fires the morning preview and evening summary once per day each."""

    def __init__(
        self,
        gate: PreferenceGate,
        fetcher: DigestFetcher,
        view: ViewState,
        clock: Clock = system_clock,
        poll_interval: float = 5.0,
        triggers: Sequence[TriggerTime] = DEFAULT_TRIGGERS,
        grace_minutes: int = 0,
    ):
        """
        Initialize scheduler.

        Args:
            gate: Source of preferences and the enabled flag
            fetcher: Fetch primitive shared with manual generation
            view: View state the fetcher writes to
            clock: Returns the current aware datetime
            poll_interval: Seconds between ticks
            triggers: Daily trigger times
            grace_minutes: Catch-up window after each trigger time
        """
        self.gate = gate
        self.fetcher = fetcher
        self.view = view
        self.clock = clock
        self.poll_interval = poll_interval
        self.triggers = tuple(triggers)
        self.grace_minutes = grace_minutes

        self.last_fired_key: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def inflight(self) -> set[asyncio.Task]:
        """Digest fetches started by triggers that haven't resolved yet."""
        return set(self._inflight)

    def attach(self) -> None:
        """Follow the gate: start when enabled, stop when disabled."""
        if self._unsubscribe is None:
            self._unsubscribe = self.gate.subscribe(lambda gate: self.refresh())
        self.refresh()

    def detach(self) -> None:
        """Stop following the gate and stop polling."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.stop()

    def refresh(self) -> None:
        if self.gate.enabled:
            self.start()
        else:
            self.stop()

    def start(self) -> None:
        """Start polling. Must be called from a running event loop."""
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())
        logger.info(f"Digest scheduler started (every {self.poll_interval}s)")

    def stop(self) -> None:
        """Stop polling. In-flight fetches are left to resolve."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("Digest scheduler stopped")

    async def _run(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self.poll_interval)

    def tick(self) -> Optional[asyncio.Task]:
        """
        Evaluate the current minute once.

        The dedupe key is compared and recorded before the fetch is
        scheduled, with no await in between.

        Returns:
            The started fetch task, or None if nothing fired
        """
        preferences = self.gate.active_preferences
        if preferences is None:
            return None

        now = self.clock()
        try:
            match = match_trigger(
                now, preferences.timezone, self.triggers, self.grace_minutes
            )
        except ZONE_ERRORS as e:
            logger.warning(f"Cannot evaluate triggers for {preferences.timezone!r}: {e}")
            return None

        if match is None or match.key == self.last_fired_key:
            return None

        self.last_fired_key = match.key
        logger.info(f"Trigger {match.key} fired: {match.mode.label}")

        self.view.select_mode(match.mode)
        task = asyncio.get_running_loop().create_task(
            self._fire(match.mode, preferences)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _fire(self, mode: DigestMode, preferences: Preferences) -> FetchResult:
        result = await self.fetcher.fetch(mode, preferences.teams, preferences.timezone)
        if result.ok:
            self.view.notify(f"{mode.label} sent to {preferences.email}")
        else:
            logger.info(f"{mode.label} not delivered ({result.status.value})")
        return result
