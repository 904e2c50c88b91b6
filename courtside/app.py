"""
Application wiring.
"""

import logging
from datetime import datetime
from typing import Optional

from courtside.config import AppConfig
from courtside.data.catalog import TeamCatalog
from courtside.data.gemini import GeminiContentProvider
from courtside.data.provider import ContentProvider
from courtside.database.connection import Database
from courtside.database.repository import PreferenceRepository
from courtside.digest.fetcher import DigestFetcher
from courtside.digest.models import DigestMode, FetchResult, FetchStatus
from courtside.digest.render import render_html, render_text
from courtside.digest.scheduler import Clock, DigestScheduler, system_clock
from courtside.digest.state import ViewState
from courtside.digest.triggers import TriggerTime, ZONE_ERRORS, to_zone
from courtside.preferences import PreferenceGate

logger = logging.getLogger(__name__)


class CourtsideApp:
    """Main CourtSide Pulse application."""

    def __init__(
        self,
        config: AppConfig,
        db: Database,
        provider: Optional[ContentProvider] = None,
        clock: Clock = system_clock,
    ):
        """
        Initialize app.

        Args:
            config: Application configuration
            db: Initialized database
            provider: Content provider (defaults to Gemini)
            clock: Returns the current aware datetime
        """
        self.config = config
        self.db = db
        self.clock = clock

        self.catalog = TeamCatalog()
        self.gate = PreferenceGate(PreferenceRepository(db))
        self.view = ViewState()

        if provider is None:
            provider = GeminiContentProvider(
                api_key=config.provider.api_key,
                model=config.provider.model,
                clock=clock,
            )
        self.provider = provider

        self.fetcher = DigestFetcher(
            provider,
            self.view,
            timeout_seconds=config.provider.timeout_seconds,
        )
        self.scheduler = DigestScheduler(
            self.gate,
            self.fetcher,
            self.view,
            clock=clock,
            poll_interval=config.schedule.poll_interval_seconds,
            triggers=(
                TriggerTime(config.schedule.preview_time, DigestMode.PREVIEW),
                TriggerTime(config.schedule.summary_time, DigestMode.SUMMARY),
            ),
            grace_minutes=config.schedule.grace_minutes,
        )

    def start(self) -> None:
        """Load saved preferences and follow them. Needs a running loop."""
        self.gate.load()
        self.scheduler.attach()

    def dispose(self) -> None:
        """Stop scheduling and drop late fetch completions."""
        self.scheduler.detach()
        self.view.dispose()

    def select_mode(self, mode: DigestMode) -> None:
        self.view.select_mode(mode)

    async def generate_now(self, mode: DigestMode) -> FetchResult:
        """
        Manually generate a digest ("Generate now").

        Does nothing while the same mode is already loading.
        """
        preferences = self.gate.preferences
        if preferences is None:
            return FetchResult(mode=mode, status=FetchStatus.SKIPPED)

        if self.view.is_loading(mode):
            logger.info(f"{mode.label} already loading; ignoring request")
            return FetchResult(mode=mode, status=FetchStatus.SKIPPED)

        self.view.select_mode(mode)
        return await self.fetcher.fetch(mode, preferences.teams, preferences.timezone)

    def local_today(self) -> datetime:
        """Today in the user's zone, falling back to host time."""
        now = self.clock()
        preferences = self.gate.preferences
        if preferences is not None:
            try:
                return to_zone(now, preferences.timezone)
            except ZONE_ERRORS:
                pass
        return now.astimezone()

    def render(self, mode: Optional[DigestMode] = None) -> str:
        """Render a mode's card (the active one by default)."""
        preferences = self.gate.preferences
        if preferences is None:
            return "Complete onboarding to start receiving digests."
        mode = mode or self.view.active_mode
        return render_text(mode, self.view.mode_state(mode), preferences, self.local_today())

    def render_email(self, mode: Optional[DigestMode] = None) -> Optional[str]:
        """Render a mode's card as an HTML email body, or None without preferences."""
        preferences = self.gate.preferences
        if preferences is None:
            return None
        mode = mode or self.view.active_mode
        return render_html(mode, self.view.mode_state(mode), preferences, self.local_today())
