"""
Pytest configuration and shared fixtures.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from courtside.data.provider import ContentProvider
from courtside.database.connection import Database
from courtside.database.models import Preferences, Team
from courtside.database.repository import PreferenceRepository
from courtside.digest.fetcher import DigestFetcher
from courtside.digest.models import DigestMode, GamePreview, GameSummary
from courtside.digest.scheduler import DigestScheduler
from courtside.digest.state import ViewState
from courtside.preferences import PreferenceGate


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeProvider(ContentProvider):
    """Records calls; results, errors and release timing are controllable."""

    def __init__(self):
        self.calls: list[tuple[DigestMode, list[Team], Optional[str]]] = []
        self.preview_games: list[GamePreview] = []
        self.summary_games: list[GameSummary] = []
        self.errors: dict[DigestMode, Exception] = {}
        self.holds: dict[DigestMode, asyncio.Event] = {}

    def hold(self, mode: DigestMode) -> asyncio.Event:
        """Block fetches for mode until the returned event is set."""
        event = asyncio.Event()
        self.holds[mode] = event
        return event

    def calls_for(self, mode: DigestMode) -> list:
        return [call for call in self.calls if call[0] is mode]

    async def _respond(self, mode: DigestMode, games: list):
        hold = self.holds.get(mode)
        if hold is not None:
            await hold.wait()
        if mode in self.errors:
            raise self.errors[mode]
        return list(games)

    async def fetch_preview(self, teams, timezone):
        self.calls.append((DigestMode.PREVIEW, list(teams), timezone))
        return await self._respond(DigestMode.PREVIEW, self.preview_games)

    async def fetch_summary(self, teams):
        self.calls.append((DigestMode.SUMMARY, list(teams), None))
        return await self._respond(DigestMode.SUMMARY, self.summary_games)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# 2024-01-15 06:00 in Los Angeles (PST, UTC-8)
LA_PREVIEW_INSTANT = utc(2024, 1, 15, 14, 0, 0)
# 2024-01-15 22:00 in Los Angeles
LA_SUMMARY_INSTANT = utc(2024, 1, 16, 6, 0, 0)


@pytest.fixture
def lakers():
    return Team(id="NBA-lakers", name="Los Angeles Lakers", league="NBA")


@pytest.fixture
def preferences(lakers):
    return Preferences(
        email="fan@example.com",
        timezone="America/Los_Angeles",
        teams=[lakers],
    )


@pytest.fixture
def db():
    """Create in-memory database with schema."""
    db = Database(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def repository(db):
    return PreferenceRepository(db)


@pytest.fixture
def gate(preferences):
    gate = PreferenceGate()
    gate.complete_onboarding(preferences)
    return gate


@pytest.fixture
def clock():
    return FakeClock(LA_PREVIEW_INSTANT)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def view():
    return ViewState()


@pytest.fixture
def fetcher(provider, view):
    return DigestFetcher(provider, view)


@pytest.fixture
def scheduler(gate, fetcher, view, clock):
    return DigestScheduler(gate, fetcher, view, clock=clock, poll_interval=0.01)
