"""
Digest content models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class DigestMode(Enum):
    """Which digest a trigger or fetch refers to."""

    PREVIEW = "preview"
    SUMMARY = "summary"

    @property
    def label(self) -> str:
        """Human-readable digest name."""
        if self is DigestMode.PREVIEW:
            return "Morning Preview"
        return "Evening Summary"


@dataclass(frozen=True)
class GamePreview:
    """An upcoming game."""

    matchup: str
    time: str
    broadcaster: str


@dataclass(frozen=True)
class GameSummary:
    """A completed game's result."""

    matchup: str
    score: str
    details_link: str


Game = Union[GamePreview, GameSummary]


class FetchStatus(Enum):
    """Outcome of a fetch primitive invocation."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # nothing to fetch, state untouched


@dataclass
class FetchResult:
    """Result of a digest fetch.

    ``games`` is empty both for a day with no games and for a failure;
    ``status`` tells the two apart.
    """

    mode: DigestMode
    status: FetchStatus
    games: list[Game] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.SUCCESS
