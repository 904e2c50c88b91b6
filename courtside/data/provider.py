"""
Content provider interface.
"""

from abc import ABC, abstractmethod

from courtside.database.models import Team
from courtside.digest.models import GamePreview, GameSummary


class ProviderError(Exception):
    """Raised when the content provider can't produce a digest."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class MalformedResponseError(ProviderError):
    """Raised when the provider's payload is empty or doesn't match the schema."""

    def __init__(self, message: str):
        super().__init__(message, retryable=False)


class ContentProvider(ABC):
    """Produces structured game data for a set of teams."""

    @abstractmethod
    async def fetch_preview(self, teams: list[Team], timezone: str) -> list[GamePreview]:
        """
        Fetch today's upcoming games.

        Args:
            teams: Teams to look up
            timezone: IANA zone used for "today" and for game times

        Returns:
            Upcoming games, possibly empty

        Raises:
            ProviderError: If the provider fails or returns malformed data
        """

    @abstractmethod
    async def fetch_summary(self, teams: list[Team]) -> list[GameSummary]:
        """
        Fetch today's results.

        Args:
            teams: Teams to look up

        Returns:
            Completed games, possibly empty

        Raises:
            ProviderError: If the provider fails or returns malformed data
        """
