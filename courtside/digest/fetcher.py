"""
Digest fetch primitive.

Every fetch, manual or scheduled, goes through DigestFetcher.fetch so the
loading flag and result slots change the same way regardless of the caller.
"""

import asyncio
import logging
from typing import Optional

from courtside.data.provider import ContentProvider, ProviderError
from courtside.database.models import Team
from .models import DigestMode, FetchResult, FetchStatus
from .state import ViewState, begin_fetch, complete_fetch

logger = logging.getLogger(__name__)


class DigestFetcher:
    """Calls the content provider and records the outcome in the view state."""

    def __init__(
        self,
        provider: ContentProvider,
        view: ViewState,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize fetcher.

        Args:
            provider: Content provider
            view: View state to update
            timeout_seconds: Give up on the provider after this long (None = wait)
        """
        self.provider = provider
        self.view = view
        self.timeout_seconds = timeout_seconds

    async def fetch(
        self,
        mode: DigestMode,
        teams: list[Team],
        timezone: str,
    ) -> FetchResult:
        """
        Fetch one digest.

        Overlapping calls for the same mode are not coalesced here; callers
        must avoid them. Calls for different modes are independent.

        Args:
            mode: Digest to generate
            teams: Teams to cover
            timezone: User's zone, only used for previews

        Returns:
            FetchResult; status FAILED carries the reason in ``error``
        """
        if not teams:
            logger.debug(f"Skipping {mode.value} fetch: no teams selected")
            return FetchResult(mode=mode, status=FetchStatus.SKIPPED)

        self.view.apply(mode, begin_fetch)
        try:
            result = await self._call_provider(mode, teams, timezone)
        except asyncio.CancelledError:
            self.view.apply(
                mode,
                complete_fetch,
                FetchResult(mode=mode, status=FetchStatus.FAILED, error="cancelled"),
            )
            raise
        except Exception as e:
            logger.exception(f"Error recording {mode.label}: {e}")
            result = FetchResult(mode=mode, status=FetchStatus.FAILED, error=str(e))

        self.view.apply(mode, complete_fetch, result)
        return result

    async def _call_provider(
        self,
        mode: DigestMode,
        teams: list[Team],
        timezone: str,
    ) -> FetchResult:
        try:
            if mode is DigestMode.PREVIEW:
                call = self.provider.fetch_preview(teams, timezone)
            else:
                call = self.provider.fetch_summary(teams)
            games = await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"{mode.label} timed out after {self.timeout_seconds}s"
            )
            return FetchResult(mode=mode, status=FetchStatus.FAILED, error="timeout")
        except ProviderError as e:
            logger.warning(f"{mode.label} failed (retryable={e.retryable}): {e}")
            return FetchResult(mode=mode, status=FetchStatus.FAILED, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error fetching {mode.label}: {e}")
            return FetchResult(mode=mode, status=FetchStatus.FAILED, error=str(e))

        if not isinstance(games, (list, tuple)):
            logger.warning(
                f"{mode.label} returned {type(games).__name__} instead of a list"
            )
            return FetchResult(
                mode=mode, status=FetchStatus.FAILED, error="malformed response"
            )

        logger.info(f"{mode.label} fetched: {len(games)} game(s)")
        return FetchResult(mode=mode, status=FetchStatus.SUCCESS, games=list(games))
