"""
Gemini-backed content provider.

Asks Gemini (with Google Search grounding) for today's games and parses the
JSON array it returns.
"""

import json
import logging
from datetime import datetime, timezone as dt_timezone
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from google import genai
from google.genai import errors, types

from courtside.database.models import Team
from courtside.digest.models import GamePreview, GameSummary
from .provider import ContentProvider, MalformedResponseError, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-pro-preview"

PREVIEW_FIELDS = ("matchup", "time", "broadcaster")
SUMMARY_FIELDS = ("matchup", "score", "detailsLink")


def _utcnow() -> datetime:
    return datetime.now(dt_timezone.utc)


def _long_date(moment: datetime) -> str:
    """Format like "Monday, January 1, 2024"."""
    return f"{moment:%A}, {moment:%B} {moment.day}, {moment.year}"


def _array_schema(fields: tuple[str, ...]) -> types.Schema:
    return types.Schema(
        type=types.Type.ARRAY,
        items=types.Schema(
            type=types.Type.OBJECT,
            properties={name: types.Schema(type=types.Type.STRING) for name in fields},
            required=list(fields),
        ),
    )


def build_preview_prompt(teams: list[Team], timezone: str, today: str) -> str:
    team_names = ", ".join(team.label for team in teams)
    return f"""
Today is {today}.
Check if any of the following sports teams have a scheduled game today: {team_names}.
Search for the official schedule for today (date in {timezone}).
Return a list of games. If a team is not playing today, do not include it.
If no teams are playing, return an empty list.
For each game found, provide:
- competing teams (e.g., "Lakers vs Warriors")
- time (Must be converted to {timezone} timezone. E.g. "7:00 PM PT")
- where to watch (TV channel or streaming service)
"""


def build_summary_prompt(teams: list[Team], today: str) -> str:
    team_names = ", ".join(team.label for team in teams)
    return f"""
Today is {today}.
Find the final scores or current status for games played today by these teams: {team_names}.
Search for the results.
Return a list of results.
For each game, provide:
- matchup (e.g. "India vs Australia")
- score (e.g. "India won by 20 runs" or "105 - 98")
- detailsLink (a valid URL to a google search or sports news page for this specific game)
"""


def parse_items(text: Optional[str], fields: tuple[str, ...]) -> list[dict[str, str]]:
    """
    Parse a JSON array of objects carrying the given string fields.

    Raises:
        MalformedResponseError: If the payload is empty, not JSON, or an item
            is missing a field
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response payload")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

    if not isinstance(payload, list):
        raise MalformedResponseError(
            f"Expected a JSON array, got {type(payload).__name__}"
        )

    items = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise MalformedResponseError(f"Item {index} is not an object")
        missing = [name for name in fields if not isinstance(item.get(name), str)]
        if missing:
            raise MalformedResponseError(
                f"Item {index} is missing fields: {', '.join(missing)}"
            )
        items.append({name: item[name] for name in fields})
    return items


class GeminiContentProvider(ContentProvider):
    """Content provider using the Gemini API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Optional[Any] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Gemini API key; the SDK reads GEMINI_API_KEY when omitted
            model: Model name
            client: Preconfigured genai.Client (mainly for tests)
            clock: Returns the current aware datetime
        """
        self.api_key = api_key
        self.model = model
        self.clock = clock
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key or None)
        return self._client

    async def fetch_preview(self, teams: list[Team], timezone: str) -> list[GamePreview]:
        today = _long_date(self.clock().astimezone(ZoneInfo(timezone)))
        prompt = build_preview_prompt(teams, timezone, today)
        text = await self._generate(prompt, PREVIEW_FIELDS)
        return [GamePreview(**item) for item in parse_items(text, PREVIEW_FIELDS)]

    async def fetch_summary(self, teams: list[Team]) -> list[GameSummary]:
        # Results are reported for the host's own calendar day
        today = _long_date(self.clock().astimezone())
        prompt = build_summary_prompt(teams, today)
        text = await self._generate(prompt, SUMMARY_FIELDS)
        return [
            GameSummary(
                matchup=item["matchup"],
                score=item["score"],
                details_link=item["detailsLink"],
            )
            for item in parse_items(text, SUMMARY_FIELDS)
        ]

    async def _generate(self, prompt: str, fields: tuple[str, ...]) -> Optional[str]:
        """Run a grounded JSON generation and return the raw text."""
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            response_schema=_array_schema(fields),
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except errors.ClientError as e:
            raise ProviderError(f"Gemini rejected the request: {e}", retryable=False) from e
        except errors.APIError as e:
            raise ProviderError(f"Gemini API error: {e}") from e

        logger.debug(f"Gemini returned {len(response.text or '')} characters")
        return response.text
