"""
Daily trigger times and dedupe keys.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import DigestMode

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60

# Errors ZoneInfo raises for unknown or unusable zone ids
ZONE_ERRORS = (ZoneInfoNotFoundError, ValueError, TypeError)


@dataclass(frozen=True)
class TriggerTime:
    """A daily clock time ("HH:MM", 24h) that fires a digest."""

    time: str
    mode: DigestMode

    def __post_init__(self):
        if not TIME_PATTERN.match(self.time):
            raise ValueError(f"Invalid trigger time: {self.time!r}")

    @property
    def minute_of_day(self) -> int:
        hours, minutes = self.time.split(":")
        return int(hours) * 60 + int(minutes)


DEFAULT_TRIGGERS = (
    TriggerTime("06:00", DigestMode.PREVIEW),
    TriggerTime("22:00", DigestMode.SUMMARY),
)


@dataclass(frozen=True)
class TriggerMatch:
    """A trigger that matched the current minute."""

    trigger: TriggerTime
    key: str

    @property
    def mode(self) -> DigestMode:
        return self.trigger.mode


def is_valid_timezone(timezone: str) -> bool:
    """Check that timezone names a known IANA zone."""
    if not timezone:
        return False
    try:
        ZoneInfo(timezone)
    except ZONE_ERRORS:
        return False
    return True


def to_zone(now: datetime, timezone: str) -> datetime:
    """
    Express an instant in the given zone.

    Raises:
        ZoneInfoNotFoundError, ValueError: If the zone id is unusable
    """
    return now.astimezone(ZoneInfo(timezone))


def clock_label(local: datetime) -> str:
    """Minute-granularity 24h label, e.g. "06:00"."""
    return local.strftime("%H:%M")


def trigger_key(local: datetime, trigger: TriggerTime) -> str:
    """Dedupe key for a trigger on the local calendar day.

    e.g. "Mon Jan 01 2024-06:00"
    """
    return f"{local:%a %b %d %Y}-{trigger.time}"


def match_trigger(
    now: datetime,
    timezone: str,
    triggers: Sequence[TriggerTime] = DEFAULT_TRIGGERS,
    grace_minutes: int = 0,
) -> Optional[TriggerMatch]:
    """
    Find the trigger matching the current minute in the user's zone.

    With grace_minutes > 0 a trigger also matches for that many minutes
    after its time, including past midnight; the key carries the date the
    trigger time fell on, so it still fires at most once per day.

    Args:
        now: Current instant (timezone-aware)
        timezone: User's IANA zone id
        triggers: Recognized trigger times
        grace_minutes: Catch-up window after each trigger time

    Returns:
        TriggerMatch, or None when no trigger applies

    Raises:
        ZoneInfoNotFoundError, ValueError: If the zone id is unusable
    """
    local = to_zone(now, timezone)
    minute = local.hour * 60 + local.minute

    for trigger in triggers:
        late = (minute - trigger.minute_of_day) % MINUTES_PER_DAY
        if late <= grace_minutes:
            fired_on = local - timedelta(minutes=late)
            return TriggerMatch(trigger=trigger, key=trigger_key(fired_on, trigger))
    return None
