"""
Data models for CourtSide Pulse.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Team:
    """A team from the static catalog."""

    id: str
    name: str
    league: str

    @property
    def label(self) -> str:
        """Team name with its league, as used in digest queries."""
        return f"{self.name} ({self.league})"

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "league": self.league}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Team":
        return cls(id=data["id"], name=data["name"], league=data["league"])


@dataclass
class Preferences:
    """User's delivery preferences."""

    email: str
    timezone: str  # IANA zone id, e.g. "America/Los_Angeles"
    teams: list[Team] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "timezone": self.timezone,
            "teams": [team.to_dict() for team in self.teams],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Preferences":
        return cls(
            email=data["email"],
            timezone=data["timezone"],
            teams=[Team.from_dict(t) for t in data.get("teams", [])],
        )
