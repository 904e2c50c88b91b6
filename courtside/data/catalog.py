"""
Static team catalog and supported timezones.
"""

import re
from typing import Iterable, Optional

from courtside.database.models import Team

LEAGUES = [
    "NBA",
    "NFL",
    "IPL",
    "Men's International Cricket",
    "Women's International Cricket",
]

# (label, IANA zone id)
TIMEZONES = [
    ("Pacific Time (PT)", "America/Los_Angeles"),
    ("Mountain Time (MT)", "America/Denver"),
    ("Central Time (CT)", "America/Chicago"),
    ("Eastern Time (ET)", "America/New_York"),
    ("Greenwich Mean Time (GMT)", "Etc/GMT"),
    ("British Summer Time (BST)", "Europe/London"),
    ("Central European Time (CET)", "Europe/Paris"),
    ("Indian Standard Time (IST)", "Asia/Kolkata"),
    ("Australian Eastern Time (AEST)", "Australia/Sydney"),
]

DEFAULT_TIMEZONE = "America/Los_Angeles"

_TEAM_NAMES = {
    "NBA": [
        "Atlanta Hawks", "Boston Celtics", "Brooklyn Nets", "Charlotte Hornets",
        "Chicago Bulls", "Cleveland Cavaliers", "Dallas Mavericks", "Denver Nuggets",
        "Detroit Pistons", "Golden State Warriors", "Houston Rockets", "Indiana Pacers",
        "LA Clippers", "Los Angeles Lakers", "Memphis Grizzlies", "Miami Heat",
        "Milwaukee Bucks", "Minnesota Timberwolves", "New Orleans Pelicans",
        "New York Knicks", "Oklahoma City Thunder", "Orlando Magic",
        "Philadelphia 76ers", "Phoenix Suns", "Portland Trail Blazers",
        "Sacramento Kings", "San Antonio Spurs", "Toronto Raptors", "Utah Jazz",
        "Washington Wizards",
    ],
    "NFL": [
        "Arizona Cardinals", "Atlanta Falcons", "Baltimore Ravens", "Buffalo Bills",
        "Carolina Panthers", "Chicago Bears", "Cincinnati Bengals", "Cleveland Browns",
        "Dallas Cowboys", "Denver Broncos", "Detroit Lions", "Green Bay Packers",
        "Houston Texans", "Indianapolis Colts", "Jacksonville Jaguars",
        "Kansas City Chiefs", "Las Vegas Raiders", "Los Angeles Chargers",
        "Los Angeles Rams", "Miami Dolphins", "Minnesota Vikings",
        "New England Patriots", "New Orleans Saints", "New York Giants",
        "New York Jets", "Philadelphia Eagles", "Pittsburgh Steelers",
        "San Francisco 49ers", "Seattle Seahawks", "Tampa Bay Buccaneers",
        "Tennessee Titans", "Washington Commanders",
    ],
    "IPL": [
        "Chennai Super Kings", "Delhi Capitals", "Gujarat Titans",
        "Kolkata Knight Riders", "Lucknow Super Giants", "Mumbai Indians",
        "Punjab Kings", "Rajasthan Royals", "Royal Challengers Bangalore",
        "Sunrisers Hyderabad",
    ],
    "Men's International Cricket": [
        "India", "Australia", "England", "South Africa", "New Zealand", "Pakistan",
        "Sri Lanka", "West Indies", "Bangladesh", "Afghanistan", "Ireland",
        "Zimbabwe", "Netherlands", "Scotland",
    ],
    "Women's International Cricket": [
        "Australia Women", "England Women", "India Women", "New Zealand Women",
        "South Africa Women", "West Indies Women", "Pakistan Women",
        "Sri Lanka Women", "Bangladesh Women", "Ireland Women",
    ],
}


def make_team_id(name: str, league: str) -> str:
    """Build a catalog id, e.g. "NBA-los-angeles-lakers"."""
    slug = re.sub(r"\s+", "-", name).lower()
    return f"{league}-{slug}"


def _build_teams() -> list[Team]:
    teams = []
    for league in LEAGUES:
        for name in _TEAM_NAMES[league]:
            teams.append(Team(id=make_team_id(name, league), name=name, league=league))
    return teams


class TeamCatalog:
    """Queryable, immutable set of teams."""

    MAX_RESULTS = 8

    def __init__(self, teams: Optional[Iterable[Team]] = None):
        self._teams = list(teams) if teams is not None else _build_teams()
        self._by_id = {team.id: team for team in self._teams}
        if len(self._by_id) != len(self._teams):
            raise ValueError("Team ids must be unique within the catalog")

    def __len__(self) -> int:
        return len(self._teams)

    def list_all(self) -> list[Team]:
        """List all teams in catalog order."""
        return list(self._teams)

    def list_by_league(self, league: str) -> list[Team]:
        """List teams in a league (case-insensitive)."""
        league = league.lower()
        return [t for t in self._teams if t.league.lower() == league]

    def get(self, team_id: str) -> Optional[Team]:
        """Get a team by id."""
        return self._by_id.get(team_id)

    def search(self, query: str) -> list[Team]:
        """
        Search teams by name or league.

        Args:
            query: Case-insensitive substring

        Returns:
            At most MAX_RESULTS matching teams; empty for a blank query
        """
        if not query:
            return []

        needle = query.lower()
        matches = [
            t for t in self._teams
            if needle in t.name.lower() or needle in t.league.lower()
        ]
        return matches[: self.MAX_RESULTS]

    def resolve(self, team_ids: Iterable[str]) -> list[Team]:
        """
        Resolve ids to teams, preserving order.

        Unknown and repeated ids are skipped.
        """
        teams = []
        seen = set()
        for team_id in team_ids:
            team = self._by_id.get(team_id)
            if team is None or team.id in seen:
                continue
            seen.add(team.id)
            teams.append(team)
        return teams
