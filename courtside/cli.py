"""
CLI commands for CourtSide Pulse.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from courtside.app import CourtsideApp
from courtside.config import AppConfig, load_config
from courtside.data.catalog import TIMEZONES, TeamCatalog
from courtside.database.connection import Database
from courtside.database.models import Preferences
from courtside.digest.models import DigestMode, FetchStatus
from courtside.digest.state import FetchPhase
from courtside.preferences import (
    OnboardingDraft,
    PreferenceGate,
    PreferenceValidationError,
)

logger = logging.getLogger(__name__)


def set_preferences(
    gate: PreferenceGate,
    catalog: TeamCatalog,
    email: Optional[str] = None,
    timezone: Optional[str] = None,
    team_ids: Optional[list[str]] = None,
) -> dict:
    """Create or update preferences, starting from what is saved."""
    draft = OnboardingDraft(gate.preferences)
    if email is not None:
        draft.email = email
    if timezone is not None:
        draft.timezone = timezone

    not_found = []
    if team_ids is not None:
        draft.teams = []
        for team_id in team_ids:
            team = catalog.get(team_id)
            if team is None:
                not_found.append(team_id)
            elif not draft.add_team(team):
                logger.warning(f"Skipped {team_id}: duplicate or team limit reached")

    if not draft.can_complete:
        raise PreferenceValidationError("An email and at least one team are required")

    preferences = draft.build()
    gate.complete_onboarding(preferences)
    return {"preferences": preferences, "not_found": not_found}


def format_preferences(preferences: Preferences) -> str:
    lines = [
        f"Email: {preferences.email}",
        f"Timezone: {preferences.timezone}",
        f"Teams ({len(preferences.teams)}):",
    ]
    lines.extend(f"  {t.id}: {t.label}" for t in preferences.teams)
    return "\n".join(lines)


async def generate(app: CourtsideApp, mode: DigestMode, as_html: bool = False) -> int:
    result = await app.generate_now(mode)
    if result.status is FetchStatus.SKIPPED:
        print("Nothing to generate: set preferences first")
        return 1
    if result.status is FetchStatus.FAILED:
        print(f"{mode.label} could not be generated: {result.error}")
        return 1
    print(app.render_email(mode) if as_html else app.render(mode))
    return 0


async def run_scheduler(app: CourtsideApp, refresh_seconds: float = 1.0) -> None:
    """Run the scheduler until cancelled, printing cards as they arrive."""
    app.start()
    if not app.gate.enabled:
        print("Scheduler idle: complete onboarding with 'prefs set' first")

    printed = {mode: app.view.mode_state(mode) for mode in DigestMode}
    try:
        while True:
            await asyncio.sleep(refresh_seconds)
            for mode in DigestMode:
                state = app.view.mode_state(mode)
                if state != printed[mode] and state.phase is FetchPhase.LOADED:
                    print(app.render(mode))
                    print()
                printed[mode] = state
            if app.view.notification:
                print(f">> {app.view.notification}")
                app.view.dismiss_notification()
    finally:
        app.dispose()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="CourtSide Pulse")
    parser.add_argument("--config", help="Path to config file")
    parser.add_argument("--db", help="Database path (overrides config)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # Preference commands
    prefs_parser = subparsers.add_parser("prefs", help="Preference management")
    prefs_subparsers = prefs_parser.add_subparsers(dest="action")

    set_parser = prefs_subparsers.add_parser("set", help="Set preferences")
    set_parser.add_argument("--email", help="Destination email")
    set_parser.add_argument("--timezone", help="IANA timezone, e.g. America/New_York")
    set_parser.add_argument("--teams", help="Comma-separated team ids")

    prefs_subparsers.add_parser("show", help="Show preferences")
    prefs_subparsers.add_parser("clear", help="Clear preferences")

    # Team commands
    teams_parser = subparsers.add_parser("teams", help="Team catalog")
    teams_subparsers = teams_parser.add_subparsers(dest="action")

    search_parser = teams_subparsers.add_parser("search", help="Search teams")
    search_parser.add_argument("query", help="Team or league name")

    list_parser = teams_subparsers.add_parser("list", help="List teams")
    list_parser.add_argument("--league", help="League filter")

    subparsers.add_parser("timezones", help="List supported timezones")

    # Digest commands
    generate_parser = subparsers.add_parser("generate", help="Generate a digest now")
    generate_parser.add_argument("mode", choices=[m.value for m in DigestMode])
    generate_parser.add_argument(
        "--html", action="store_true", help="Print the HTML email body"
    )

    subparsers.add_parser("run", help="Run the digest scheduler")

    args = parser.parse_args()

    config: AppConfig = load_config(args.config)
    if args.db:
        config.storage.path = args.db

    # Setup logging
    log_level = logging.DEBUG if args.debug else config.advanced.log_level.upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Initialize database
    db = Database(config.storage.path)
    db.initialize()

    app = CourtsideApp(config=config, db=db)
    app.gate.load()
    exit_code = 0

    if args.command == "prefs":
        if args.action == "set":
            team_ids = None
            if args.teams:
                team_ids = [t.strip() for t in args.teams.split(",") if t.strip()]
            try:
                result = set_preferences(
                    app.gate,
                    app.catalog,
                    email=args.email,
                    timezone=args.timezone,
                    team_ids=team_ids,
                )
            except PreferenceValidationError as e:
                print(f"Invalid preferences: {e}")
                exit_code = 1
            else:
                print(format_preferences(result["preferences"]))
                if result["not_found"]:
                    print(f"Not found: {result['not_found']}")
        elif args.action == "show":
            if app.gate.preferences:
                print(format_preferences(app.gate.preferences))
            else:
                print("No preferences saved")
        elif args.action == "clear":
            app.gate.clear()
            print("Preferences cleared")

    elif args.command == "teams":
        if args.action == "search":
            for team in app.catalog.search(args.query):
                print(f"{team.id}: {team.name} ({team.league})")
        elif args.action == "list":
            if args.league:
                teams = app.catalog.list_by_league(args.league)
            else:
                teams = app.catalog.list_all()
            for team in teams:
                print(f"{team.id}: {team.name} ({team.league})")

    elif args.command == "timezones":
        for label, zone in TIMEZONES:
            print(f"{zone}: {label}")

    elif args.command == "generate":
        exit_code = asyncio.run(generate(app, DigestMode(args.mode), as_html=args.html))

    elif args.command == "run":
        try:
            asyncio.run(run_scheduler(app))
        except KeyboardInterrupt:
            logger.info("Interrupted")

    else:
        parser.print_help()

    db.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
