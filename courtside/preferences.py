"""
Onboarding and preference state.

PreferenceGate owns the user's preferences and whether onboarding is
complete; the digest scheduler is enabled only while both hold.
"""

import logging
from typing import Callable, Optional

from courtside.data.catalog import DEFAULT_TIMEZONE
from courtside.database.models import Preferences, Team
from courtside.database.repository import PreferenceRepository
from courtside.digest.triggers import is_valid_timezone

logger = logging.getLogger(__name__)

MAX_TEAMS = 10

Listener = Callable[["PreferenceGate"], None]


class PreferenceValidationError(Exception):
    """Raised when preferences can't be saved."""

    pass


def validate_preferences(preferences: Preferences) -> None:
    """
    Validate preferences before they are saved.

    Raises:
        PreferenceValidationError: If email, timezone or teams are invalid
    """
    if not preferences.email or not preferences.email.strip():
        raise PreferenceValidationError("Email address is required")

    if not is_valid_timezone(preferences.timezone):
        raise PreferenceValidationError(f"Unknown timezone: {preferences.timezone!r}")

    if not preferences.teams:
        raise PreferenceValidationError("Select at least one team")

    if len(preferences.teams) > MAX_TEAMS:
        raise PreferenceValidationError(f"Select at most {MAX_TEAMS} teams")

    ids = [team.id for team in preferences.teams]
    if len(set(ids)) != len(ids):
        raise PreferenceValidationError("Teams must be unique")


class OnboardingDraft:
    """Editable copy of preferences while onboarding or managing."""

    def __init__(
        self,
        initial: Optional[Preferences] = None,
        default_timezone: str = DEFAULT_TIMEZONE,
    ):
        self.email = initial.email if initial else ""
        self.timezone = initial.timezone if initial else default_timezone
        self.teams: list[Team] = list(initial.teams) if initial else []
        self.is_update = initial is not None

    @property
    def is_full(self) -> bool:
        return len(self.teams) >= MAX_TEAMS

    @property
    def can_complete(self) -> bool:
        return bool(self.email.strip()) and len(self.teams) > 0

    def add_team(self, team: Team) -> bool:
        """Add a team; duplicates and additions past the cap are ignored."""
        if any(t.id == team.id for t in self.teams):
            return False
        if self.is_full:
            return False
        self.teams.append(team)
        return True

    def remove_team(self, team_id: str) -> bool:
        before = len(self.teams)
        self.teams = [t for t in self.teams if t.id != team_id]
        return len(self.teams) != before

    def build(self) -> Preferences:
        return Preferences(
            email=self.email.strip(),
            timezone=self.timezone,
            teams=list(self.teams),
        )


class PreferenceGate:
    """Holds preferences and the onboarding flag, and reports changes."""

    def __init__(self, repository: Optional[PreferenceRepository] = None):
        self.repository = repository
        self._preferences: Optional[Preferences] = None
        self._onboarded = False
        self._listeners: list[Listener] = []

    @property
    def preferences(self) -> Optional[Preferences]:
        return self._preferences

    @property
    def onboarded(self) -> bool:
        return self._onboarded

    @property
    def enabled(self) -> bool:
        """Whether scheduled digests should run."""
        return (
            self._onboarded
            and self._preferences is not None
            and len(self._preferences.teams) > 0
        )

    @property
    def active_preferences(self) -> Optional[Preferences]:
        """Preferences when enabled, otherwise None."""
        return self._preferences if self.enabled else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self) -> bool:
        """
        Restore saved preferences.

        Returns:
            True if valid preferences were found and onboarding is complete
        """
        if self.repository is None:
            return False

        preferences = self.repository.load()
        if preferences is None:
            return False

        try:
            validate_preferences(preferences)
        except PreferenceValidationError as e:
            logger.warning(f"Ignoring stored preferences: {e}")
            self._preferences = preferences
            self._onboarded = False
            self._notify()
            return False

        self._preferences = preferences
        self._onboarded = True
        self._notify()
        return True

    def complete_onboarding(self, preferences: Preferences) -> None:
        """
        Validate, persist and activate preferences.

        Raises:
            PreferenceValidationError: If preferences are invalid
        """
        validate_preferences(preferences)

        if self.repository is not None:
            self.repository.save(preferences)

        self._preferences = preferences
        self._onboarded = True
        logger.info(
            f"Preferences saved for {preferences.email}: "
            f"{len(preferences.teams)} team(s), {preferences.timezone}"
        )
        self._notify()

    def manage(self) -> OnboardingDraft:
        """Reopen onboarding with the current preferences as a draft."""
        self._onboarded = False
        self._notify()
        return OnboardingDraft(self._preferences)

    def clear(self) -> None:
        """Forget preferences entirely."""
        if self.repository is not None:
            self.repository.clear()
        self._preferences = None
        self._onboarded = False
        logger.info("Preferences cleared")
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
