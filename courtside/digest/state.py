"""
Per-mode digest view state and its transitions.

Each mode moves through Idle -> Loading -> Loaded | Failed and can re-enter
Loading from either end state. Transitions are pure functions over
ModeState; ViewState applies them and owns the active tab and notification.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from .models import DigestMode, FetchResult, FetchStatus, Game

logger = logging.getLogger(__name__)


class FetchPhase(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class ModeState:
    """Snapshot of one mode's fetch state.

    ``data`` is None until a fetch succeeds; an empty tuple means the last
    successful fetch found no games.
    """

    phase: FetchPhase = FetchPhase.IDLE
    data: Optional[tuple[Game, ...]] = None

    @property
    def loading(self) -> bool:
        return self.phase is FetchPhase.LOADING


def begin_fetch(state: ModeState) -> ModeState:
    """Enter Loading, keeping whatever data is already shown."""
    return replace(state, phase=FetchPhase.LOADING)


def complete_fetch(state: ModeState, result: FetchResult) -> ModeState:
    """Apply a resolved fetch.

    Success replaces the data wholesale. Failure keeps the previous data.
    """
    if result.status is FetchStatus.SUCCESS:
        return ModeState(phase=FetchPhase.LOADED, data=tuple(result.games))
    if result.status is FetchStatus.FAILED:
        return ModeState(phase=FetchPhase.FAILED, data=state.data)
    return state


class ViewState:
    """State consumed by the presentation layer."""

    def __init__(self, active_mode: DigestMode = DigestMode.PREVIEW):
        self.active_mode = active_mode
        self.notification: Optional[str] = None
        self._modes = {mode: ModeState() for mode in DigestMode}
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def mode_state(self, mode: DigestMode) -> ModeState:
        return self._modes[mode]

    def is_loading(self, mode: DigestMode) -> bool:
        return self._modes[mode].loading

    @property
    def loading(self) -> bool:
        """Whether the active tab is loading."""
        return self.is_loading(self.active_mode)

    @property
    def preview_data(self) -> Optional[tuple[Game, ...]]:
        return self._modes[DigestMode.PREVIEW].data

    @property
    def summary_data(self) -> Optional[tuple[Game, ...]]:
        return self._modes[DigestMode.SUMMARY].data

    def apply(
        self,
        mode: DigestMode,
        transition: Callable[..., ModeState],
        *args,
    ) -> bool:
        """
        Apply a transition to one mode.

        Returns:
            False if the view was torn down and the write was dropped
        """
        if self._disposed:
            logger.debug(f"Ignoring {transition.__name__} for {mode.value}: view disposed")
            return False
        self._modes[mode] = transition(self._modes[mode], *args)
        return True

    def select_mode(self, mode: DigestMode) -> None:
        """Switch the active tab. Never touches either mode's state."""
        if not self._disposed:
            self.active_mode = mode

    def notify(self, message: str) -> bool:
        if self._disposed:
            return False
        self.notification = message
        return True

    def dismiss_notification(self) -> None:
        self.notification = None

    def dispose(self) -> None:
        """Tear down; later writes are ignored."""
        self._disposed = True
