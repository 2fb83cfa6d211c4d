"""Navigation blockers — hold a navigation until the user confirms.

Useful for forms with unsaved changes::

    blocker = navigator.block(
        lambda t: form.dirty and t.current.pathname != t.next.pathname
    )

    # later, after navigator.navigate("/elsewhere") was held:
    if blocker.state is BlockerState.BLOCKED:
        if confirm("Leave without saving?"):
            blocker.proceed()
        else:
            blocker.reset()

Blockers are consulted for pushes, replaces, and history moves started
through the navigator.  Redirects issued by steps are never blocked.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from wayfinder.navigation.history import HistoryAction
from wayfinder.navigation.location import Location

if TYPE_CHECKING:
    from wayfinder.navigation.state import NavigationAttempt

logger = logging.getLogger("wayfinder.navigation")


@dataclass(frozen=True, slots=True)
class Transition:
    """A navigation about to happen."""

    current: Location
    next: Location
    action: HistoryAction


type BlockerPredicate = Callable[[Transition], bool]


class BlockerState(StrEnum):
    UNBLOCKED = "unblocked"
    BLOCKED = "blocked"
    PROCEEDING = "proceeding"


class Blocker:
    """A registered predicate plus the navigation it is holding, if any.

    Created by ``Navigator.block()``.  Call ``release()`` to unregister.
    """

    __slots__ = ("_pending", "_predicate", "_release", "location", "state")

    def __init__(self, predicate: BlockerPredicate, release: Callable[[Blocker], None]) -> None:
        self._predicate = predicate
        self._release = release
        self._pending: Callable[[], Any] | None = None
        self.state = BlockerState.UNBLOCKED
        self.location: Location | None = None

    def should_block(self, transition: Transition) -> bool:
        if self.state is BlockerState.PROCEEDING:
            return False
        return bool(self._predicate(transition))

    def hold(self, transition: Transition, perform: Callable[[], Any]) -> None:
        """Park a navigation until ``proceed()`` or ``reset()``."""
        logger.debug("Blocked %s to %s", transition.action, transition.next.href)
        self.state = BlockerState.BLOCKED
        self.location = transition.next
        self._pending = perform

    def proceed(self) -> NavigationAttempt | None:
        """Perform the held navigation. No-op when nothing is held."""
        perform = self._pending
        if perform is None:
            return None
        self.state = BlockerState.PROCEEDING
        try:
            return perform()
        finally:
            self._clear()

    def reset(self) -> None:
        """Drop the held navigation and stay where we are."""
        self._clear()

    def release(self) -> None:
        """Unregister this blocker. A held navigation is dropped."""
        self._clear()
        self._release(self)

    def _clear(self) -> None:
        self.state = BlockerState.UNBLOCKED
        self.location = None
        self._pending = None

    def __repr__(self) -> str:
        return f"Blocker(state={self.state.value!r}, location={self.location!r})"
