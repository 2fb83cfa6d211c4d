"""Attempt-scoped context via ContextVar.

Provides:
- ``get_attempt()``: The ``NavigationAttempt`` whose steps or loaders
  are currently running.
- ``get_navigator()``: The ``Navigator`` driving that attempt.

Both are set by the resolution pipeline for the duration of one
attempt.  Accessing them outside of a step, guard, or loader raises
``LookupError``.

``ContextVar`` is task-local under asyncio, so overlapping attempts
each see their own values.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wayfinder.navigation.navigator import Navigator
    from wayfinder.navigation.state import NavigationAttempt

attempt_var: ContextVar[NavigationAttempt] = ContextVar("wayfinder_attempt")
"""The attempt being resolved. Set by the pipeline before any step runs."""

navigator_var: ContextVar[Navigator] = ContextVar("wayfinder_navigator")
"""The navigator that started the attempt. Unset for one-shot ``resolve()``."""


def get_attempt() -> NavigationAttempt:
    """Return the attempt being resolved.

    Raises ``LookupError`` if called outside a resolution.
    """
    return attempt_var.get()


def get_navigator() -> Navigator:
    """Return the navigator driving the current attempt.

    Raises ``LookupError`` outside a navigator-driven resolution.
    """
    try:
        return navigator_var.get()
    except LookupError:
        msg = (
            "No navigator context. get_navigator() only works inside steps, "
            "guards, and loaders run by a Navigator (not one-shot resolve())."
        )
        raise LookupError(msg) from None
