"""Navigation attempts, cancellation tokens, and committed state snapshots.

``NavigationState`` is the only thing observers ever see.  It is a frozen
dataclass whose mappings are read-only proxies and whose sequences are
tuples, so a snapshot handed to a subscriber can never change under it.
The navigator publishes a *new* snapshot for every transition.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType
from typing import Any

import anyio

from wayfinder.navigation.history import HistoryAction
from wayfinder.navigation.location import Location
from wayfinder.routing.route import MatchResult, RouteNode

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class Phase(StrEnum):
    """Navigator state machine phases."""

    IDLE = "idle"
    RESOLVING = "resolving"
    REDIRECTING = "redirecting"
    BLOCKED = "blocked"
    COMMITTED = "committed"


class Status(StrEnum):
    """Outcome class of a resolution, with an HTTP-equivalent code."""

    OK = "ok"
    REDIRECT = "redirect"
    NOT_FOUND = "not-found"

    @property
    def code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {Status.OK: 200, Status.REDIRECT: 302, Status.NOT_FOUND: 404}


class CancellationToken:
    """Cooperative cancellation signal for one navigation attempt.

    Cancelling never interrupts work already running.  Steps and loaders
    may poll ``cancelled`` or await ``wait()`` to abandon outstanding
    I/O early, but the navigator drops stale results at commit time
    regardless.
    """

    __slots__ = ("_callbacks", "_cancelled", "_event")

    def __init__(self) -> None:
        self._cancelled = False
        self._event: anyio.Event | None = None
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Mark the token cancelled. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._event is not None:
            self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Run *callback* on cancellation (immediately if already cancelled)."""
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = anyio.Event()
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"


@dataclass(frozen=True, slots=True)
class NavigationAttempt:
    """One resolution attempt.

    Exactly one attempt is current at a time.  A result may only be
    committed while ``attempt.generation`` equals the navigator's latest
    generation.

    Attributes:
        generation: Monotonically increasing attempt id.
        location: The location being resolved.
        token: Cancellation token handed to every step and loader.
        redirects: Paths visited by the redirect chain that led here,
            oldest first.
        action: History action that produced ``location``.
        prevent_scroll_reset: The caller asked to keep the scroll position.
    """

    generation: int
    location: Location
    token: CancellationToken = field(default_factory=CancellationToken, compare=False)
    redirects: tuple[str, ...] = ()
    action: HistoryAction = HistoryAction.POP
    prevent_scroll_reset: bool = False


@dataclass(frozen=True, slots=True)
class NavigationState:
    """Committed, externally observable navigation snapshot.

    Attributes:
        location: Location of the last committed attempt.
        matches: Accepted root-first match chain.  Truncated before the
            blocking route when ``blocked``.
        params: Union of params across ``matches``, deepest wins.
        status: ``ok``, ``redirect``, or ``not-found``.
        redirect_pending: Target of a redirect being followed.
        blocked: A step blocked the chain.
        fallback: The not-found view to render instead of the chain.
        loader_data: Route key -> loader result, filled in as loaders settle.
        loader_errors: Route key -> ``LoaderFailure``.
        pending_loaders: Route keys whose loaders have not settled.
        error: Step failure or redirect loop behind a block, if any.
        is_resolving: A newer attempt is in flight.
        generation: Generation that produced this snapshot.
        action: History action behind ``location``.
        prevent_scroll_reset: Renderers should keep the scroll position.
    """

    location: Location = field(default_factory=Location)
    matches: tuple[MatchResult[Any], ...] = ()
    params: Mapping[str, str] = field(default=_EMPTY)
    status: Status = Status.OK
    redirect_pending: str | None = None
    blocked: bool = False
    fallback: Any = None
    loader_data: Mapping[str, Any] = field(default=_EMPTY)
    loader_errors: Mapping[str, BaseException] = field(default=_EMPTY)
    pending_loaders: frozenset[str] = frozenset()
    error: BaseException | None = None
    is_resolving: bool = False
    generation: int = 0
    action: HistoryAction = HistoryAction.POP
    prevent_scroll_reset: bool = False

    @property
    def status_code(self) -> int:
        return self.status.code

    @property
    def leaf(self) -> RouteNode[Any] | None:
        return self.matches[-1].node if self.matches else None

    @property
    def pattern(self) -> str:
        """Full pattern of the deepest match (``""`` when unmatched)."""
        return self.matches[-1].pattern if self.matches else ""

    @property
    def meta(self) -> Mapping[str, Any]:
        """Metadata of the deepest match that declares any."""
        for match in reversed(self.matches):
            if match.node.meta:
                return match.node.meta
        return _EMPTY

    @property
    def title(self) -> str | None:
        return self.meta.get("title")

    @property
    def is_loading(self) -> bool:
        return bool(self.pending_loaders)

    @property
    def loading_view(self) -> Any:
        """Deepest ``loading_view`` along the chain while loaders are pending."""
        if not self.pending_loaders:
            return None
        for match in reversed(self.matches):
            if match.node.loading_view is not None:
                return match.node.loading_view
        return None

    def data_for(self, key: str, default: Any = None) -> Any:
        """Loader data for route *key*."""
        return self.loader_data.get(key, default)

    def evolve(self, **changes: Any) -> NavigationState:
        """Return a copy with *changes*, freezing any mapping arguments."""
        for name in ("params", "loader_data", "loader_errors"):
            if name in changes and not isinstance(changes[name], MappingProxyType):
                changes[name] = MappingProxyType(dict(changes[name]))
        if "pending_loaders" in changes:
            changes["pending_loaders"] = frozenset(changes["pending_loaders"])
        if "matches" in changes:
            changes["matches"] = tuple(changes["matches"])
        return replace(self, **changes)
