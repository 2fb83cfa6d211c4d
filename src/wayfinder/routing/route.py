"""RouteNode and MatchResult frozen dataclasses."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from wayfinder.routing.pattern import PathPattern, Priority

if TYPE_CHECKING:
    from wayfinder.middleware.protocol import Guard, Step
    from wayfinder.navigation.state import CancellationToken

type Loader = Callable[[Mapping[str, str], CancellationToken], Any | Awaitable[Any]]

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True, eq=False)
class RouteNode[V]:
    """A normalized, immutable route definition.

    Built by ``create_route_tree()``.  A new navigation never mutates a
    node; the tree is shared read-only across concurrent attempts.

    Attributes:
        key: Unique identifier within the tree, used for loader data.
        patterns: Alias patterns relative to the parent, tried in order.
        full_path: First alias joined onto every ancestor (display only).
        view: Opaque descriptor for the rendering layer.  Never inspected.
        children: Nested routes matched against the remaining path.
        middleware: Steps run root-first before the guard.
        guard: Optional access check run after middleware.
        loader: Optional ``(params, token) -> data`` callable.
        redirect_to: Static redirect target resolved before any step runs.
        meta: Opaque metadata (``title``, ``description``, ...).
        not_found: Fallback for its sibling list.  Never matched by path.
        index: Renders when the parent consumed the whole path.
        error_view: Rendered when this route's loader (or a descendant's) fails.
        loading_view: Rendered while this route's loaders are pending.
    """

    key: str
    patterns: tuple[PathPattern, ...]
    full_path: str
    view: V | None = None
    children: tuple[RouteNode[V], ...] = ()
    middleware: tuple[Step, ...] = ()
    guard: Guard | None = None
    loader: Loader | None = None
    redirect_to: str | None = None
    meta: Mapping[str, Any] = field(default=_EMPTY)
    not_found: bool = False
    index: bool = False
    error_view: V | None = None
    loading_view: V | None = None

    @property
    def priority(self) -> Priority:
        """The loosest bucket among this node's alias patterns."""
        return max((p.priority for p in self.patterns), default=Priority.STATIC)

    @property
    def is_parent(self) -> bool:
        return bool(self.children)

    @property
    def has_steps(self) -> bool:
        return bool(self.middleware) or self.guard is not None

    def __repr__(self) -> str:
        return f"RouteNode(key={self.key!r}, patterns={[str(p) for p in self.patterns]})"


@dataclass(frozen=True, slots=True)
class MatchResult[V]:
    """One level of a resolved match chain.

    Attributes:
        node: The matched route.
        params: Parameters accumulated from the root down to this level.
            Deeper levels win on key collision.
        pattern: Full pattern text that matched (``/users/:id/settings``).
        pathname: The full pathname being resolved.
        base_path: The prefix consumed by ancestors; this node's pattern
            was matched against what follows it.
    """

    node: RouteNode[V]
    params: Mapping[str, str]
    pattern: str
    pathname: str
    base_path: str

    @property
    def key(self) -> str:
        return self.node.key


def merge_params(matches: tuple[MatchResult[Any], ...]) -> Mapping[str, str]:
    """Union of params across a chain, deepest writer winning."""
    merged: dict[str, str] = {}
    for match in matches:
        merged.update(match.params)
    return MappingProxyType(merged)
