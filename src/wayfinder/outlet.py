"""Outlet composer — nest a match chain into view + slot levels.

The rendering layer walks the result top-down: render ``outlet.view``,
and wherever that view has a child slot, render ``outlet.slot``::

    /users/42/settings

    Outlet(view=AppShell, depth=0, slot=
        Outlet(view=UserLayout, depth=1, slot=
            Outlet(view=Settings, depth=2, slot=None)))

Depth is the position in the chain, never the tree depth, so routes
matched through partial-prefix parents still get consecutive depths.

Context flows down only.  Each level sees what its ancestors provided
plus its own contribution, through a read-only ``ChainMap`` view.
"""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from wayfinder.navigation.state import NavigationState, Status
from wayfinder.routing.route import MatchResult

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Outlet[V]:
    """One level of the composed structure.

    Attributes:
        view: Descriptor to render at this level.  The route's
            ``error_view`` when this level is catching a loader error.
        match: The match this level came from.
        depth: Position in the chain, root = 0.
        params: Params accumulated down to this level.
        context: Read-only context visible at this level.
        slot: The composed child level, if any.
        data: This route's loader data, if settled.
        error: Loader failure this level is rendering, if any.
    """

    view: V | None
    match: MatchResult[V]
    depth: int
    params: Mapping[str, str]
    context: Mapping[str, Any] = _EMPTY
    slot: Outlet[V] | None = None
    data: Any = None
    error: BaseException | None = None

    @property
    def key(self) -> str:
        return self.match.node.key

    def lookup(self, name: str, default: Any = None) -> Any:
        """Read a context value provided here or by any ancestor."""
        return self.context.get(name, default)

    def levels(self) -> Iterator[Outlet[V]]:
        """This level and every nested slot, outermost first."""
        outlet: Outlet[V] | None = self
        while outlet is not None:
            yield outlet
            outlet = outlet.slot

    def at_depth(self, depth: int) -> Outlet[V] | None:
        return next((o for o in self.levels() if o.depth == depth), None)


def compose[V](
    matches: Sequence[MatchResult[V]],
    *,
    context: Mapping[str, Any] | None = None,
    provide: Mapping[str, Mapping[str, Any]] | None = None,
    loader_data: Mapping[str, Any] | None = None,
    loader_errors: Mapping[str, BaseException] | None = None,
) -> Outlet[V] | None:
    """Compose *matches* into nested outlets.

    Args:
        matches: Root-first match chain.
        context: Values visible to every level.
        provide: Route key -> values that level adds for itself and its
            descendants.  Deeper levels shadow, never overwrite.
        loader_data: Route key -> loader result.
        loader_errors: Route key -> loader failure.  The nearest level at
            or above the failing route that declares an ``error_view``
            renders it, and nothing below that level is composed.

    Returns:
        The root outlet, or ``None`` for an empty chain.
    """
    if not matches:
        return None
    provide = provide or {}
    loader_data = loader_data or {}
    loader_errors = loader_errors or {}

    chain = list(matches)
    boundary = _error_boundary(chain, loader_errors)
    caught: BaseException | None = None
    if boundary is not None:
        boundary_depth, caught = boundary
        chain = chain[: boundary_depth + 1]

    # Contexts cascade root-first.
    scopes: list[Mapping[str, Any]] = []
    scope: ChainMap[str, Any] = ChainMap(dict(context or {}))
    for match in chain:
        scope = scope.new_child(dict(provide.get(match.node.key, {})))
        scopes.append(MappingProxyType(scope))

    # Outlets nest leaf-first.
    outlet: Outlet[V] | None = None
    for depth in range(len(chain) - 1, -1, -1):
        match = chain[depth]
        node = match.node
        key = node.key
        view = node.view
        error = loader_errors.get(key)
        if boundary is not None and depth == len(chain) - 1:
            view = node.error_view
            error = caught
        outlet = Outlet(
            view=view,
            match=match,
            depth=depth,
            params=match.params,
            context=scopes[depth],
            slot=outlet,
            data=loader_data.get(key),
            error=error,
        )
    return outlet


def compose_state[V](
    state: NavigationState,
    *,
    context: Mapping[str, Any] | None = None,
    provide: Mapping[str, Mapping[str, Any]] | None = None,
) -> Outlet[V] | None:
    """Compose a committed snapshot.

    Returns ``None`` unless the snapshot resolved ``ok``.  For a block or
    a miss the renderer shows ``state.fallback`` instead.
    """
    if state.status is not Status.OK:
        return None
    return compose(
        state.matches,
        context=context,
        provide=provide,
        loader_data=state.loader_data,
        loader_errors=state.loader_errors,
    )


def _error_boundary(
    chain: Sequence[MatchResult[Any]],
    loader_errors: Mapping[str, BaseException],
) -> tuple[int, BaseException] | None:
    """Shallowest error boundary triggered by any failing loader."""
    found: tuple[int, BaseException] | None = None
    for depth, match in enumerate(chain):
        error = loader_errors.get(match.node.key)
        if error is None:
            continue
        for level in range(depth, -1, -1):
            if chain[level].node.error_view is not None:
                if found is None or level < found[0]:
                    found = (level, error)
                break
    return found
