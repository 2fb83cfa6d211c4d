"""One-shot resolution for server-side rendering.

``resolve()`` runs the same pipeline the navigator runs for a single
location, so the match chain and params it reports are exactly what a
navigator would commit for that location.  Redirects are reported, not
followed: the server turns them into a 302.

Usage::

    state = await resolve(routes, request.path)
    if state.status is Status.REDIRECT:
        return Redirect(state.redirect_pending)
    html = render(compose_state(state))
    html += loader_data_script(state.loader_data)
    return Response(html, status=state.status_code)
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

from wayfinder.config import RouterConfig
from wayfinder.navigation.loaders import prefetch_loader_data
from wayfinder.navigation.location import Location, parse_location, validate_target
from wayfinder.navigation.resolver import resolve_attempt
from wayfinder.navigation.state import NavigationAttempt, NavigationState, Status
from wayfinder.routing.route import RouteNode, merge_params
from wayfinder.routing.tree import RouteTree, create_route_tree

DATA_VARIABLE = "__WAYFINDER_DATA__"

_SCRIPT_RE = re.compile(
    r"^\s*<script[^>]*>\s*window\.(?P<name>[\w$]+)\s*=\s*(?P<json>.*?);?\s*</script>\s*$",
    re.DOTALL,
)


async def resolve(
    tree: RouteTree[Any] | Iterable[Mapping[str, Any] | RouteNode[Any]],
    location: str | Location,
    *,
    config: RouterConfig | None = None,
    load: bool = True,
) -> NavigationState:
    """Resolve *location* once and return the snapshot a navigator would commit.

    Args:
        tree: Route tree or raw definitions.
        location: Request path (with optional query and hash) or a ``Location``.
        config: Router configuration.  Defaults to ``RouterConfig()``.
        load: Run the loaders of an ``ok`` chain and include their results.

    Raises:
        NavigationAborted: *location* is not a routable relative URL.
    """
    route_tree = create_route_tree(tree)
    config = config if config is not None else RouterConfig()
    if not isinstance(location, Location):
        location = parse_location(validate_target(location))

    attempt = NavigationAttempt(generation=1, location=location)
    resolution = await resolve_attempt(route_tree, attempt, config)

    state = NavigationState(location=location).evolve(
        matches=resolution.matches,
        params=merge_params(resolution.matches),
        status=resolution.status,
        redirect_pending=resolution.redirect,
        blocked=resolution.blocked,
        fallback=resolution.fallback,
        error=resolution.error,
        generation=attempt.generation,
    )

    if load and resolution.status is Status.OK:
        prefetched = await prefetch_loader_data(resolution.matches, attempt.token)
        state = state.evolve(loader_data=prefetched.data, loader_errors=prefetched.errors)
    return state


def loader_data_script(data: Mapping[str, Any], *, variable: str = DATA_VARIABLE) -> str:
    """Serialize loader data into an inline ``<script>`` for hydration.

    ``<`` is escaped so a value containing ``</script>`` cannot close the
    tag early.
    """
    serialized = json.dumps(dict(data), default=str).replace("<", "\\u003c")
    return f"<script>window.{variable} = {serialized};</script>"


def hydrate_loader_data(payload: str) -> dict[str, Any]:
    """Parse the output of ``loader_data_script`` (or its bare JSON) back.

    Raises:
        ValueError: *payload* is neither a hydration script nor a JSON object.
    """
    match = _SCRIPT_RE.match(payload)
    text = match.group("json") if match else payload
    data = json.loads(text)
    if not isinstance(data, dict):
        msg = f"Hydration payload must be a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return data
