"""Resolution pipeline shared by the navigator and one-shot ``resolve()``.

    location -> strip basename -> match -> per-route redirect_to / steps
             -> Resolution(ok | redirect | not-found)

Keeping this in one place is what makes server-side resolution produce
the same match chain and params the long-lived navigator commits.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from wayfinder.config import RouterConfig
from wayfinder.context import attempt_var
from wayfinder.errors import MalformedPattern
from wayfinder.middleware.chain import run_route_steps
from wayfinder.middleware.protocol import Block, Redirect, StepContext
from wayfinder.navigation.state import NavigationAttempt, Status
from wayfinder.routing.matcher import match_routes
from wayfinder.routing.pattern import SegmentKind, parse_pattern
from wayfinder.routing.route import MatchResult, RouteNode
from wayfinder.routing.tree import RouteTree

logger = logging.getLogger("wayfinder.navigation")


@dataclass(frozen=True, slots=True)
class Resolution:
    """What one attempt resolved to, before any state is committed.

    Attributes:
        status: ``ok``, ``redirect``, or ``not-found``.
        matches: Accepted chain.  For a block or redirect, only the
            routes before the one that stopped resolution.
        redirect: Redirect target when ``status`` is ``redirect``.
        blocked: A step blocked the chain.
        fallback: Not-found view to render, if any.
        error: The ``StepFailure`` behind a block, if any.
    """

    status: Status
    matches: tuple[MatchResult[Any], ...] = ()
    redirect: str | None = None
    blocked: bool = False
    fallback: Any = None
    error: BaseException | None = None


async def resolve_attempt(
    tree: RouteTree[Any],
    attempt: NavigationAttempt,
    config: RouterConfig,
) -> Resolution:
    """Match ``attempt.location`` and run every matched route's steps.

    Routes are processed strictly root to leaf.  Step failures are
    already converted into ``Block`` by the chain executor, so this
    never raises for anything a step does.
    """
    reset = attempt_var.set(attempt)
    try:
        return await _resolve(tree, attempt, config)
    finally:
        attempt_var.reset(reset)


async def _resolve(
    tree: RouteTree[Any],
    attempt: NavigationAttempt,
    config: RouterConfig,
) -> Resolution:
    location = attempt.location
    pathname = config.strip_basename(location.pathname)
    if pathname is None:
        logger.debug("%s is outside basename %r", location.pathname, config.basename)
        return Resolution(Status.NOT_FOUND, fallback=_root_fallback(tree, config))

    outcome = match_routes(tree, pathname, case_sensitive=config.case_sensitive)
    if outcome.matches is None:
        view = outcome.not_found.view if outcome.not_found is not None else None
        return Resolution(
            Status.NOT_FOUND,
            fallback=view if view is not None else config.not_found_view,
        )

    matches = outcome.matches
    shared: dict[str, Any] = {}

    for depth, match in enumerate(matches):
        node = match.node

        if node.redirect_to is not None:
            target = fill_params(node.redirect_to, match.params)
            logger.debug("Route %s redirects to %s", node.key, target)
            return Resolution(Status.REDIRECT, matches[:depth], redirect=target)

        if not node.has_steps:
            continue

        context = StepContext(
            pathname=match.pathname,
            params=match.params,
            location=location,
            route=node,
            depth=depth,
            token=attempt.token,
            shared=shared,
        )
        step_outcome = await run_route_steps(context)

        if isinstance(step_outcome, Redirect):
            logger.debug("Route %s steps redirected to %s", node.key, step_outcome.to)
            return Resolution(Status.REDIRECT, matches[:depth], redirect=step_outcome.to)

        if isinstance(step_outcome, Block):
            logger.debug("Route %s blocked at depth %d", node.key, depth)
            return Resolution(
                Status.NOT_FOUND,
                matches[:depth],
                blocked=True,
                fallback=nearest_fallback(tree, matches, depth, config),
                error=step_outcome.error,
            )

    return Resolution(Status.OK, matches)


def nearest_fallback(
    tree: RouteTree[Any],
    matches: Sequence[MatchResult[Any]],
    depth: int,
    config: RouterConfig,
) -> Any:
    """Closest not-found view configured at or above *depth*.

    Falls back to ``config.not_found_view``.
    """
    for level in range(depth, -1, -1):
        siblings = tree.routes if level == 0 else matches[level - 1].node.children
        node = _not_found_in(siblings)
        if node is not None and node.view is not None:
            return node.view
    return config.not_found_view


def _root_fallback(tree: RouteTree[Any], config: RouterConfig) -> Any:
    node = _not_found_in(tree.routes)
    if node is not None and node.view is not None:
        return node.view
    return config.not_found_view


def _not_found_in(nodes: Sequence[RouteNode[Any]]) -> RouteNode[Any] | None:
    return next((n for n in nodes if n.not_found), None)


def fill_params(target: str, params: Mapping[str, str]) -> str:
    """Substitute ``:name`` segments in a redirect target from *params*.

    ``/users/:id/profile`` with ``{"id": "7"}`` -> ``/users/7/profile``.
    Segments naming unknown params are kept as written.
    """
    if ":" not in target and "*" not in target:
        return target
    path, sep, rest = target.partition("?")
    try:
        pattern = parse_pattern(path)
    except MalformedPattern:
        return target
    parts: list[str] = []
    for segment in pattern.segments:
        if segment.kind is SegmentKind.STATIC:
            parts.append(segment.value)
        elif segment.value in params:
            value = params[segment.value]
            if value:
                parts.append(value)
        else:
            parts.append(str(segment))
    return "/" + "/".join(parts) + sep + rest
