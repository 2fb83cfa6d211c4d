"""Priority-ordered, recursive route matching.

At each level of the tree the sibling candidates are partitioned into
three buckets, preserving declaration order inside each bucket::

    static  ->  dynamic  ->  catch-all

A candidate with children matches *partially*: its own pattern only has
to consume a prefix of the remaining path, and its children are matched
against the rest.  A leaf matches exactly, unless its pattern ends in a
catch-all.  Parameters accumulate root-first; deeper levels win.

Optional segments bind positionally and greedily: the n-th remaining
path segment always binds the n-th pattern segment, and optional
segments past the end of the path bind ``""``.  There is no
backtracking, so ``/:lang?/docs`` never matches ``/docs``.

A dynamic segment directly before a catch-all binds exactly one path
segment; the catch-all binds the (possibly empty) remainder.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from wayfinder.routing.pattern import PathPattern, SegmentKind, split_path
from wayfinder.routing.route import MatchResult, RouteNode
from wayfinder.routing.tree import RouteTree


@dataclass(frozen=True, slots=True)
class MatchOutcome[V]:
    """Matcher output including the not-found fallback.

    Attributes:
        matches: Root-first chain, or ``None`` when nothing matched.
        not_found: The fallback recorded for the deepest sibling list
            whose owner matched a prefix of the path, or the root-level
            fallback.  Only set when ``matches`` is ``None``.
    """

    matches: tuple[MatchResult[V], ...] | None
    not_found: RouteNode[V] | None = None


def order_candidates[V](nodes: Sequence[RouteNode[V]]) -> list[RouteNode[V]]:
    """Sort siblings by priority bucket, stable within each bucket.

    Not-found routes are excluded: they are never matched by path.
    """
    return sorted((n for n in nodes if not n.not_found), key=lambda n: n.priority)


def match_pattern(
    pattern: PathPattern,
    parts: Sequence[str],
    start: int,
    *,
    partial: bool,
    case_sensitive: bool = True,
) -> tuple[dict[str, str], int] | None:
    """Match *pattern* against ``parts[start:]``.

    Returns ``(params, consumed)`` where *consumed* is how many path
    segments the pattern bound, or ``None`` on mismatch.
    """
    remaining = len(parts) - start
    length = len(pattern.segments)

    if pattern.has_catch_all:
        if remaining < pattern.min_length:
            return None
    elif partial:
        if remaining < pattern.min_length:
            return None
    elif not pattern.min_length <= remaining <= length:
        return None

    params: dict[str, str] = {}
    consumed = 0
    for i, segment in enumerate(pattern.segments):
        index = start + i
        part = parts[index] if index < len(parts) else None

        match segment.kind:
            case SegmentKind.CATCH_ALL:
                params[segment.value] = "/".join(parts[index:])
                return params, remaining
            case SegmentKind.OPTIONAL:
                if part is None:
                    params[segment.value] = ""
                    continue
                params[segment.value] = part
            case SegmentKind.DYNAMIC:
                if part is None:
                    return None
                params[segment.value] = part
            case SegmentKind.STATIC:
                if part is None:
                    return None
                if case_sensitive:
                    if part != segment.value:
                        return None
                elif part.casefold() != segment.value.casefold():
                    return None
        consumed += 1

    return params, consumed


def match[V](
    tree: RouteTree[V] | Sequence[RouteNode[V]],
    pathname: str,
    base_path: str = "/",
    *,
    case_sensitive: bool = True,
) -> tuple[MatchResult[V], ...] | None:
    """Resolve *pathname* to the deepest root-first match chain.

    Returns ``None`` when nothing matches.  Deterministic: the same tree
    and pathname always produce equal chains.
    """
    return match_routes(tree, pathname, base_path, case_sensitive=case_sensitive).matches


def match_routes[V](
    tree: RouteTree[V] | Sequence[RouteNode[V]],
    pathname: str,
    base_path: str = "/",
    *,
    case_sensitive: bool = True,
) -> MatchOutcome[V]:
    """Like ``match()`` but also reports the applicable not-found route."""
    routes = tree.routes if isinstance(tree, RouteTree) else tuple(tree)
    parts = split_path(pathname)
    base_parts = split_path(base_path)
    normalized = "/" + "/".join(parts)

    # Match only below the base path.
    if parts[: len(base_parts)] != base_parts:
        return MatchOutcome(None, _fallback_in(routes))

    matcher = _LevelMatcher(parts, normalized, case_sensitive)
    chain = matcher.match_level(routes, len(base_parts), PathPattern(), {}, depth=0)
    if chain is not None:
        return MatchOutcome(tuple(chain))
    return MatchOutcome(None, matcher.fallback or _fallback_in(routes))


def _fallback_in[V](nodes: Sequence[RouteNode[V]]) -> RouteNode[V] | None:
    for node in nodes:
        if node.not_found:
            return node
    return None


class _LevelMatcher:
    """Per-call matching state. Lives only for one ``match_routes()`` call."""

    __slots__ = ("_case_sensitive", "_fallback_depth", "_normalized", "_parts", "fallback")

    def __init__(self, parts: list[str], normalized: str, case_sensitive: bool) -> None:
        self._parts = parts
        self._normalized = normalized
        self._case_sensitive = case_sensitive
        self.fallback: RouteNode[Any] | None = None
        self._fallback_depth = -1

    def match_level(
        self,
        nodes: Sequence[RouteNode[Any]],
        start: int,
        parent: PathPattern,
        params: dict[str, str],
        *,
        depth: int,
    ) -> list[MatchResult[Any]] | None:
        """Match one sibling list starting at ``parts[start]``."""
        base_path = "/" + "/".join(self._parts[:start])

        for node in order_candidates(nodes):
            for pattern in node.patterns:
                found = match_pattern(
                    pattern,
                    self._parts,
                    start,
                    partial=node.is_parent,
                    case_sensitive=self._case_sensitive,
                )
                if found is None:
                    continue

                own_params, consumed = found
                merged = {**params, **own_params}
                result = MatchResult(
                    node=node,
                    params=MappingProxyType(merged),
                    pattern=str(parent.join(pattern)),
                    pathname=self._normalized,
                    base_path=base_path,
                )
                end = start + consumed

                if node.is_parent:
                    chain = self.match_level(
                        node.children,
                        end,
                        parent.join(pattern),
                        merged,
                        depth=depth + 1,
                    )
                    if chain is not None:
                        return [result, *chain]
                    self._record_fallback(node.children, depth + 1)

                if end == len(self._parts):
                    return [result]
        return None

    def _record_fallback(self, nodes: Sequence[RouteNode[Any]], depth: int) -> None:
        fallback = _fallback_in(nodes)
        if fallback is not None and depth > self._fallback_depth:
            self.fallback = fallback
            self._fallback_depth = depth
