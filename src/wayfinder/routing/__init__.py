"""Routing — path patterns, the normalized route tree, and the matcher.

Definitions are normalized once into an immutable ``RouteTree``.  Matching
is a pure function of the tree and a pathname: static segments beat
dynamic ones, dynamic ones beat catch-alls, and ties keep declaration
order.
"""

from wayfinder.routing.matcher import MatchOutcome, match, match_routes
from wayfinder.routing.pattern import PathPattern, Priority, Segment, SegmentKind, parse_pattern
from wayfinder.routing.route import MatchResult, RouteNode
from wayfinder.routing.tree import RouteTree, create_route_tree

__all__ = [
    "MatchOutcome",
    "MatchResult",
    "PathPattern",
    "Priority",
    "RouteNode",
    "RouteTree",
    "Segment",
    "SegmentKind",
    "create_route_tree",
    "match",
    "match_routes",
    "parse_pattern",
]
