"""Route tree normalization.

Turns user-supplied route definitions (nested mappings) into an
immutable ``RouteTree`` of ``RouteNode`` objects.  Every structural
problem is raised here, at startup, instead of surfacing mid-navigation.

Definition keys::

    {
        "path": "/users/:id" | ["/a", "/b"],   # or "pattern"
        "view": <anything>,
        "children": [...],
        "middleware": [step, ...],
        "guard": guard,
        "loader": loader,
        "redirect_to": "/elsewhere",
        "meta": {"title": "..."},
        "not_found": True,                      # or path "/404"
        "index": True,
        "error_view": <anything>,
        "loading_view": <anything>,
        "id": "explicit-route-key",
    }
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from wayfinder.errors import ConfigurationError, MalformedPattern
from wayfinder.routing.pattern import PathPattern, Priority, parse_pattern
from wayfinder.routing.route import RouteNode

NOT_FOUND_PATHS = frozenset({"404", "/404"})

_KNOWN_KEYS = frozenset({
    "path",
    "pattern",
    "view",
    "children",
    "middleware",
    "guard",
    "loader",
    "redirect_to",
    "meta",
    "not_found",
    "index",
    "error_view",
    "loading_view",
    "id",
})

type RouteDefinition = Mapping[str, Any] | RouteNode[Any]


@dataclass(frozen=True, slots=True)
class RouteTree[V]:
    """A normalized, read-only route tree.

    Safe to share across concurrent navigation attempts.
    """

    routes: tuple[RouteNode[V], ...]

    def __iter__(self) -> Iterator[RouteNode[V]]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)

    def walk(self) -> Iterator[tuple[int, RouteNode[V]]]:
        """Yield ``(depth, node)`` pairs in declaration order, parents first."""
        stack: list[tuple[int, RouteNode[V]]] = [(0, n) for n in reversed(self.routes)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, child) for child in reversed(node.children))

    def find(self, key: str) -> RouteNode[V] | None:
        """Return the node with *key*, or ``None``."""
        for _, node in self.walk():
            if node.key == key:
                return node
        return None


def create_route_tree(definitions: Sequence[RouteDefinition] | RouteTree[Any]) -> RouteTree[Any]:
    """Normalize route definitions into a ``RouteTree``.

    Passing an existing ``RouteTree`` returns it unchanged, so
    normalization is idempotent.

    Raises:
        MalformedPattern: A pattern is structurally invalid.
        ConfigurationError: A definition is invalid (unknown keys,
            duplicate route ids, more than one not-found route in a
            sibling list, indistinguishable catch-all siblings, ...).
    """
    if isinstance(definitions, RouteTree):
        return definitions
    if isinstance(definitions, Mapping) or isinstance(definitions, str):
        msg = "Route definitions must be a sequence of route mappings"
        raise ConfigurationError(msg)

    seen_keys: set[str] = set()
    routes = _normalize_level(definitions, PathPattern(), seen_keys)
    return RouteTree(routes)


def _normalize_level(
    definitions: Sequence[RouteDefinition],
    parent: PathPattern,
    seen_keys: set[str],
) -> tuple[RouteNode[Any], ...]:
    nodes = tuple(_normalize_one(d, parent, seen_keys) for d in definitions)
    _validate_siblings(nodes, parent)
    return nodes


def _normalize_one(
    definition: RouteDefinition,
    parent: PathPattern,
    seen_keys: set[str],
) -> RouteNode[Any]:
    if isinstance(definition, RouteNode):
        _claim_key(definition.key, seen_keys)
        for _, node in RouteTree(definition.children).walk():
            _claim_key(node.key, seen_keys)
        return definition

    if not isinstance(definition, Mapping):
        msg = f"Route definition must be a mapping, got {type(definition).__name__}"
        raise ConfigurationError(msg)

    unknown = set(definition) - _KNOWN_KEYS
    if unknown:
        msg = f"Unknown route definition key(s): {', '.join(sorted(unknown))}"
        raise ConfigurationError(msg)
    if "path" in definition and "pattern" in definition:
        msg = "Route definition may declare 'path' or 'pattern', not both"
        raise ConfigurationError(msg)

    raw_paths = definition.get("path", definition.get("pattern"))
    index = bool(definition.get("index", False))
    paths = _alias_list(raw_paths, index=index)

    not_found = bool(definition.get("not_found", False)) or any(
        p in NOT_FOUND_PATHS for p in paths
    )
    patterns = tuple(parse_pattern(p) for p in paths)
    full = parent.join(patterns[0])

    children_defs = definition.get("children") or ()
    if index and children_defs:
        msg = f"Index route under {str(parent)!r} cannot declare children"
        raise ConfigurationError(msg)
    if not_found and children_defs:
        msg = "A not-found route cannot declare children"
        raise ConfigurationError(msg)
    if any(p.has_catch_all for p in patterns) and children_defs:
        raise MalformedPattern(str(full), "a catch-all route cannot declare children")

    key = definition.get("id") or _default_key(full, index=index, not_found=not_found)
    _claim_key(key, seen_keys)

    middleware = definition.get("middleware") or ()
    if callable(middleware):
        middleware = (middleware,)
    for step in middleware:
        if not callable(step):
            msg = f"Middleware for route {key!r} must be callable, got {type(step).__name__}"
            raise ConfigurationError(msg)

    for name in ("guard", "loader"):
        value = definition.get(name)
        if value is not None and not callable(value):
            msg = f"{name.capitalize()} for route {key!r} must be callable"
            raise ConfigurationError(msg)

    redirect_to = definition.get("redirect_to")
    if redirect_to is not None and (not isinstance(redirect_to, str) or not redirect_to):
        msg = f"redirect_to for route {key!r} must be a non-empty string"
        raise ConfigurationError(msg)

    return RouteNode(
        key=key,
        patterns=patterns,
        full_path=str(full),
        view=definition.get("view"),
        children=_normalize_level(children_defs, full, seen_keys),
        middleware=tuple(middleware),
        guard=definition.get("guard"),
        loader=definition.get("loader"),
        redirect_to=redirect_to,
        meta=MappingProxyType(dict(definition.get("meta") or {})),
        not_found=not_found,
        index=index,
        error_view=definition.get("error_view"),
        loading_view=definition.get("loading_view"),
    )


def _alias_list(raw: Any, *, index: bool) -> list[str]:
    if raw is None:
        if index:
            return [""]
        msg = "Route definition requires a 'path' unless it is an index route"
        raise ConfigurationError(msg)
    if isinstance(raw, str):
        paths = [raw]
    elif isinstance(raw, Sequence) and raw:
        paths = list(raw)
    else:
        raise MalformedPattern(repr(raw), "path must be a string or a non-empty list of strings")
    if index and any(p.strip("/") for p in paths if isinstance(p, str)):
        raise MalformedPattern(paths[0], "an index route cannot declare a non-empty path")
    return paths


def _default_key(full: PathPattern, *, index: bool, not_found: bool) -> str:
    key = str(full)
    if index:
        return f"{key}#index"
    if not_found:
        return f"{key}#not-found"
    return key


def _claim_key(key: str, seen_keys: set[str]) -> None:
    if key in seen_keys:
        msg = (
            f"Duplicate route id {key!r}. Give one of the routes an explicit "
            f"'id' to tell them apart."
        )
        raise ConfigurationError(msg)
    seen_keys.add(key)


def _validate_siblings(nodes: tuple[RouteNode[Any], ...], parent: PathPattern) -> None:
    """Reject sibling lists whose resolution would be silently ambiguous."""
    fallbacks = [n for n in nodes if n.not_found]
    if len(fallbacks) > 1:
        msg = f"More than one not-found route declared under {str(parent)!r}"
        raise ConfigurationError(msg)

    catch_all_shapes: dict[tuple[Any, ...], PathPattern] = {}
    for node in nodes:
        if node.priority is not Priority.CATCH_ALL:
            continue
        for pattern in node.patterns:
            if not pattern.has_catch_all:
                continue
            previous = catch_all_shapes.get(pattern.shape)
            if previous is not None:
                raise MalformedPattern(
                    str(parent.join(pattern)),
                    f"duplicates catch-all sibling {str(parent.join(previous))!r}",
                )
            catch_all_shapes[pattern.shape] = pattern
