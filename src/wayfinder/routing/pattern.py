"""Path pattern parsing and priority classification.

A pattern string like ``/users/:id/*rest`` is split into typed segments::

    "users"  -> Segment(STATIC, "users")
    ":id"    -> Segment(DYNAMIC, "id")
    ":tab?"  -> Segment(OPTIONAL, "tab")
    "*rest"  -> Segment(CATCH_ALL, "rest")
    "*"      -> Segment(CATCH_ALL, "splat")

Patterns are parsed once when the route tree is normalized and never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum

from wayfinder.errors import MalformedPattern

DEFAULT_SPLAT = "splat"


class SegmentKind(StrEnum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    OPTIONAL = "optional-dynamic"
    CATCH_ALL = "catch-all"


class Priority(IntEnum):
    """Sibling evaluation buckets. Lower values are tried first."""

    STATIC = 0
    DYNAMIC = 1
    CATCH_ALL = 2


@dataclass(frozen=True, slots=True)
class Segment:
    """One parsed segment of a path pattern.

    ``value`` is the literal text for static segments and the
    parameter name for every other kind.
    """

    kind: SegmentKind
    value: str

    @property
    def is_param(self) -> bool:
        return self.kind is not SegmentKind.STATIC

    def __str__(self) -> str:
        match self.kind:
            case SegmentKind.DYNAMIC:
                return f":{self.value}"
            case SegmentKind.OPTIONAL:
                return f":{self.value}?"
            case SegmentKind.CATCH_ALL:
                return f"*{self.value}"
        return self.value


@dataclass(frozen=True, slots=True)
class PathPattern:
    """An ordered, immutable sequence of segments.

    ``str(pattern)`` renders the canonical form, so
    ``parse_pattern(str(p)) == p`` for every parsed pattern.
    """

    segments: tuple[Segment, ...] = ()

    def __str__(self) -> str:
        return "/" + "/".join(str(s) for s in self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def has_catch_all(self) -> bool:
        return bool(self.segments) and self.segments[-1].kind is SegmentKind.CATCH_ALL

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(s.value for s in self.segments if s.is_param)

    @property
    def min_length(self) -> int:
        """Fewest path segments this pattern can bind exactly.

        Trailing optional segments and a trailing catch-all may bind
        nothing.
        """
        length = len(self.segments)
        for segment in reversed(self.segments):
            if segment.kind in (SegmentKind.OPTIONAL, SegmentKind.CATCH_ALL):
                length -= 1
            else:
                break
        return length

    @property
    def priority(self) -> Priority:
        kinds = {s.kind for s in self.segments}
        if SegmentKind.CATCH_ALL in kinds:
            return Priority.CATCH_ALL
        if SegmentKind.DYNAMIC in kinds or SegmentKind.OPTIONAL in kinds:
            return Priority.DYNAMIC
        return Priority.STATIC

    @property
    def shape(self) -> tuple[tuple[SegmentKind, str], ...]:
        """Structure with parameter names erased.

        Two patterns with the same shape accept exactly the same paths.
        """
        return tuple(
            (s.kind, s.value if s.kind is SegmentKind.STATIC else "") for s in self.segments
        )

    def join(self, child: PathPattern) -> PathPattern:
        """Concatenate a child pattern onto this one."""
        if self.has_catch_all and child.segments:
            raise MalformedPattern(
                f"{self}{child}",
                "a catch-all parent cannot have non-root child patterns",
            )
        return PathPattern(self.segments + child.segments)


def split_path(path: str) -> list[str]:
    """Split a concrete path into its non-empty segments.

    Redundant separators disappear: ``"//a///b/"`` -> ``["a", "b"]``.
    """
    return [part for part in path.split("/") if part]


def normalize_path(path: str) -> str:
    """Collapse redundant separators into the canonical ``/a/b`` form."""
    return "/" + "/".join(split_path(path))


def _parse_segment(raw: str, pattern: str) -> Segment:
    if raw.startswith(":"):
        name = raw[1:]
        kind = SegmentKind.DYNAMIC
        if name.endswith("?"):
            name = name[:-1]
            kind = SegmentKind.OPTIONAL
        if not name or not _is_param_name(name):
            raise MalformedPattern(pattern, f"invalid parameter name in segment {raw!r}")
        return Segment(kind, name)
    if raw.startswith("*"):
        name = raw[1:] or DEFAULT_SPLAT
        if not _is_param_name(name):
            raise MalformedPattern(pattern, f"invalid catch-all name in segment {raw!r}")
        return Segment(SegmentKind.CATCH_ALL, name)
    if "*" in raw:
        raise MalformedPattern(pattern, f"catch-all marker must start a segment: {raw!r}")
    return Segment(SegmentKind.STATIC, raw)


def _is_param_name(name: str) -> bool:
    return name.replace("-", "_").isidentifier()


def parse_pattern(pattern: str) -> PathPattern:
    """Parse a route path pattern into a ``PathPattern``.

    Examples::

        "/"               -> PathPattern(())
        "/users/:id"      -> (static "users", dynamic "id")
        "docs/*"          -> (static "docs", catch-all "splat")

    Raises ``MalformedPattern`` when a catch-all is not the final
    segment, a parameter name is empty or invalid, or one parameter
    name appears twice.
    """
    if not isinstance(pattern, str):
        raise MalformedPattern(repr(pattern), f"expected str, got {type(pattern).__name__}")

    segments = tuple(_parse_segment(part, pattern) for part in split_path(pattern))

    for i, segment in enumerate(segments):
        if segment.kind is SegmentKind.CATCH_ALL and i != len(segments) - 1:
            raise MalformedPattern(pattern, "catch-all segment must be last")

    names = [s.value for s in segments if s.is_param]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise MalformedPattern(pattern, f"duplicate parameter name(s): {', '.join(duplicates)}")

    return PathPattern(segments)
