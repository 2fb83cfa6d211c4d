"""Location values and target validation.

A ``Location`` is what the history store holds and what the navigator
resolves.  ``key`` is minted fresh on every push and replace so external
bookkeeping (scroll positions, view state) can correlate entries.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from wayfinder.errors import NavigationAborted
from wayfinder.navigation.query import QueryParams

_FORBIDDEN_CHARS = frozenset("\x00\t\n\r")


def create_key() -> str:
    """Mint a short unique key for a history entry."""
    return uuid.uuid4().hex[:8]


@dataclass(frozen=True, slots=True)
class Location:
    """An immutable location.

    Attributes:
        pathname: Path component, always starting with ``/``.
        search: Query string including the leading ``?`` (or ``""``).
        hash: Fragment including the leading ``#`` (or ``""``).
        state: Opaque value attached by ``navigate(state=...)``.
        key: Unique id of the history entry.
    """

    pathname: str = "/"
    search: str = ""
    hash: str = ""
    state: Any = field(default=None, compare=False)
    key: str = field(default="default", compare=False)

    @property
    def href(self) -> str:
        return f"{self.pathname}{self.search}{self.hash}"

    @property
    def query(self) -> QueryParams:
        return QueryParams(self.search)

    def __str__(self) -> str:
        return self.href


def parse_location(url: str, *, state: Any = None, key: str | None = None) -> Location:
    """Split a relative URL into a ``Location``.

    Examples::

        "/users?tab=a#top" -> Location("/users", "?tab=a", "#top")
        ""                 -> Location("/")
    """
    pathname = url
    search = ""
    hash_ = ""

    hash_index = pathname.find("#")
    if hash_index != -1:
        hash_ = pathname[hash_index:]
        pathname = pathname[:hash_index]

    search_index = pathname.find("?")
    if search_index != -1:
        search = pathname[search_index:]
        pathname = pathname[:search_index]

    if not pathname.startswith("/"):
        pathname = "/" + pathname

    return Location(
        pathname=pathname,
        search="" if search == "?" else search,
        hash="" if hash_ == "#" else hash_,
        state=state,
        key=key if key is not None else create_key(),
    )


def validate_target(to: object) -> str:
    """Check that *to* is a routable, same-document target.

    Returns the target with a leading ``/``.

    Raises:
        NavigationAborted: *to* is not a string, is empty, contains
            control characters, or points at another origin.
    """
    if not isinstance(to, str):
        raise NavigationAborted(to, f"expected str, got {type(to).__name__}")
    if not to.strip():
        raise NavigationAborted(to, "empty target")
    if any(ch in _FORBIDDEN_CHARS for ch in to):
        raise NavigationAborted(to, "target contains control characters")

    try:
        parts = urlsplit(to)
    except ValueError as exc:
        raise NavigationAborted(to, f"invalid URL format ({exc})") from exc

    if parts.scheme or parts.netloc:
        raise NavigationAborted(to, "external URLs cannot be routed")

    return to if to.startswith(("/", "?", "#")) else "/" + to


def join_paths(parent: str, child: str) -> str:
    """Join two path fragments with exactly one separator."""
    return parent.rstrip("/") + "/" + child.lstrip("/")
