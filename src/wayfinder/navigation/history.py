"""History store — the single writer of "where are we".

The navigator never reaches for ambient globals.  It is handed a
``History`` object and listens to it.  ``MemoryHistory`` is the
in-process implementation used for tests, server-side rendering, and
headless clients; a platform binding only has to satisfy the protocol.

Listeners are called synchronously after every change, in registration
order, with the new location and the action that produced it.
"""

from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from wayfinder.navigation.location import Location, parse_location


class HistoryAction(StrEnum):
    PUSH = "PUSH"
    REPLACE = "REPLACE"
    POP = "POP"


type HistoryListener = Callable[[Location, HistoryAction], None]


@runtime_checkable
class History(Protocol):
    """Minimal history store contract."""

    @property
    def location(self) -> Location: ...

    def push(self, url: str, state: Any = None) -> Location: ...

    def replace(self, url: str, state: Any = None) -> Location: ...

    def go(self, delta: int) -> Location | None: ...

    def peek(self, delta: int) -> Location | None: ...

    def listen(self, listener: HistoryListener) -> Callable[[], None]: ...


class MemoryHistory:
    """History entries kept in a list with a cursor.

    Usage::

        history = MemoryHistory(["/", "/users"])
        history.location.pathname  # "/users"
        history.back()
        history.location.pathname  # "/"
    """

    __slots__ = ("_entries", "_index", "_listeners")

    def __init__(
        self,
        initial_entries: Sequence[str | Location] = ("/",),
        initial_index: int | None = None,
    ) -> None:
        entries = [
            e if isinstance(e, Location) else parse_location(e) for e in initial_entries
        ] or [parse_location("/")]
        self._entries: list[Location] = entries
        if initial_index is None:
            initial_index = len(entries) - 1
        self._index = max(0, min(initial_index, len(entries) - 1))
        self._listeners: list[HistoryListener] = []

    @property
    def location(self) -> Location:
        return self._entries[self._index]

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> tuple[Location, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, url: str, state: Any = None) -> Location:
        """Drop forward entries, append a new one, and move onto it."""
        location = parse_location(url, state=state)
        del self._entries[self._index + 1 :]
        self._entries.append(location)
        self._index += 1
        self._notify(location, HistoryAction.PUSH)
        return location

    def replace(self, url: str, state: Any = None) -> Location:
        """Overwrite the current entry with a freshly keyed location."""
        location = parse_location(url, state=state)
        self._entries[self._index] = location
        self._notify(location, HistoryAction.REPLACE)
        return location

    def peek(self, delta: int) -> Location | None:
        """Return the entry *delta* steps away without moving."""
        target = self._index + delta
        if delta == 0 or not 0 <= target < len(self._entries):
            return None
        return self._entries[target]

    def go(self, delta: int) -> Location | None:
        """Move the cursor. Out-of-range moves are ignored, like a browser."""
        location = self.peek(delta)
        if location is None:
            return None
        self._index += delta
        self._notify(location, HistoryAction.POP)
        return location

    def back(self) -> Location | None:
        return self.go(-1)

    def forward(self) -> Location | None:
        return self.go(1)

    def listen(self, listener: HistoryListener) -> Callable[[], None]:
        """Register *listener*. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unlisten() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unlisten

    def _notify(self, location: Location, action: HistoryAction) -> None:
        for listener in list(self._listeners):
            listener(location, action)
