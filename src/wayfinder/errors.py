"""Wayfinder exception hierarchy.

Shared across the route tree, matcher, chain executor, loaders, and
navigator so every module raises and catches the same types.

Two families:

- Caller errors (``ConfigurationError``, ``MalformedPattern``,
  ``NavigationAborted``) are raised eagerly and synchronously.
- Runtime failures (``StepFailure``, ``LoaderFailure``, ``RedirectLoop``)
  are never re-raised to the caller.  The engine records them on the
  committed ``NavigationState`` instead.
"""

from collections.abc import Sequence


class WayfinderError(Exception):
    """Base for all wayfinder-specific errors."""


class ConfigurationError(WayfinderError):
    """Raised when a route definition or router configuration is invalid.

    Typically raised by ``create_route_tree()`` at startup.
    """


class MalformedPattern(ConfigurationError):  # noqa: N818
    """A path pattern is structurally invalid.

    Raised at normalization time, never at match time.
    """

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Malformed pattern {pattern!r}: {reason}")


class NavigationAborted(WayfinderError):  # noqa: N818
    """``navigate()`` was called with a location that cannot be routed.

    No history write and no state transition happen.
    """

    def __init__(self, to: object, reason: str) -> None:
        self.to = to
        self.reason = reason
        super().__init__(f"Navigation to {to!r} aborted: {reason}")


class StepFailure(WayfinderError):
    """A guard or middleware step raised.

    The original exception is chained as ``__cause__``.  The chain
    executor converts this into a ``Block`` outcome.
    """

    kind = "step"

    def __init__(self, route: str, error: BaseException) -> None:
        self.route = route
        self.error = error
        super().__init__(f"{self.kind.capitalize()} for route {route!r} raised: {error!r}")
        self.__cause__ = error


class GuardFailure(StepFailure):
    """A route guard raised."""

    kind = "guard"


class MiddlewareFailure(StepFailure):
    """A route middleware step raised."""

    kind = "middleware"


class LoaderFailure(WayfinderError):
    """A route loader raised.

    Recorded per route in ``NavigationState.loader_errors``.  Sibling
    loaders and the committed match chain are unaffected.
    """

    def __init__(self, route_key: str, error: BaseException) -> None:
        self.route_key = route_key
        self.error = error
        super().__init__(f"Loader for route {route_key!r} raised: {error!r}")
        self.__cause__ = error


class RedirectLoop(WayfinderError):  # noqa: N818
    """A redirect chain revisited a target or exceeded ``max_redirects``."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__("Redirect loop detected: " + " -> ".join(self.chain))
