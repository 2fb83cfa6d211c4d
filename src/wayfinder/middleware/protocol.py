"""Step protocol, outcomes, and the Next type alias.

A middleware step is any callable matching::

    async def my_step(context: StepContext, next: Next) -> Outcome: ...

Sync steps work too.  No base class required. The executor checks the
shape, not the lineage.

A guard is simpler — it receives only the context and answers::

    def guard(context: StepContext) -> bool | str | Outcome | None: ...

``True``/``None`` continue, ``False`` blocks, a string redirects.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Literal, Protocol

if TYPE_CHECKING:
    from wayfinder.navigation.location import Location
    from wayfinder.navigation.state import CancellationToken
    from wayfinder.routing.route import RouteNode


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Continue:
    """Proceed to the next step, route, or commit."""

    type: Literal["continue"] = "continue"


@dataclass(frozen=True, slots=True)
class Redirect:
    """Abandon this attempt and replace-navigate to ``to``."""

    to: str
    type: Literal["redirect"] = "redirect"


@dataclass(frozen=True, slots=True)
class Block:
    """Stop here. The chain is truncated at the blocking route.

    ``error`` is set when the block came from a step that raised,
    ``None`` for an intentional block.
    """

    error: BaseException | None = field(default=None, compare=False)
    type: Literal["block"] = "block"


type Outcome = Continue | Redirect | Block

CONTINUE = Continue()
BLOCK = Block()


def coerce_outcome(value: Any) -> Outcome:
    """Normalize whatever a step returned into an ``Outcome``.

    Accepts outcome instances, ``{"type": "redirect", "to": "/x"}``
    style mappings, and ``None`` (treated as continue).

    Raises ``TypeError`` for anything else.
    """
    if isinstance(value, Continue | Redirect | Block):
        return value
    if value is None:
        return CONTINUE
    if isinstance(value, Mapping) and "type" in value:
        kind = value["type"]
        if kind == "continue":
            return CONTINUE
        if kind == "block":
            return BLOCK
        if kind == "redirect":
            to = value.get("to") or "/"
            return Redirect(str(to))
    msg = f"Step returned {value!r}; expected Continue, Redirect, Block, or None"
    raise TypeError(msg)


def coerce_guard_result(value: Any) -> Outcome:
    """Normalize a guard's answer into an ``Outcome``."""
    if value is True or value is None:
        return CONTINUE
    if value is False:
        return BLOCK
    if isinstance(value, str):
        return Redirect(value)
    return coerce_outcome(value)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StepContext:
    """Everything a step, guard, or loader can see about one route level.

    Attributes:
        pathname: Normalized pathname being resolved (basename stripped).
        params: Parameters accumulated down to this route.
        location: The full location of the attempt.
        route: The route whose steps are running.
        depth: The route's position in the match chain.
        token: Cancellation token of the attempt.
        shared: Attempt-scoped scratch space.  Earlier steps can leave
            values here for later steps and routes to read.
    """

    pathname: str
    params: Mapping[str, str]
    location: Location
    route: RouteNode[Any]
    depth: int
    token: CancellationToken
    shared: dict[str, Any] = field(default_factory=dict)

    @property
    def search(self) -> str:
        return self.location.search

    @property
    def meta(self) -> Mapping[str, Any]:
        return self.route.meta or MappingProxyType({})


# ---------------------------------------------------------------------------
# Step callables
# ---------------------------------------------------------------------------

# The next step in the chain
type Next = Callable[[], Awaitable[Outcome]]

type StepResult = Outcome | Mapping[str, Any] | None


class Step(Protocol):
    """Protocol for a middleware step.

    Accepts both functions and callable objects::

        # Function step
        async def require_login(context: StepContext, next: Next) -> Outcome:
            if not session.user:
                return Redirect("/login")
            return await next()

        # Class step
        class Audit:
            async def __call__(self, context: StepContext, next: Next) -> Outcome:
                ...
    """

    def __call__(
        self, context: StepContext, next: Next
    ) -> StepResult | Awaitable[StepResult]: ...


class Guard(Protocol):
    """Protocol for a route guard."""

    def __call__(
        self, context: StepContext
    ) -> bool | str | StepResult | Awaitable[bool | str | StepResult]: ...
