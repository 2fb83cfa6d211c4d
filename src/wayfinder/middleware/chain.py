"""Chain-of-Responsibility executor for route steps.

Each route runs its middleware list first, then its guard.  Steps run
strictly one after another: a later step may depend on side effects
committed by an earlier one.

The executor is an explicit index over the step list.  ``next()``
advances the index and invokes the step found there, so a step
delegates by awaiting ``next()``.  If a step returns ``Continue``
without delegating, the executor advances on its behalf.

Anything a step raises is converted to ``Block`` with a recorded
``StepFailure``.  Nothing propagates past the executor.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Sequence
from typing import Any

from wayfinder.errors import GuardFailure, MiddlewareFailure, StepFailure
from wayfinder.middleware.protocol import (
    CONTINUE,
    Block,
    Continue,
    Guard,
    Outcome,
    Step,
    StepContext,
    coerce_guard_result,
    coerce_outcome,
)

logger = logging.getLogger("wayfinder.middleware")


class ChainExecutor:
    """Run one ordered list of steps against a context.

    Usage::

        outcome = await ChainExecutor(route.middleware, context).run()
    """

    __slots__ = ("_context", "_index", "_steps", "failure")

    def __init__(self, steps: Sequence[Step], context: StepContext) -> None:
        self._steps = tuple(steps)
        self._context = context
        self._index = 0
        self.failure: StepFailure | None = None

    @property
    def index(self) -> int:
        """How many steps have been started so far."""
        return self._index

    async def run(self) -> Outcome:
        """Run every step until one short-circuits or the list is exhausted."""
        outcome: Outcome = CONTINUE
        while self._index < len(self._steps):
            outcome = await self.next()
            if not isinstance(outcome, Continue):
                break
        if self.failure is not None:
            # A failure deeper in the chain wins even if an outer step
            # swallowed the Block it produced.
            return Block(self.failure)
        return outcome

    async def next(self) -> Outcome:
        """Advance the index and invoke the step found there."""
        if self._index >= len(self._steps):
            return CONTINUE

        step = self._steps[self._index]
        self._index += 1

        try:
            result = step(self._context, self.next)
            if inspect.isawaitable(result):
                result = await result
            return coerce_outcome(result)
        except Exception as exc:
            failure = MiddlewareFailure(self._context.route.full_path, exc)
            logger.exception(
                "Middleware step %s failed for %s",
                _step_name(step),
                self._context.pathname,
            )
            if self.failure is None:
                self.failure = failure
            return Block(failure)


async def run_guard(guard: Guard, context: StepContext) -> Outcome:
    """Run a guard with the same failure contract as middleware."""
    try:
        result = guard(context)
        if inspect.isawaitable(result):
            result = await result
        return coerce_guard_result(result)
    except Exception as exc:
        logger.exception("Guard %s failed for %s", _step_name(guard), context.pathname)
        return Block(GuardFailure(context.route.full_path, exc))


async def run_steps(steps: Sequence[Step], context: StepContext) -> Outcome:
    """Run a step list. An empty list continues."""
    if not steps:
        return CONTINUE
    return await ChainExecutor(steps, context).run()


async def run_route_steps(context: StepContext) -> Outcome:
    """Run ``context.route``'s middleware, then its guard.

    The guard only runs when the middleware chain continued.
    """
    route = context.route
    outcome = await run_steps(route.middleware, context)
    if not isinstance(outcome, Continue):
        return outcome
    if route.guard is not None:
        return await run_guard(route.guard, context)
    return outcome


def _step_name(step: Any) -> str:
    return getattr(step, "__qualname__", None) or type(step).__name__
