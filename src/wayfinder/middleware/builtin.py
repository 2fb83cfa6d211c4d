"""Built-in steps: authentication, roles, data prefetch, access logging.

Each factory returns a step ready for a route's ``middleware`` list::

    {
        "path": "/admin",
        "middleware": [
            logging_step(),
            auth_step(lambda ctx: session.user is not None),
            role_step(lambda ctx: "admin" in session.roles),
        ],
        "view": AdminPanel,
    }
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from wayfinder.errors import MiddlewareFailure
from wayfinder.middleware.protocol import Block, Next, Outcome, Redirect, StepContext

logger = logging.getLogger("wayfinder.middleware")
_access_logger = logging.getLogger("wayfinder.access")

type Check = Callable[[StepContext], bool | Awaitable[bool]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class RedirectUnless:
    """Continue when ``check`` passes, otherwise redirect to ``redirect_to``."""

    __slots__ = ("check", "redirect_to")

    def __init__(self, check: Check, redirect_to: str) -> None:
        self.check = check
        self.redirect_to = redirect_to

    async def __call__(self, context: StepContext, next: Next) -> Outcome:
        if not await _maybe_await(self.check(context)):
            return Redirect(self.redirect_to)
        return await next()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(redirect_to={self.redirect_to!r})"


def auth_step(check: Check, redirect_to: str = "/login") -> RedirectUnless:
    """Redirect to *redirect_to* unless *check* says the user is signed in."""
    return RedirectUnless(check, redirect_to)


def role_step(check: Check, redirect_to: str = "/unauthorized") -> RedirectUnless:
    """Redirect to *redirect_to* unless *check* says the user has the role."""
    return RedirectUnless(check, redirect_to)


class DataStep:
    """Fetch data before the route commits and share it with later steps.

    The result is stored in ``context.shared[key]`` (when ``key`` is set)
    and handed to ``on_data``.  A failing fetch calls ``on_error`` and
    blocks the route.
    """

    __slots__ = ("fetch", "key", "on_data", "on_error")

    def __init__(
        self,
        fetch: Callable[[StepContext], Any],
        *,
        key: str | None = None,
        on_data: Callable[[Any, StepContext], Any] | None = None,
        on_error: Callable[[Exception, StepContext], Any] | None = None,
    ) -> None:
        self.fetch = fetch
        self.key = key
        self.on_data = on_data
        self.on_error = on_error

    async def __call__(self, context: StepContext, next: Next) -> Outcome:
        try:
            data = await _maybe_await(self.fetch(context))
            if self.key is not None:
                context.shared[self.key] = data
            if self.on_data is not None:
                await _maybe_await(self.on_data(data, context))
        except Exception as exc:
            logger.warning("Data step failed for %s: %r", context.pathname, exc)
            if self.on_error is not None:
                self.on_error(exc, context)
            return Block(MiddlewareFailure(context.route.full_path, exc))
        return await next()


def data_step(
    fetch: Callable[[StepContext], Any],
    *,
    key: str | None = None,
    on_data: Callable[[Any, StepContext], Any] | None = None,
    on_error: Callable[[Exception, StepContext], Any] | None = None,
) -> DataStep:
    return DataStep(fetch, key=key, on_data=on_data, on_error=on_error)


class LoggingStep:
    """Record route access, then continue.

    Without a custom ``log`` callable, writes one INFO line per route
    level to the ``wayfinder.access`` logger.
    """

    __slots__ = ("log",)

    def __init__(self, log: Callable[[StepContext], Any] | None = None) -> None:
        self.log = log

    async def __call__(self, context: StepContext, next: Next) -> Outcome:
        if self.log is not None:
            await _maybe_await(self.log(context))
        else:
            _access_logger.info(
                "%s%s -> %s (depth %d)",
                context.location.pathname,
                context.location.search,
                context.route.key,
                context.depth,
            )
        return await next()


def logging_step(log: Callable[[StepContext], Any] | None = None) -> LoggingStep:
    return LoggingStep(log)
