"""Loader orchestration — concurrent, cancellable, generation-checked.

Pipeline::

    matches = (root, users, settings)      # accepted chain
    1. Pick the routes that declare a loader
    2. Dispatch them concurrently (anyio task group)
    3. As each settles, hand ``LoaderSettled`` to the sink
    4. The sink (navigator or server prefetch) decides whether the
       result is still current before applying it

Loaders never see each other's results, so dispatch order carries no
meaning.  Acceptance order is the order they settle in.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import anyio

from wayfinder.errors import LoaderFailure
from wayfinder.navigation.state import CancellationToken
from wayfinder.routing.route import MatchResult

logger = logging.getLogger("wayfinder.loaders")


@dataclass(frozen=True, slots=True)
class LoaderSettled:
    """One loader finished, successfully or not."""

    key: str
    data: Any = None
    error: LoaderFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


type SettledSink = Callable[[LoaderSettled], None]


def loader_keys(matches: Sequence[MatchResult[Any]]) -> tuple[str, ...]:
    """Keys of the routes in *matches* that declare a loader, root-first."""
    return tuple(m.node.key for m in matches if m.node.loader is not None)


class LoaderOrchestrator:
    """Run every loader of a match chain and report each result.

    Usage::

        orchestrator = LoaderOrchestrator(on_settled)
        await orchestrator.run(state.matches, attempt.token)
    """

    __slots__ = ("_sink",)

    def __init__(self, sink: SettledSink) -> None:
        self._sink = sink

    async def run(self, matches: Sequence[MatchResult[Any]], token: CancellationToken) -> None:
        """Dispatch all loaders concurrently and wait for every one to settle."""
        pending = [m for m in matches if m.node.loader is not None]
        if not pending:
            return
        async with anyio.create_task_group() as tg:
            for match in pending:
                tg.start_soon(self._run_one, match, token)

    async def _run_one(self, match: MatchResult[Any], token: CancellationToken) -> None:
        key = match.node.key
        loader = match.node.loader
        assert loader is not None
        try:
            result = loader(match.params, token)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.exception("Loader for %s failed", key)
            settled = LoaderSettled(key, error=LoaderFailure(key, exc))
        else:
            settled = LoaderSettled(key, data=result)
        self._sink(settled)


@dataclass(frozen=True, slots=True)
class PrefetchResult:
    """Loader results gathered in one pass (server-side rendering).

    Attributes:
        data: Route key -> loader result.
        errors: Route key -> ``LoaderFailure``.
        load_time: Wall time spent, in seconds.
    """

    data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    errors: Mapping[str, LoaderFailure] = field(default_factory=lambda: MappingProxyType({}))
    load_time: float = 0.0


async def prefetch_loader_data(
    matches: Sequence[MatchResult[Any]],
    token: CancellationToken | None = None,
) -> PrefetchResult:
    """Run all loaders of *matches* and wait for every result.

    Used before rendering on the server, where there is no later
    update to wait for.
    """
    start = time.monotonic()
    data: dict[str, Any] = {}
    errors: dict[str, LoaderFailure] = {}

    def collect(settled: LoaderSettled) -> None:
        if settled.error is not None:
            errors[settled.key] = settled.error
        else:
            data[settled.key] = settled.data

    await LoaderOrchestrator(collect).run(matches, token or CancellationToken())
    return PrefetchResult(
        data=MappingProxyType(data),
        errors=MappingProxyType(errors),
        load_time=time.monotonic() - start,
    )
