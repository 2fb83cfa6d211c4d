"""Navigator — the long-lived navigation state machine.

Transitions::

    idle --navigate--> resolving
    resolving --all steps continue--> committed --loaders settle--> committed
    resolving --redirect--> redirecting --(replace)--> resolving
    resolving --block / loop--> blocked --> idle
    any --navigate--> resolving          (supersedes the current attempt)

Every observed location change starts a new attempt with a higher
generation and cancels the previous attempt's token.  Results are only
applied while their generation is still the latest one, so a slow
navigation that finishes after a faster, later one is discarded.

Usage::

    navigator = create_navigator(routes)
    async with navigator:
        navigator.navigate("/users/42")
        state = await navigator.settled()
        print(state.status, state.params)

The navigator must be started from inside a running event loop.
Resolution and loaders run in tasks it owns.
"""

from __future__ import annotations

import asyncio
from collections import deque
import logging
from collections.abc import AsyncIterator, Callable, Coroutine, Iterable, Mapping
from functools import partial
from types import TracebackType
from typing import Any

from wayfinder.config import RouterConfig
from wayfinder.context import navigator_var
from wayfinder.errors import NavigationAborted, RedirectLoop
from wayfinder.navigation.blocker import Blocker, BlockerPredicate, Transition
from wayfinder.navigation.history import History, HistoryAction, MemoryHistory
from wayfinder.navigation.loaders import LoaderOrchestrator, LoaderSettled, loader_keys
from wayfinder.navigation.location import Location, join_paths, parse_location, validate_target
from wayfinder.navigation.resolver import Resolution, resolve_attempt
from wayfinder.navigation.state import NavigationAttempt, NavigationState, Phase, Status
from wayfinder.routing.route import RouteNode, merge_params
from wayfinder.routing.tree import RouteTree, create_route_tree

logger = logging.getLogger("wayfinder.navigation")

type StateListener = Callable[[NavigationState], None]


class Navigator[V]:
    """Drives resolution for one history store and publishes snapshots.

    Observers either ``subscribe()`` a callback or iterate ``watch()``.
    Both receive every published ``NavigationState`` in order.
    """

    __slots__ = (
        "_attempt",
        "_backlog",
        "_blockers",
        "_config",
        "_generation",
        "_history",
        "_listeners",
        "_pending_scroll",
        "_phase",
        "_publishing",
        "_redirect_chain",
        "_started",
        "_state",
        "_tasks",
        "_tree",
        "_unlisten",
        "_watchers",
    )

    def __init__(
        self,
        tree: RouteTree[V] | Iterable[Mapping[str, Any] | RouteNode[V]],
        *,
        history: History | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self._tree: RouteTree[V] = create_route_tree(tree)
        self._config = config if config is not None else RouterConfig()
        self._history: History = history if history is not None else MemoryHistory()
        self._generation = 0
        self._attempt: NavigationAttempt | None = None
        self._phase = Phase.IDLE
        self._state = NavigationState(location=self._history.location)
        self._listeners: list[StateListener] = []
        self._watchers: set[asyncio.Queue[NavigationState | None]] = set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._blockers: list[Blocker] = []
        self._unlisten: Callable[[], None] | None = None
        self._redirect_chain: tuple[str, ...] = ()
        self._pending_scroll = False
        self._started = False
        self._backlog: deque[NavigationState] = deque()
        self._publishing = False

    # -- Introspection --

    @property
    def state(self) -> NavigationState:
        """The most recently published snapshot."""
        return self._state

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_attempt(self) -> NavigationAttempt | None:
        return self._attempt

    @property
    def history(self) -> History:
        return self._history

    @property
    def tree(self) -> RouteTree[V]:
        return self._tree

    @property
    def config(self) -> RouterConfig:
        return self._config

    # -- Lifecycle --

    def start(self) -> NavigationAttempt:
        """Listen to the history store and resolve its current location.

        Must be called from a running event loop.
        """
        if self._started:
            msg = "Navigator already started"
            raise RuntimeError(msg)
        asyncio.get_running_loop()
        self._started = True
        self._unlisten = self._history.listen(self._on_location)
        return self._begin(self._history.location, HistoryAction.POP)

    def close(self) -> None:
        """Stop listening, cancel in-flight work, and end all ``watch()`` loops."""
        if self._unlisten is not None:
            self._unlisten()
            self._unlisten = None
        if self._attempt is not None:
            self._attempt.token.cancel()
        for task in self._tasks:
            task.cancel()
        for queue in self._watchers:
            if queue.full():
                # The sentinel must arrive; drop the oldest unread snapshot for it
                queue.get_nowait()
            queue.put_nowait(None)
        self._watchers.clear()
        self._started = False

    async def settled(self) -> NavigationState:
        """Wait until no resolution or loader task is running.

        Returns the snapshot published last.
        """
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        return self._state

    async def __aenter__(self) -> Navigator[V]:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        tasks = tuple(self._tasks)
        self.close()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # -- Observation --

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with every published snapshot.

        Returns a function that removes the listener.  Exceptions raised
        by listeners are logged and never reach the navigator.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def watch(self) -> AsyncIterator[NavigationState]:
        """Yield snapshots as they are published, until ``close()``.

        Slow consumers drop snapshots rather than stall the navigator.
        """
        queue: asyncio.Queue[NavigationState | None] = asyncio.Queue(maxsize=256)
        self._watchers.add(queue)
        try:
            while True:
                state = await queue.get()
                if state is None:
                    break
                yield state
        finally:
            self._watchers.discard(queue)

    # -- Navigation --

    def navigate(
        self,
        to: str | int,
        *,
        replace: bool = False,
        state: Any = None,
        prevent_scroll_reset: bool = False,
    ) -> NavigationAttempt | None:
        """Request a navigation to *to* (a relative URL, or a history delta).

        Returns the attempt started, or ``None`` when a blocker held the
        navigation or a history move was out of range.

        Raises:
            NavigationAborted: *to* is empty, malformed, or external.
                Nothing is written to history.
        """
        if isinstance(to, int) and not isinstance(to, bool):
            return self.go(to)
        return self._navigate(
            to,
            replace=replace,
            state=state,
            prevent_scroll_reset=prevent_scroll_reset,
            check_blockers=True,
        )

    def back(self) -> NavigationAttempt | None:
        return self.go(-1)

    def forward(self) -> NavigationAttempt | None:
        return self.go(1)

    def go(self, delta: int) -> NavigationAttempt | None:
        """Move *delta* entries through history. Out of range is a no-op."""
        self._require_started()
        if delta == 0:
            return self._begin(self._history.location, HistoryAction.POP)
        target = self._history.peek(delta)
        if target is None:
            return None

        def perform() -> NavigationAttempt | None:
            if self._history.go(delta) is None:
                return None
            return self._attempt

        transition = Transition(self._history.location, target, HistoryAction.POP)
        if self._hold(transition, perform):
            return None
        return perform()

    def block(self, predicate: BlockerPredicate) -> Blocker:
        """Register a blocker consulted before every user navigation."""
        blocker = Blocker(predicate, self._release_blocker)
        self._blockers.append(blocker)
        return blocker

    # -- Internals --

    def _release_blocker(self, blocker: Blocker) -> None:
        if blocker in self._blockers:
            self._blockers.remove(blocker)

    def _require_started(self) -> None:
        if not self._started:
            msg = "Navigator is not started. Call start() or use 'async with navigator'."
            raise RuntimeError(msg)

    def _navigate(
        self,
        to: object,
        *,
        replace: bool,
        state: Any,
        prevent_scroll_reset: bool,
        check_blockers: bool,
    ) -> NavigationAttempt | None:
        target = validate_target(to)
        self._require_started()
        url = self._absolute(target)
        action = HistoryAction.REPLACE if replace else HistoryAction.PUSH

        def perform() -> NavigationAttempt | None:
            self._pending_scroll = prevent_scroll_reset
            if replace:
                self._history.replace(url, state)
            else:
                self._history.push(url, state)
            return self._attempt

        if check_blockers:
            transition = Transition(self._history.location, parse_location(url, state=state), action)
            if self._hold(transition, perform):
                return None
        return perform()

    def _absolute(self, target: str) -> str:
        """Turn an app-relative target into a history URL."""
        if target.startswith(("?", "#")):
            current = self._history.location
            prefix = current.pathname + (current.search if target.startswith("#") else "")
            return prefix + target
        if self._config.basename:
            return join_paths(self._config.basename, target)
        return target

    def _hold(self, transition: Transition, perform: Callable[[], Any]) -> bool:
        for blocker in self._blockers:
            if blocker.should_block(transition):
                blocker.hold(transition, perform)
                return True
        return False

    def _on_location(self, location: Location, action: HistoryAction) -> None:
        self._begin(location, action)

    def _begin(self, location: Location, action: HistoryAction) -> NavigationAttempt:
        self._generation += 1
        if self._attempt is not None:
            self._attempt.token.cancel()

        attempt = NavigationAttempt(
            generation=self._generation,
            location=location,
            redirects=self._redirect_chain,
            action=action,
            prevent_scroll_reset=self._pending_scroll,
        )
        self._redirect_chain = ()
        self._pending_scroll = False
        self._attempt = attempt
        self._phase = Phase.RESOLVING
        logger.debug("Attempt %d: resolving %s (%s)", attempt.generation, location.href, action)

        self._publish(self._state.evolve(is_resolving=True))
        self._spawn(self._run(attempt))
        return attempt

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, attempt: NavigationAttempt) -> bool:
        return attempt.generation == self._generation

    async def _run(self, attempt: NavigationAttempt) -> None:
        navigator_var.set(self)
        try:
            resolution = await resolve_attempt(self._tree, attempt, self._config)
        except Exception as exc:
            logger.exception("Resolution of %s failed", attempt.location.href)
            resolution = Resolution(
                Status.NOT_FOUND,
                blocked=True,
                fallback=self._config.not_found_view,
                error=exc,
            )

        if not self._is_current(attempt):
            logger.debug(
                "Attempt %d is stale (latest %d), discarding",
                attempt.generation,
                self._generation,
            )
            return

        if resolution.status is Status.REDIRECT:
            self._redirect(attempt, resolution)
            return

        self._commit(attempt, resolution)

        if resolution.status is Status.OK and self._state.pending_loaders:
            orchestrator = LoaderOrchestrator(partial(self._accept_loader, attempt))
            await orchestrator.run(resolution.matches, attempt.token)

    def _redirect(self, attempt: NavigationAttempt, resolution: Resolution) -> None:
        target = resolution.redirect
        assert target is not None
        current = self._app_path(attempt.location.pathname)
        visited = (*attempt.redirects, current)

        try:
            url = self._absolute(validate_target(target))
        except NavigationAborted as exc:
            logger.warning("Route redirected to an invalid target %r", target)
            self._commit(attempt, self._blocked(resolution, exc))
            return

        next_path = self._app_path(parse_location(url).pathname)
        if next_path in visited or len(visited) > self._config.max_redirects:
            error = RedirectLoop((*visited, next_path))
            logger.warning("%s", error)
            self._commit(attempt, self._blocked(resolution, error))
            return

        self._phase = Phase.REDIRECTING
        self._publish(self._state.evolve(redirect_pending=target, is_resolving=True))
        self._redirect_chain = visited
        self._navigate(
            target,
            replace=True,
            state=None,
            prevent_scroll_reset=attempt.prevent_scroll_reset,
            check_blockers=False,
        )

    def _blocked(self, resolution: Resolution, error: BaseException) -> Resolution:
        return Resolution(
            Status.NOT_FOUND,
            resolution.matches,
            blocked=True,
            fallback=self._config.not_found_view,
            error=error,
        )

    def _app_path(self, pathname: str) -> str:
        stripped = self._config.strip_basename(pathname)
        return stripped if stripped is not None else pathname

    def _commit(self, attempt: NavigationAttempt, resolution: Resolution) -> None:
        pending = loader_keys(resolution.matches) if resolution.status is Status.OK else ()
        state = NavigationState(location=attempt.location).evolve(
            matches=resolution.matches,
            params=merge_params(resolution.matches),
            status=resolution.status,
            blocked=resolution.blocked,
            fallback=resolution.fallback,
            pending_loaders=pending,
            error=resolution.error,
            generation=attempt.generation,
            action=attempt.action,
            prevent_scroll_reset=attempt.prevent_scroll_reset,
        )
        if resolution.blocked:
            self._phase = Phase.BLOCKED
            self._publish(state)
            self._phase = Phase.IDLE
        else:
            self._phase = Phase.COMMITTED
            self._publish(state)
        logger.debug(
            "Attempt %d committed: %s %s",
            attempt.generation,
            resolution.status,
            attempt.location.href,
        )

    def _accept_loader(self, attempt: NavigationAttempt, settled: LoaderSettled) -> None:
        if not self._is_current(attempt):
            logger.debug("Dropping loader result for %s from stale attempt", settled.key)
            return
        state = self._state
        pending = state.pending_loaders - {settled.key}
        if settled.error is not None:
            state = state.evolve(
                loader_errors={**state.loader_errors, settled.key: settled.error},
                pending_loaders=pending,
            )
        else:
            state = state.evolve(
                loader_data={**state.loader_data, settled.key: settled.data},
                pending_loaders=pending,
            )
        self._publish(state)

    def _publish(self, state: NavigationState) -> None:
        self._state = state
        self._backlog.append(state)
        if self._publishing:
            # A listener navigated; deliver after the current snapshot
            return
        self._publishing = True
        try:
            while self._backlog:
                self._deliver(self._backlog.popleft())
        finally:
            self._publishing = False

    def _deliver(self, state: NavigationState) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Navigation listener %r failed", listener)
        for queue in self._watchers:
            try:
                queue.put_nowait(state)
            except asyncio.QueueFull:
                # Drop for slow consumers rather than blocking
                pass

    def __repr__(self) -> str:
        return (
            f"Navigator(phase={self._phase.value!r}, generation={self._generation}, "
            f"location={self._state.location.href!r})"
        )


def create_navigator[V](
    tree: RouteTree[V] | Iterable[Mapping[str, Any] | RouteNode[V]],
    *,
    history: History | None = None,
    config: RouterConfig | None = None,
) -> Navigator[V]:
    """Create a navigator over *tree*. Call ``start()`` inside an event loop."""
    return Navigator(tree, history=history, config=config)
