"""Tests for wayfinder.navigation.loaders — concurrent loader orchestration."""

import asyncio
import time

import pytest

from wayfinder.errors import LoaderFailure
from wayfinder.navigation.loaders import (
    LoaderOrchestrator,
    LoaderSettled,
    loader_keys,
    prefetch_loader_data,
)
from wayfinder.navigation.state import CancellationToken
from wayfinder.routing.matcher import match
from wayfinder.routing.tree import create_route_tree


def _tree(parent_loader, child_loader):
    return create_route_tree([
        {
            "path": "/users",
            "loader": parent_loader,
            "children": [{"path": ":id", "loader": child_loader}, {"path": "plain"}],
        },
    ])


class TestLoaderKeys:
    def test_only_routes_with_loaders(self) -> None:
        tree = _tree(lambda p, t: None, lambda p, t: None)
        assert loader_keys(match(tree, "/users/1")) == ("/users", "/users/:id")
        assert loader_keys(match(tree, "/users/plain")) == ("/users",)


class TestLoaderOrchestrator:
    @pytest.mark.asyncio
    async def test_results_reported_in_settle_order(self) -> None:
        async def slow(params, token):
            await asyncio.sleep(0.05)
            return "slow"

        async def fast(params, token):
            await asyncio.sleep(0.01)
            return "fast"

        settled: list[LoaderSettled] = []
        chain = match(_tree(slow, fast), "/users/1")
        await LoaderOrchestrator(settled.append).run(chain, CancellationToken())
        assert [(s.key, s.data) for s in settled] == [("/users/:id", "fast"), ("/users", "slow")]
        assert all(s.ok for s in settled)

    @pytest.mark.asyncio
    async def test_loaders_run_concurrently(self) -> None:
        async def sleepy(params, token):
            await asyncio.sleep(0.1)

        chain = match(_tree(sleepy, sleepy), "/users/1")
        start = time.monotonic()
        await LoaderOrchestrator(lambda s: None).run(chain, CancellationToken())
        assert time.monotonic() - start < 0.19

    @pytest.mark.asyncio
    async def test_loader_receives_params_and_token(self) -> None:
        seen: list[tuple[dict[str, str], CancellationToken]] = []

        def child(params, token):
            seen.append((dict(params), token))
            return params["id"]

        token = CancellationToken()
        settled: list[LoaderSettled] = []
        await LoaderOrchestrator(settled.append).run(match(_tree(None, child), "/users/9"), token)
        assert seen == [({"id": "9"}, token)]
        assert settled[0].data == "9"

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self) -> None:
        async def broken(params, token):
            raise KeyError("user")

        async def fine(params, token):
            await asyncio.sleep(0.01)
            return "ok"

        settled: list[LoaderSettled] = []
        await LoaderOrchestrator(settled.append).run(match(_tree(fine, broken), "/users/1"), CancellationToken())
        by_key = {s.key: s for s in settled}
        assert by_key["/users"].data == "ok"
        failure = by_key["/users/:id"].error
        assert isinstance(failure, LoaderFailure)
        assert isinstance(failure.__cause__, KeyError)
        assert not by_key["/users/:id"].ok

    @pytest.mark.asyncio
    async def test_no_loaders_is_noop(self) -> None:
        settled: list[LoaderSettled] = []
        tree = create_route_tree([{"path": "/"}])
        await LoaderOrchestrator(settled.append).run(match(tree, "/"), CancellationToken())
        assert settled == []


class TestPrefetchLoaderData:
    @pytest.mark.asyncio
    async def test_collects_data_and_errors(self) -> None:
        def parent(params, token):
            return {"count": 2}

        def child(params, token):
            raise RuntimeError("db down")

        result = await prefetch_loader_data(match(_tree(parent, child), "/users/1"))
        assert result.data == {"/users": {"count": 2}}
        assert set(result.errors) == {"/users/:id"}
        assert result.load_time >= 0

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        result = await prefetch_loader_data(())
        assert result.data == {}
        assert result.errors == {}
