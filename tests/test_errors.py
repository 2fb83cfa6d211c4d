"""Tests for wayfinder.errors — exception hierarchy and error messages."""

import pytest

from wayfinder.errors import (
    ConfigurationError,
    GuardFailure,
    LoaderFailure,
    MalformedPattern,
    MiddlewareFailure,
    NavigationAborted,
    RedirectLoop,
    StepFailure,
    WayfinderError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [ConfigurationError, NavigationAborted, StepFailure, LoaderFailure, RedirectLoop],
    )
    def test_is_wayfinder_error(self, cls: type[Exception]) -> None:
        assert issubclass(cls, WayfinderError)

    def test_malformed_pattern_is_configuration_error(self) -> None:
        assert issubclass(MalformedPattern, ConfigurationError)

    def test_step_failures(self) -> None:
        assert issubclass(GuardFailure, StepFailure)
        assert issubclass(MiddlewareFailure, StepFailure)


class TestMessages:
    def test_malformed_pattern(self) -> None:
        err = MalformedPattern("/a/*b/c", "catch-all segment must be last")
        assert str(err) == "Malformed pattern '/a/*b/c': catch-all segment must be last"

    def test_navigation_aborted(self) -> None:
        err = NavigationAborted("", "empty target")
        assert err.to == ""
        assert "empty target" in str(err)

    def test_guard_failure_chains_cause(self) -> None:
        cause = PermissionError("denied")
        err = GuardFailure("/admin", cause)
        assert err.__cause__ is cause
        assert err.error is cause
        assert str(err).startswith("Guard for route '/admin' raised")

    def test_middleware_failure_kind(self) -> None:
        err = MiddlewareFailure("/x", RuntimeError("boom"))
        assert str(err).startswith("Middleware for route '/x'")

    def test_loader_failure(self) -> None:
        cause = KeyError("user")
        err = LoaderFailure("/users/:id", cause)
        assert err.route_key == "/users/:id"
        assert err.__cause__ is cause

    def test_redirect_loop_chain(self) -> None:
        err = RedirectLoop(["/a", "/b", "/a"])
        assert err.chain == ("/a", "/b", "/a")
        assert str(err) == "Redirect loop detected: /a -> /b -> /a"
