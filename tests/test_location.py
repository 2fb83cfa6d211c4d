"""Tests for wayfinder.navigation.location — locations and target validation."""

import pytest

from wayfinder.errors import NavigationAborted
from wayfinder.navigation.location import (
    Location,
    create_key,
    join_paths,
    parse_location,
    validate_target,
)


class TestParseLocation:
    def test_full(self) -> None:
        location = parse_location("/users?tab=a#top")
        assert location == Location("/users", "?tab=a", "#top")
        assert location.href == "/users?tab=a#top"
        assert str(location) == location.href

    def test_empty(self) -> None:
        assert parse_location("").pathname == "/"

    def test_relative_path_gains_slash(self) -> None:
        assert parse_location("users").pathname == "/users"

    def test_bare_separators_dropped(self) -> None:
        location = parse_location("/a?#")
        assert location.search == ""
        assert location.hash == ""

    def test_hash_before_query_is_hash(self) -> None:
        location = parse_location("/a#x?y")
        assert location.search == ""
        assert location.hash == "#x?y"

    def test_state_and_key(self) -> None:
        location = parse_location("/a", state=1, key="abc")
        assert location.state == 1
        assert location.key == "abc"

    def test_state_and_key_not_compared(self) -> None:
        assert parse_location("/a", state=1) == parse_location("/a", state=2)

    def test_query(self) -> None:
        assert parse_location("/s?q=hi&page=2").query.get_int("page") == 2


class TestCreateKey:
    def test_unique_and_short(self) -> None:
        keys = {create_key() for _ in range(100)}
        assert len(keys) == 100
        assert all(len(k) == 8 for k in keys)


class TestValidateTarget:
    @pytest.mark.parametrize("target", ["/a", "/a?b=1", "?b=1", "#top"])
    def test_valid_targets_unchanged(self, target: str) -> None:
        assert validate_target(target) == target

    def test_relative_gains_slash(self) -> None:
        assert validate_target("users/1") == "/users/1"

    @pytest.mark.parametrize(
        "target",
        [
            "",
            "   ",
            "https://evil.example/",
            "//evil.example/path",
            "javascript:alert(1)",
            "/a\nb",
            "/a\x00",
        ],
    )
    def test_rejected(self, target: str) -> None:
        with pytest.raises(NavigationAborted):
            validate_target(target)

    def test_non_string(self) -> None:
        with pytest.raises(NavigationAborted, match="expected str"):
            validate_target(None)

    def test_error_carries_target(self) -> None:
        with pytest.raises(NavigationAborted) as exc_info:
            validate_target("http://x")
        assert exc_info.value.to == "http://x"


class TestJoinPaths:
    def test_single_separator(self) -> None:
        assert join_paths("/app/", "/users") == "/app/users"
        assert join_paths("/app", "users") == "/app/users"
