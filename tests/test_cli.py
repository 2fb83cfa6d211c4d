"""Tests for wayfinder.cli — CLI entrypoint, ``routes`` and ``resolve``."""

import sys
import types

import pytest

from wayfinder.cli import main


def _load_user(params, token):
    return {"name": f"user-{params['id']}"}


@pytest.fixture
def _fake_routes_module(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register a fake module with route definitions on sys.modules."""
    mod = types.ModuleType("_fake_wayfinder_cli")
    mod.routes = [  # type: ignore[attr-defined]
        {
            "path": "/",
            "children": [
                {"index": True},
                {"path": "users/:id", "loader": _load_user},
                {"path": "files/*", "guard": lambda ctx: True},
                {"path": "old", "redirect_to": "/"},
                {"path": "404"},
            ],
        },
    ]
    mod.empty = []  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_fake_wayfinder_cli", mod)


class TestCLIHelp:
    def test_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_routes_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "--help"])
        assert exc_info.value.code == 0

    def test_resolve_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["resolve", "--help"])
        assert exc_info.value.code == 0


class TestCLIMissingArgs:
    def test_routes_missing_tree(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes"])
        assert exc_info.value.code == 2

    def test_resolve_missing_path(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["resolve", "myapp"])
        assert exc_info.value.code == 2


class TestCLINoCommand:
    def test_no_command_exits_zero(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert "wayfinder" in captured.out


@pytest.mark.usefixtures("_fake_routes_module")
class TestRoutesCommand:
    def test_lists_tree(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_wayfinder_cli"])
        out = capsys.readouterr().out
        lines = out.splitlines()
        assert lines[0].split() == ["PATTERN", "PRIORITY", "KEY", "FLAGS"]
        assert "users/:id" in out
        assert "dynamic" in out
        assert "catch_all" in out
        assert "loader" in out
        assert "404" in out
        assert "-> /" in out

    def test_children_indented(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_wayfinder_cli:routes"])
        rows = capsys.readouterr().out.splitlines()[2:]
        assert not rows[0].startswith(" ")
        assert all(row.startswith("  ") for row in rows[1:])

    def test_empty_tree(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_wayfinder_cli:empty"])
        assert "No routes defined." in capsys.readouterr().out

    def test_bad_import(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "_fake_wayfinder_cli:missing"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


@pytest.mark.usefixtures("_fake_routes_module")
class TestResolveCommand:
    def test_ok(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["resolve", "_fake_wayfinder_cli", "/users/42"])
        out = capsys.readouterr().out
        assert out.startswith("200 ok  /users/42")
        assert "[/users/:id]" in out
        assert "id = '42'" in out
        assert "data[/users/:id]: {'name': 'user-42'}" in out

    def test_no_load(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["resolve", "_fake_wayfinder_cli", "/users/42", "--no-load"])
        assert "data[" not in capsys.readouterr().out

    def test_not_found_exits_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["resolve", "_fake_wayfinder_cli", "/nowhere/at/all"])
        assert exc_info.value.code == 1
        assert capsys.readouterr().out.startswith("404 not-found")

    def test_redirect_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            main(["resolve", "_fake_wayfinder_cli", "/old"])
        out = capsys.readouterr().out
        assert out.startswith("302 redirect")
        assert "redirect: /" in out

    def test_basename(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["resolve", "_fake_wayfinder_cli", "/app/users/7", "--basename", "/app"])
        assert "id = '7'" in capsys.readouterr().out

    def test_external_target_rejected(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["resolve", "_fake_wayfinder_cli", "https://example.com"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
