"""Tests for wayfinder.routing.matcher — priority-ordered recursive matching."""

import pytest

from wayfinder.routing.matcher import match, match_pattern, match_routes, order_candidates
from wayfinder.routing.pattern import parse_pattern, split_path
from wayfinder.routing.tree import create_route_tree


def _keys(chain) -> list[str]:
    return [m.key for m in chain]


APP = create_route_tree([
    {
        "path": "/",
        "view": "shell",
        "children": [
            {"index": True, "view": "home"},
            {
                "path": "users",
                "view": "users",
                "children": [
                    {"index": True, "view": "user-list"},
                    {
                        "path": ":id",
                        "view": "user",
                        "children": [{"path": "settings", "view": "settings"}],
                    },
                ],
            },
            {"path": "404", "view": "not-found"},
        ],
    },
])


class TestMatchPattern:
    def test_exact_static(self) -> None:
        assert match_pattern(parse_pattern("/a/b"), ["a", "b"], 0, partial=False) == ({}, 2)

    def test_static_mismatch(self) -> None:
        assert match_pattern(parse_pattern("/a/b"), ["a", "c"], 0, partial=False) is None

    def test_too_long_without_partial(self) -> None:
        assert match_pattern(parse_pattern("/a"), ["a", "b"], 0, partial=False) is None

    def test_partial_consumes_prefix(self) -> None:
        assert match_pattern(parse_pattern("/a"), ["a", "b"], 0, partial=True) == ({}, 1)

    def test_start_offset(self) -> None:
        found = match_pattern(parse_pattern(":id"), ["users", "7"], 1, partial=False)
        assert found == ({"id": "7"}, 1)

    def test_case_insensitive(self) -> None:
        pattern = parse_pattern("/About")
        assert match_pattern(pattern, ["about"], 0, partial=False) is None
        assert match_pattern(pattern, ["about"], 0, partial=False, case_sensitive=False) == ({}, 1)

    def test_params_are_not_case_folded(self) -> None:
        found = match_pattern(parse_pattern("/:name"), ["MiXeD"], 0, partial=False, case_sensitive=False)
        assert found == ({"name": "MiXeD"}, 1)


class TestOptionalAndCatchAll:
    def test_optional_present(self) -> None:
        found = match_pattern(parse_pattern("/docs/:lang?"), ["docs", "en"], 0, partial=False)
        assert found == ({"lang": "en"}, 2)

    def test_trailing_optional_absent_binds_empty(self) -> None:
        found = match_pattern(parse_pattern("/docs/:lang?"), ["docs"], 0, partial=False)
        assert found == ({"lang": ""}, 1)

    def test_leading_optional_binds_positionally(self) -> None:
        # No backtracking: "docs" binds :lang and the static segment is missing.
        assert match_pattern(parse_pattern("/:lang?/docs"), ["docs"], 0, partial=False) is None

    @pytest.mark.parametrize(
        ("parts", "expected"),
        [
            ([], ({"a": "", "b": ""}, 0)),
            (["x"], ({"a": "x", "b": ""}, 1)),
            (["x", "y"], ({"a": "x", "b": "y"}, 2)),
        ],
    )
    def test_consecutive_optionals_fill_left_to_right(self, parts, expected) -> None:
        assert match_pattern(parse_pattern("/:a?/:b?"), parts, 0, partial=False) == expected

    def test_consecutive_optionals_reject_extra_segments(self) -> None:
        assert match_pattern(parse_pattern("/:a?/:b?"), ["x", "y", "z"], 0, partial=False) is None

    def test_consecutive_optionals_partial_prefix(self) -> None:
        pattern = parse_pattern("/:a?/:b?")
        assert match_pattern(pattern, ["x", "y", "z"], 0, partial=True) == ({"a": "x", "b": "y"}, 2)
        assert match_pattern(pattern, ["x"], 0, partial=True) == ({"a": "x", "b": ""}, 1)

    def test_parent_with_consecutive_optionals(self) -> None:
        tree = create_route_tree([
            {"path": "/:lang?/:region?", "children": [{"path": "about", "view": "about"}]},
        ])
        chain = match(tree, "/en/us/about")
        assert _keys(chain) == ["/:lang?/:region?", "/:lang?/:region?/about"]
        assert chain[-1].params == {"lang": "en", "region": "us"}

        # Greedy binding: "about" fills :lang, nothing is left for the child.
        chain = match(tree, "/about")
        assert _keys(chain) == ["/:lang?/:region?"]
        assert chain[-1].params == {"lang": "about", "region": ""}

    def test_catch_all_binds_remainder(self) -> None:
        found = match_pattern(parse_pattern("/files/*path"), split_path("/files/a/b/c.txt"), 0, partial=False)
        assert found == ({"path": "a/b/c.txt"}, 4)

    def test_catch_all_may_be_empty(self) -> None:
        found = match_pattern(parse_pattern("/files/*path"), ["files"], 0, partial=False)
        assert found == ({"path": ""}, 1)

    def test_dynamic_before_catch_all_binds_one_segment(self) -> None:
        found = match_pattern(parse_pattern("/:repo/*rest"), ["wayfinder", "src", "app.py"], 0, partial=False)
        assert found == ({"repo": "wayfinder", "rest": "src/app.py"}, 3)

    def test_dynamic_before_catch_all_requires_a_segment(self) -> None:
        assert match_pattern(parse_pattern("/:repo/*rest"), [], 0, partial=False) is None


class TestPriority:
    def test_static_beats_dynamic_beats_catch_all(self) -> None:
        tree = create_route_tree([
            {"path": "/*rest", "view": "catch"},
            {"path": "/:id", "view": "dynamic"},
            {"path": "/users", "view": "static"},
        ])
        assert match(tree, "/users")[-1].node.view == "static"
        assert match(tree, "/42")[-1].node.view == "dynamic"
        assert match(tree, "/a/b")[-1].node.view == "catch"

    def test_declaration_order_within_bucket(self) -> None:
        tree = create_route_tree([
            {"path": "/:first", "view": "first"},
            {"path": "/:second", "view": "second"},
        ])
        assert match(tree, "/x")[-1].node.view == "first"

    def test_order_candidates_excludes_not_found(self) -> None:
        tree = create_route_tree([{"path": "/*x"}, {"path": "404"}, {"path": "/a"}])
        assert [n.key for n in order_candidates(tree.routes)] == ["/a", "/*x"]

    def test_aliases_tried_in_order(self) -> None:
        tree = create_route_tree([{"path": ["/people/:id", "/users/:id"], "view": "user"}])
        chain = match(tree, "/users/3")
        assert chain[-1].pattern == "/users/:id"
        assert chain[-1].params == {"id": "3"}


class TestNestedMatching:
    def test_full_chain(self) -> None:
        chain = match(APP, "/users/42/settings")
        assert chain is not None
        assert [m.node.view for m in chain] == ["shell", "users", "user", "settings"]
        assert chain[-1].params == {"id": "42"}
        assert chain[-1].pattern == "/users/:id/settings"

    def test_parent_without_matching_child_terminates(self) -> None:
        chain = match(APP, "/users/42")
        assert [m.node.view for m in chain] == ["shell", "users", "user"]

    def test_index_route(self) -> None:
        assert [m.node.view for m in match(APP, "/users")] == ["shell", "users", "user-list"]
        assert [m.node.view for m in match(APP, "/")] == ["shell", "home"]

    def test_base_paths(self) -> None:
        chain = match(APP, "/users/42/settings")
        assert [m.base_path for m in chain] == ["/", "/", "/users", "/users/42"]

    def test_pathname_normalized(self) -> None:
        chain = match(APP, "//users/42/")
        assert all(m.pathname == "/users/42" for m in chain)

    def test_no_match(self) -> None:
        assert match(APP, "/unknown") is None

    def test_unknown_reports_not_found_route(self) -> None:
        outcome = match_routes(APP, "/unknown")
        assert outcome.matches is None
        assert outcome.not_found is not None
        assert outcome.not_found.view == "not-found"

    def test_not_found_path_is_never_matched_directly(self) -> None:
        outcome = match_routes(APP, "/404")
        assert outcome.matches is None
        assert outcome.not_found.view == "not-found"

    def test_deepest_fallback_wins(self) -> None:
        tree = create_route_tree([
            {"path": "/", "children": [
                {"path": "admin", "children": [{"path": "users"}, {"path": "404", "view": "admin-404"}]},
                {"path": "404", "view": "root-404"},
            ]},
        ])
        assert match_routes(tree, "/admin/nope").not_found.view == "admin-404"
        assert match_routes(tree, "/nope").not_found.view == "root-404"

    def test_root_level_fallback(self) -> None:
        tree = create_route_tree([{"path": "/a"}, {"path": "404", "view": "nf"}])
        assert match_routes(tree, "/b").not_found.view == "nf"

    def test_base_path_scoping(self) -> None:
        tree = create_route_tree([{"path": ":section", "view": "section"}])
        chain = match(tree, "/app/docs", "/app")
        assert chain[-1].params == {"section": "docs"}
        assert chain[-1].base_path == "/app"
        assert match(tree, "/other/docs", "/app") is None

    def test_sequence_of_nodes_accepted(self) -> None:
        assert match(APP.routes, "/users") is not None


class TestParamMerge:
    def test_params_accumulate_root_first(self) -> None:
        tree = create_route_tree([
            {"path": "/orgs/:org", "children": [{"path": "repos/:repo"}]},
        ])
        chain = match(tree, "/orgs/acme/repos/rocket")
        assert chain[0].params == {"org": "acme"}
        assert chain[1].params == {"org": "acme", "repo": "rocket"}

    def test_deepest_writer_wins(self) -> None:
        tree = create_route_tree([
            {"path": "/:id", "children": [{"path": "child/:inner", "children": [{"path": ":id"}]}]},
        ])
        # Duplicate names across levels are allowed; the deepest binding wins.
        chain = match(tree, "/outer/child/x/inner")
        assert chain[-1].params["id"] == "inner"
        assert chain[0].params["id"] == "outer"

    def test_params_are_read_only(self) -> None:
        chain = match(APP, "/users/1")
        with pytest.raises(TypeError):
            chain[-1].params["id"] = "2"  # type: ignore[index]


class TestDeterminism:
    def test_same_input_same_chain(self) -> None:
        first = match(APP, "/users/42/settings")
        second = match(APP, "/users/42/settings")
        assert first == second

    def test_redundant_separators_match_like_canonical(self) -> None:
        assert _keys(match(APP, "/users//42/settings/")) == _keys(match(APP, "/users/42/settings"))
