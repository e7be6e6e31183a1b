"""Tests for roost.routing — route patterns, matching, and URL generation."""

import pytest

from roost.errors import ConfigurationError, RoutingError
from roost.routing import RouteEntry, RouteTable
from roost.routing.route import Group, Literal, Param, parse_pattern


def _table(**patterns: str) -> RouteTable:
    return RouteTable.from_config(
        {
            name: {"route": pattern, "module": "blog", "controller": "index", "action": name}
            for name, pattern in patterns.items()
        }
    )


class TestParsePattern:
    def test_static(self) -> None:
        assert parse_pattern("/admin") == (Literal("/admin"),)

    def test_param(self) -> None:
        assert parse_pattern("/post/:slug") == (Literal("/post/"), Param("slug"))

    def test_optional_group(self) -> None:
        tokens = parse_pattern("/archive(/page/:page)?")
        assert tokens[1] == Group((Literal("/page/"), Param("page")), optional=True)

    def test_unclosed_group(self) -> None:
        with pytest.raises(ConfigurationError, match="Unclosed"):
            parse_pattern("/archive(/page/:page")

    def test_unbalanced_close(self) -> None:
        with pytest.raises(ConfigurationError, match="Unbalanced"):
            parse_pattern("/archive)/page")

    def test_bare_colon(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_pattern("/post/:")

    def test_duplicate_param_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="more than once"):
            RouteEntry.build("dup", "/:id/:id", "blog", "index", "index")


class TestMatch:
    def test_static_match(self) -> None:
        table = _table(home="/")
        match = table.match("/")
        assert match is not None
        assert match.route_name == "home"
        assert match.params == {}

    def test_named_param(self) -> None:
        match = _table(post="/post/:slug").match("/post/hello-world")
        assert match is not None
        assert match.params == {"slug": "hello-world"}

    def test_param_does_not_cross_segments(self) -> None:
        assert _table(post="/post/:slug").match("/post/a/b") is None

    def test_optional_group_absent(self) -> None:
        match = _table(archive="/archive(/page/:page)?").match("/archive")
        assert match is not None
        assert "page" not in match.params

    def test_optional_group_present(self) -> None:
        match = _table(archive="/archive(/page/:page)?").match("/archive/page/3")
        assert match is not None
        assert match.params == {"page": "3"}

    def test_optional_group_at_root(self) -> None:
        table = _table(home="/(page/:page/index.html)?")
        assert table.match("/").params == {}
        assert table.match("/page/2/index.html").params == {"page": "2"}

    def test_first_match_wins(self) -> None:
        table = _table(specific="/post/new", generic="/post/:slug")
        assert table.match("/post/new").route_name == "specific"
        assert table.match("/post/other").route_name == "generic"

    def test_trailing_slash_ignored(self) -> None:
        assert _table(admin="/admin").match("/admin/").route_name == "admin"

    def test_literal_template_matches_exactly(self) -> None:
        table = _table(post="/post/:slug")
        match = table.match("/post/:slug")
        assert match.route_name == "post"
        assert match.params == {}

    def test_miss_returns_none(self) -> None:
        assert _table(home="/").match("/nowhere") is None

    def test_match_exposes_triple(self) -> None:
        match = _table(home="/").match("/")
        assert (match.module, match.controller, match.action) == ("blog", "index", "home")


class TestTable:
    def test_duplicate_names_rejected(self) -> None:
        entry = RouteEntry.build("home", "/", "blog", "index", "index")
        with pytest.raises(ConfigurationError, match="Duplicate"):
            RouteTable([entry, entry])

    def test_missing_key(self) -> None:
        with pytest.raises(ConfigurationError, match="missing required key"):
            RouteTable.from_config({"home": {"route": "/", "module": "blog"}})

    def test_lookup_by_pattern(self) -> None:
        table = _table(post="/post/:slug")
        assert table.lookup("/post/:slug").name == "post"
        assert table.lookup("/nope") is None

    def test_order_preserved(self) -> None:
        table = _table(a="/a", b="/b", c="/c")
        assert [e.name for e in table] == ["a", "b", "c"]
        assert len(table) == 3
        assert "b" in table


class TestUrlFor:
    def test_static(self) -> None:
        assert _table(admin="/admin").url_for("admin") == "/admin"

    def test_param_substituted(self) -> None:
        assert _table(post="/post/:slug").url_for("post", {"slug": "hello"}) == "/post/hello"

    def test_value_is_quoted(self) -> None:
        assert _table(post="/post/:slug").url_for("post", {"slug": "a b/c"}) == "/post/a%20b%2Fc"

    def test_optional_group_omitted(self) -> None:
        assert _table(archive="/archive(/page/:page)?").url_for("archive") == "/archive"

    def test_optional_group_emitted(self) -> None:
        url = _table(archive="/archive(/page/:page)?").url_for("archive", {"page": 2})
        assert url == "/archive/page/2"

    def test_root_optional_group_omitted(self) -> None:
        assert _table(home="/(page/:page/index.html)?").url_for("home") == "/"

    def test_missing_required_param(self) -> None:
        with pytest.raises(RoutingError, match="requires parameter 'slug'"):
            _table(post="/post/:slug").url_for("post")

    def test_unknown_route(self) -> None:
        with pytest.raises(RoutingError, match="No route named"):
            _table(home="/").url_for("missing")

    def test_url_round_trips_through_match(self) -> None:
        table = _table(post="/category/:cat/post/:slug")
        url = table.url_for("post", {"cat": "news", "slug": "launch"})
        assert table.match(url).params == {"cat": "news", "slug": "launch"}
