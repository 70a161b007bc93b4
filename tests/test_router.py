"""Tests for trellis.routing.router — pattern parsing, resolution, groups, url_for."""

import pytest

from trellis.errors import ConfigurationError, NotFound
from trellis.routing.route import Method, NoMatch, RouteMatch
from trellis.routing.router import Router, join_prefix, parse_pattern


def _handler(request, response, args):
    return response


def _other(request, response, args):
    return response


class TestParsePattern:
    def test_root(self) -> None:
        regex, parts = parse_pattern("/")
        assert regex.match("/")
        assert not regex.match("")
        assert len(parts) == 1

    def test_literal_is_escaped(self) -> None:
        regex, _ = parse_pattern("/file.txt")
        assert regex.match("/file.txt")
        assert not regex.match("/fileXtxt")

    def test_placeholder_captures_one_segment(self) -> None:
        regex, parts = parse_pattern("/user/{id}")
        found = regex.match("/user/42")
        assert found is not None
        assert found.group("id") == "42"
        assert not regex.match("/user/42/posts")
        assert not regex.match("/user/")
        assert parts[0].params == ("id",)

    def test_compiled_regex_rejects_trailing_newline(self) -> None:
        regex, _ = parse_pattern("/users")
        assert not regex.match("/users\n")

    def test_int_converter(self) -> None:
        regex, _ = parse_pattern("/user/{id:int}")
        assert regex.match("/user/42")
        assert not regex.match("/user/abc")

    def test_path_converter_spans_segments(self) -> None:
        regex, _ = parse_pattern("/files/{rest:path}")
        found = regex.match("/files/a/b/c.txt")
        assert found is not None
        assert found.group("rest") == "a/b/c.txt"

    def test_optional_segment(self) -> None:
        regex, parts = parse_pattern("/search[/{query}]")
        assert regex.match("/search")
        assert regex.match("/search/foo")
        assert not regex.match("/search/")
        assert [p.optional for p in parts] == [False, True]

    def test_nested_optional_segments(self) -> None:
        regex, parts = parse_pattern("/archive[/{year}[/{month}]]")
        assert regex.match("/archive")
        assert regex.match("/archive/2024")
        assert regex.match("/archive/2024/05")
        assert not regex.match("/archive/2024/05/01")
        assert [p.template for p in parts] == ["/archive", "/{year}", "/{month}"]

    @pytest.mark.parametrize(
        "pattern",
        [
            "users",
            "/users/<id>",
            "/user/{id",
            "/user/id}",
            "/search[/{query}",
            "/search/{query}]",
            "/a[/{b}]/c",
            "/a[]",
            "/user/{}",
            "/user/{1id}",
            "/user/{id}/{id}",
            "/user/{id:uuid}",
        ],
    )
    def test_malformed_patterns_raise(self, pattern: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_pattern(pattern)

    def test_duplicate_across_optional_segment(self) -> None:
        with pytest.raises(ConfigurationError, match="twice"):
            parse_pattern("/a/{x}[/{x}]")


class TestJoinPrefix:
    def test_joins(self) -> None:
        assert join_prefix("/api", "/users") == "/api/users"

    def test_trailing_slash_on_prefix(self) -> None:
        assert join_prefix("/api/", "/users") == "/api/users"

    def test_empty_pattern_is_prefix(self) -> None:
        assert join_prefix("/api", "") == "/api"
        assert join_prefix("/", "") == "/"

    def test_optional_pattern(self) -> None:
        assert join_prefix("/search", "[/{q}]") == "/search[/{q}]"

    def test_prefix_must_start_with_slash(self) -> None:
        with pytest.raises(ConfigurationError):
            join_prefix("api", "/users")

    def test_pattern_must_start_with_slash(self) -> None:
        with pytest.raises(ConfigurationError):
            join_prefix("/api", "users")


class TestRegister:
    def test_returns_route(self) -> None:
        router = Router()
        route = router.get("/users", _handler, name="users")
        assert route.method is Method.GET
        assert route.pattern == "/users"
        assert route.handler is _handler
        assert route.name == "users"

    def test_routes_in_registration_order(self) -> None:
        router = Router()
        router.get("/b", _handler)
        router.post("/a", _handler)
        assert [r.pattern for r in router.routes] == ["/b", "/a"]
        assert len(router) == 2

    def test_method_is_case_insensitive(self) -> None:
        router = Router()
        route = router.register("post", "/items", _handler)
        assert route.method is Method.POST

    def test_unknown_method(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="Unsupported HTTP method"):
            router.register("BREW", "/coffee", _handler)

    def test_handler_must_be_callable(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="callable"):
            router.get("/", "not a handler")  # type: ignore[arg-type]

    def test_duplicate_name(self) -> None:
        router = Router()
        router.get("/a", _handler, name="a")
        with pytest.raises(ConfigurationError, match="already registered"):
            router.get("/b", _handler, name="a")

    def test_malformed_pattern_fails_at_registration(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError):
            router.get("/user/{id", _handler)
        assert len(router) == 0

    def test_map_registers_each_method(self) -> None:
        router = Router()
        routes = router.map(["GET", "POST"], "/form", _handler, name="form")
        assert [r.method for r in routes] == [Method.GET, Method.POST]
        assert routes[0].name == "form"
        assert routes[1].name is None

    def test_route_decorator(self) -> None:
        router = Router()

        @router.route("/items", methods=["GET", "PUT"])
        def items(request, response, args):
            return response

        assert [r.method for r in router.routes] == [Method.GET, Method.PUT]
        assert router.routes[0].handler is items

    def test_verb_helpers(self) -> None:
        router = Router()
        router.get("/", _handler)
        router.post("/", _handler)
        router.put("/", _handler)
        router.delete("/", _handler)
        router.patch("/", _handler)
        router.options("/", _handler)
        router.any("/", _handler)
        assert [r.method.value for r in router.routes] == [
            "GET",
            "POST",
            "PUT",
            "DELETE",
            "PATCH",
            "OPTIONS",
            "ANY",
        ]

    def test_compile_freezes(self) -> None:
        router = Router()
        router.compile()
        with pytest.raises(RuntimeError, match="after compilation"):
            router.get("/", _handler)


class TestResolve:
    def test_static_match(self) -> None:
        router = Router()
        router.get("/users", _handler)
        result = router.resolve("GET", "/users")
        assert isinstance(result, RouteMatch)
        assert result.handler is _handler
        assert result.path_args == {}

    def test_captures_path_args(self) -> None:
        router = Router()
        router.get("/user/{id}", _handler)
        result = router.resolve("GET", "/user/42")
        assert isinstance(result, RouteMatch)
        assert result.path_args == {"id": "42"}

    def test_int_converter_keeps_strings(self) -> None:
        router = Router()
        router.get("/user/{id:int}", _handler)
        result = router.resolve("GET", "/user/7")
        assert isinstance(result, RouteMatch)
        assert result.path_args == {"id": "7"}

    def test_optional_segment_absent(self) -> None:
        router = Router()
        router.get("/search[/{query}]", _handler)
        result = router.resolve("GET", "/search")
        assert isinstance(result, RouteMatch)
        assert result.path_args == {}

    def test_optional_segment_present(self) -> None:
        router = Router()
        router.get("/search[/{query}]", _handler)
        result = router.resolve("GET", "/search/foo")
        assert isinstance(result, RouteMatch)
        assert result.path_args == {"query": "foo"}

    def test_nested_optional_partial(self) -> None:
        router = Router()
        router.get("/archive[/{year}[/{month}]]", _handler)
        result = router.resolve("GET", "/archive/2024")
        assert isinstance(result, RouteMatch)
        assert result.path_args == {"year": "2024"}

    def test_first_match_wins(self) -> None:
        router = Router()
        router.get("/user/{id}", _handler)
        router.get("/user/me", _other)
        result = router.resolve("GET", "/user/me")
        assert isinstance(result, RouteMatch)
        assert result.handler is _handler

    def test_earlier_static_route_shadows_later_param_route(self) -> None:
        router = Router()
        router.get("/user/me", _other)
        router.get("/user/{id}", _handler)
        me = router.resolve("GET", "/user/me")
        other = router.resolve("GET", "/user/42")
        assert isinstance(me, RouteMatch)
        assert me.handler is _other
        assert isinstance(other, RouteMatch)
        assert other.handler is _handler

    def test_method_must_match(self) -> None:
        router = Router()
        router.post("/items", _handler)
        result = router.resolve("GET", "/items")
        assert isinstance(result, NoMatch)

    def test_same_path_different_methods(self) -> None:
        router = Router()
        router.get("/items", _handler)
        router.post("/items", _other)
        get = router.resolve("GET", "/items")
        post = router.resolve("POST", "/items")
        assert isinstance(get, RouteMatch)
        assert isinstance(post, RouteMatch)
        assert get.handler is _handler
        assert post.handler is _other

    def test_any_matches_every_method(self) -> None:
        router = Router()
        router.any("/hook", _handler)
        for method in ("GET", "POST", "DELETE", "HEAD"):
            assert isinstance(router.resolve(method, "/hook"), RouteMatch)

    def test_head_falls_back_to_get(self) -> None:
        router = Router()
        router.get("/page", _handler)
        assert isinstance(router.resolve("HEAD", "/page"), RouteMatch)

    def test_head_does_not_fall_back_to_post(self) -> None:
        router = Router()
        router.post("/page", _handler)
        assert isinstance(router.resolve("HEAD", "/page"), NoMatch)

    def test_lowercase_request_method(self) -> None:
        router = Router()
        router.get("/", _handler)
        assert isinstance(router.resolve("get", "/"), RouteMatch)

    def test_trailing_slash_not_stripped(self) -> None:
        router = Router()
        router.get("/user/{id}", _handler)
        assert isinstance(router.resolve("GET", "/user/42/"), NoMatch)

    def test_trailing_newline_does_not_match_literal(self) -> None:
        router = Router()
        router.get("/users", _handler)
        assert isinstance(router.resolve("GET", "/users\n"), NoMatch)

    def test_placeholder_rejects_control_characters(self) -> None:
        router = Router()
        router.get("/user/{id}", _handler)
        assert isinstance(router.resolve("GET", "/user/42\n"), NoMatch)
        assert isinstance(router.resolve("GET", "/user/4\r2"), NoMatch)
        assert isinstance(router.resolve("GET", "/user/\x00"), NoMatch)

    def test_optional_segment_rejects_trailing_newline(self) -> None:
        router = Router()
        router.get("/search[/{query}]", _handler)
        assert isinstance(router.resolve("GET", "/search\n"), NoMatch)
        assert isinstance(router.resolve("GET", "/search/foo\n"), NoMatch)

    def test_path_converter_rejects_newline(self) -> None:
        router = Router()
        router.get("/files/{rest:path}", _handler)
        assert isinstance(router.resolve("GET", "/files/a/b\n"), NoMatch)

    def test_int_converter_rejects_trailing_newline(self) -> None:
        router = Router()
        router.get("/item/{id:int}", _handler)
        assert isinstance(router.resolve("GET", "/item/7\n"), NoMatch)

    def test_unregistered_path_returns_no_match(self) -> None:
        router = Router()
        router.get("/", _handler)
        result = router.resolve("GET", "/missing")
        assert isinstance(result, NoMatch)
        assert not result
        assert result.method == "GET"
        assert result.path == "/missing"

    def test_empty_router_never_raises(self) -> None:
        router = Router()
        assert isinstance(router.resolve("DELETE", "/anything/at/all"), NoMatch)

    def test_resolve_after_compile(self) -> None:
        router = Router()
        router.get("/", _handler)
        router.compile()
        assert isinstance(router.resolve("GET", "/"), RouteMatch)


class TestMatch:
    def test_returns_match(self) -> None:
        router = Router()
        router.get("/", _handler)
        assert router.match("GET", "/").handler is _handler

    def test_raises_not_found_with_request_line(self) -> None:
        router = Router()
        with pytest.raises(NotFound) as exc_info:
            router.match("POST", "/nope")
        assert exc_info.value.status == 404
        assert exc_info.value.method == "POST"
        assert exc_info.value.path == "/nope"


class TestRouteGroup:
    def test_prefix_applied(self) -> None:
        router = Router()
        api = router.group("/api")
        api.get("/users", _handler)
        assert router.routes[0].pattern == "/api/users"

    def test_context_manager_yields_group(self) -> None:
        router = Router()
        with router.group("/api") as api:
            api.post("/users", _handler)
        assert router.routes[0].pattern == "/api/users"
        assert router.routes[0].method is Method.POST

    def test_nested_groups_compose(self) -> None:
        router = Router()
        with router.group("/api") as api, api.group("/v1") as v1:
            v1.get("/users", _handler)
        assert router.routes[0].pattern == "/api/v1/users"
        assert isinstance(router.resolve("GET", "/api/v1/users"), RouteMatch)

    def test_empty_pattern_registers_prefix(self) -> None:
        router = Router()
        router.group("/api").get("", _handler)
        assert router.routes[0].pattern == "/api"

    def test_group_names_are_global(self) -> None:
        router = Router()
        router.group("/api").get("/users/{id}", _handler, name="user")
        assert router.url_for("user", id=3) == "/api/users/3"

    def test_group_helpers_share_verbs(self) -> None:
        router = Router()
        group = router.group("/x")
        group.any("/a", _handler)
        group.map(["GET", "DELETE"], "/b", _handler)
        assert [(r.method.value, r.pattern) for r in router.routes] == [
            ("ANY", "/x/a"),
            ("GET", "/x/b"),
            ("DELETE", "/x/b"),
        ]

    def test_bad_prefix(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError):
            router.group("api")


class TestUrlFor:
    def test_static(self) -> None:
        router = Router()
        router.get("/about", _handler, name="about")
        assert router.url_for("about") == "/about"

    def test_substitutes_args(self) -> None:
        router = Router()
        router.get("/user/{id:int}/posts/{slug}", _handler, name="post")
        assert router.url_for("post", id=42, slug="hello") == "/user/42/posts/hello"

    def test_quotes_args(self) -> None:
        router = Router()
        router.get("/tag/{name}", _handler, name="tag")
        assert router.url_for("tag", name="a b/c") == "/tag/a%20b%2Fc"

    def test_path_converter_keeps_slashes(self) -> None:
        router = Router()
        router.get("/files/{rest:path}", _handler, name="file")
        assert router.url_for("file", rest="a/b.txt") == "/files/a/b.txt"

    def test_optional_omitted(self) -> None:
        router = Router()
        router.get("/search[/{query}]", _handler, name="search")
        assert router.url_for("search") == "/search"
        assert router.url_for("search", query="foo") == "/search/foo"

    def test_nested_optional_stops_at_first_missing(self) -> None:
        router = Router()
        router.get("/archive[/{year}[/{month}]]", _handler, name="archive")
        assert router.url_for("archive", year=2024) == "/archive/2024"
        assert router.url_for("archive", year=2024, month="05") == "/archive/2024/05"
        assert router.url_for("archive", month="05") == "/archive"

    def test_missing_required_arg(self) -> None:
        router = Router()
        router.get("/user/{id}", _handler, name="user")
        with pytest.raises(ConfigurationError, match="requires"):
            router.url_for("user")

    def test_unknown_arg(self) -> None:
        router = Router()
        router.get("/user/{id}", _handler, name="user")
        with pytest.raises(ConfigurationError, match="takes no argument"):
            router.url_for("user", id=1, page=2)

    def test_unknown_name(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="No route named"):
            router.url_for("missing")

    def test_built_url_resolves_back(self) -> None:
        router = Router()
        router.get("/user/{id}", _handler, name="user")
        result = router.resolve("GET", router.url_for("user", id="42"))
        assert isinstance(result, RouteMatch)
        assert result.path_args == {"id": "42"}
