"""
Test 2: Routing (routing/)

Tests path pattern compilation, typed locations, and the Router.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import pytest

from wirebind.faults import (
    InvalidRoutePatternFault,
    RouteConflictFault,
    RouteNotFoundFault,
    RouterFrozenFault,
)
from wirebind.routing.locations import TypedRoute, get_location, href, is_typed_route, location, parse
from wirebind.routing.patterns import compile_path, normalize_path
from wirebind.routing.router import Router


def handler(call):
    return "ok"


@location("/articles/{slug}")
@dataclass
class ArticleRoute(TypedRoute):
    slug: str
    page: Optional[int] = None


@location("/orders/{order_id:int}")
@dataclass
class OrderRoute(TypedRoute):
    order_id: int


# ============================================================================
# Patterns
# ============================================================================

class TestPatterns:

    def test_normalize_path(self):
        assert normalize_path("users/") == "/users"
        assert normalize_path("/") == "/"
        assert normalize_path("") == "/"

    def test_static_pattern(self):
        pattern = compile_path("/users")
        assert pattern.is_static
        assert pattern.match("/users") == {}
        assert pattern.match("/users/") == {}
        assert pattern.match("/user") is None

    def test_str_parameter(self):
        pattern = compile_path("/users/{name}")
        assert pattern.match("/users/demo") == {"name": "demo"}
        assert pattern.match("/users/demo/extra") is None
        assert pattern.match("/users") is None

    def test_int_parameter_is_cast(self):
        pattern = compile_path("/items/{id:int}")
        assert pattern.match("/items/42") == {"id": 42}
        assert pattern.match("/items/abc") is None

    def test_float_and_uuid_parameters(self):
        value = uuid.uuid4()
        assert compile_path("/p/{price:float}").match("/p/9.5") == {"price": 9.5}
        assert compile_path("/u/{uid:uuid}").match(f"/u/{value}") == {"uid": value}

    def test_path_parameter(self):
        pattern = compile_path("/files/{rest:path}")
        assert pattern.match("/files/a/b/c.txt") == {"rest": "a/b/c.txt"}

    def test_specificity_ordering(self):
        static = compile_path("/users/me")
        typed = compile_path("/users/{id:int}")
        generic = compile_path("/users/{name}")
        catch_all = compile_path("/users/{rest:path}")
        assert static.specificity > typed.specificity > generic.specificity > catch_all.specificity

    def test_format(self):
        pattern = compile_path("/users/{name}/posts/{id:int}")
        assert pattern.format(name="demo", id=3) == "/users/demo/posts/3"

    def test_shape(self):
        assert compile_path("/users/{name}").shape == "/users/{str}"
        assert compile_path("/users/{id}").shape == "/users/{str}"
        assert compile_path("/items/{id:int}/{rest:path}").shape == "/items/{int}/{path}"
        assert compile_path("/").shape == "/"

    def test_format_missing_value(self):
        with pytest.raises(KeyError):
            compile_path("/users/{name}").format()

    @pytest.mark.parametrize("path", [
        "/users/{name",
        "/users/{name:bogus}",
        "/users/{id}/{id}",
        "/files/{rest:path}/tail",
        "/users/x{name}",
    ])
    def test_invalid_patterns(self, path):
        with pytest.raises(InvalidRoutePatternFault):
            compile_path(path)


# ============================================================================
# Typed locations
# ============================================================================

class TestLocations:

    def test_location_decorator(self):
        assert is_typed_route(ArticleRoute)
        assert is_typed_route(ArticleRoute("x"))
        assert get_location(ArticleRoute).raw == "/articles/{slug}"

    def test_undecorated_class(self):
        class Plain:
            pass

        assert not is_typed_route(Plain)
        with pytest.raises(TypeError):
            get_location(Plain)

    def test_href_path_parameters(self):
        assert href(ArticleRoute("hello")) == "/articles/hello"
        assert href(OrderRoute(7)) == "/orders/7"

    def test_href_extra_fields_become_query(self):
        assert href(ArticleRoute("hello", page=2)) == "/articles/hello?page=2"

    def test_href_escapes_path_values(self):
        assert href(ArticleRoute("a/b")) == "/articles/a%2Fb"
        assert href(OrderRoute(-3)) == "/orders/-3"

    def test_parse(self):
        route = parse(ArticleRoute, {"slug": "hello"}, {"page": "3"})
        assert route == ArticleRoute("hello", page="3")

    def test_parse_ignores_unknown_query(self):
        route = parse(OrderRoute, {"order_id": 5}, {"utm": "x"})
        assert route == OrderRoute(5)


# ============================================================================
# Router
# ============================================================================

class TestRouter:

    def test_add_and_match_static(self):
        router = Router()
        route = router.get("/health", handler)
        match = router.match("GET", "/health")
        assert match.route is route
        assert match.params == {}

    def test_match_dynamic(self):
        router = Router()
        router.get("/users/{name}", handler)
        match = router.match("get", "/users/demo")
        assert match.params == {"name": "demo"}

    def test_unknown_path_is_none(self):
        router = Router()
        router.get("/users", handler)
        assert router.match("GET", "/nothing") is None
        assert router.match("POST", "/users") is None

    def test_more_specific_route_wins(self):
        router = Router()
        router.get("/users/{name}", handler, name="by_name")
        router.get("/users/{id:int}", handler, name="by_id")
        assert router.match("GET", "/users/12").route.name == "by_id"
        assert router.match("GET", "/users/bob").route.name == "by_name"

    def test_static_beats_dynamic(self):
        router = Router()
        router.get("/users/{name}", handler, name="dynamic")
        router.get("/users/me", handler, name="static")
        assert router.match("GET", "/users/me").route.name == "static"

    def test_equal_specificity_keeps_registration_order(self):
        router = Router()
        router.get("/{a}/x", handler, name="first")
        router.get("/y/{b}", handler, name="second")
        # "/y/x" matches both with equal specificity
        assert router.match("GET", "/y/x").route.name == "first"

    def test_conflict(self):
        router = Router()
        with router.registering("First"):
            router.get("/users", handler)
        with pytest.raises(RouteConflictFault) as exc:
            router.get("/users/", handler)
        assert "First" in str(exc.value)

    def test_conflict_ignores_parameter_names(self):
        router = Router()
        router.get("/users/{name}", handler)
        with pytest.raises(RouteConflictFault):
            router.get("/users/{id}", handler)

    def test_different_parameter_types_do_not_conflict(self):
        router = Router()
        router.get("/users/{name}", handler)
        router.get("/users/{id:int}", handler)
        router.post("/users/{id}", handler)
        assert len(router) == 3

    def test_same_path_different_method(self):
        router = Router()
        router.get("/users", handler)
        router.post("/users", handler)
        assert router.allowed_methods("/users") == {"GET", "POST"}

    def test_frozen(self):
        router = Router()
        router.freeze()
        assert router.frozen
        with pytest.raises(RouterFrozenFault):
            router.get("/late", handler)

    def test_registering_sets_owner(self):
        router = Router()
        with router.registering("UsersController"):
            route = router.get("/users", handler)
        outside = router.get("/other", handler)
        assert route.owner == "UsersController"
        assert outside.owner is None

    def test_typed_route(self):
        router = Router()
        route = router.route(OrderRoute, handler, name="orders.show")
        assert route.typed is OrderRoute
        assert route.path == "/orders/{order_id:int}"
        assert router.match("GET", "/orders/9").params == {"order_id": 9}

    def test_typed_route_decorator(self):
        router = Router()

        @router.route(ArticleRoute, method="post")
        def create(call, article):
            return article

        assert router.match("POST", "/articles/hello").route.handler is create

    def test_url_for(self):
        router = Router()
        router.get("/users/{name}", handler, name="users.show")
        assert router.url_for("users.show", name="demo") == "/users/demo"
        with pytest.raises(RouteNotFoundFault):
            router.url_for("missing")

    def test_url_for_escapes_values(self):
        router = Router()
        router.get("/users/{name}", handler, name="users.show")
        router.get("/files/{rest:path}", handler, name="files")
        assert router.url_for("users.show", name="a/b c") == "/users/a%2Fb%20c"
        assert router.url_for("files", rest="docs/read me.txt") == "/files/docs/read%20me.txt"

    def test_introspection(self):
        router = Router()
        router.get("/a", handler)
        router.post("/a", handler)
        router.get("/b/{x}", handler)
        assert len(router) == 3
        assert router.paths() == {"/a", "/b/{x}"}
        assert [r.method for r in router] == ["GET", "POST", "GET"]
        assert router.has_route("GET", "/b/1")
        assert not router.has_route("DELETE", "/a")
