"""
Unit tests for the route dispatcher.
"""

import pytest

from itemserver.http.router import (
    Router,
    MatchMode,
    RouteConflictError,
    NOT_FOUND_MESSAGE,
)
from itemserver.http.request import HTTPRequest
from itemserver.http.response import HTTPResponse, json_response
from itemserver.http.status_codes import HTTPStatus


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, path=path)


def tagged(tag: str):
    """Handler that reports which route answered."""
    def handler(request: HTTPRequest) -> HTTPResponse:
        return json_response(HTTPStatus.OK, {"route": tag, "path": request.path})
    handler.__name__ = tag
    return handler


@pytest.fixture
def items_router() -> Router:
    """Router shaped like the production item table."""
    router = Router()
    router.get("/api/v1/items")(tagged("list"))
    router.post("/api/v1/items")(tagged("create"))
    router.get("/api/v1/items/", prefix=True)(tagged("get"))
    router.put("/api/v1/items/", prefix=True)(tagged("update"))
    router.delete("/api/v1/items/", prefix=True)(tagged("delete"))
    router.get("/")(tagged("root"))
    return router


class TestRouteMatching:
    """Tests for exact and prefix matching."""

    def test_exact_collection_route(self, items_router: Router):
        """GET /api/v1/items hits the exact list route, not the prefix route."""
        route = items_router.match("GET", "/api/v1/items")
        assert route is not None
        assert route.name == "list"
        assert route.match_mode is MatchMode.EXACT

    def test_prefix_route_matches_id_paths(self, items_router: Router):
        """Test that id paths go to the prefix routes."""
        assert items_router.match("GET", "/api/v1/items/42").name == "get"
        assert items_router.match("PUT", "/api/v1/items/42").name == "update"
        assert items_router.match("DELETE", "/api/v1/items/42").name == "delete"

    def test_prefix_route_matches_bare_prefix(self, items_router: Router):
        """The trailing-slash collection path is a prefix match with empty remainder."""
        assert items_router.match("GET", "/api/v1/items/").name == "get"

    def test_prefix_route_matches_garbage_remainder(self, items_router: Router):
        """The router does not validate the remainder; the handler does."""
        assert items_router.match("GET", "/api/v1/items/notanumber").name == "get"

    def test_exact_route_is_exact(self, items_router: Router):
        """Test that exact routes reject longer or different paths."""
        assert items_router.match("POST", "/api/v1/items/") is None
        assert items_router.match("POST", "/api/v1/itemsx") is None
        assert items_router.match("GET", "/index.html") is None

    def test_method_must_match(self, items_router: Router):
        """Test that a known path with an unregistered method matches nothing."""
        assert items_router.match("PATCH", "/api/v1/items/1") is None
        assert items_router.match("DELETE", "/api/v1/items") is None
        assert items_router.match("POST", "/") is None

    def test_method_is_case_sensitive(self, items_router: Router):
        """Test that request methods are compared as sent."""
        assert items_router.match("get", "/api/v1/items") is None

    def test_no_path_normalization(self, items_router: Router):
        """Test that paths are compared literally."""
        assert items_router.match("GET", "/api/v1/items//").name == "get"
        assert items_router.match("GET", "/API/v1/items") is None
        assert items_router.match("GET", "//") is None

    def test_first_match_wins(self):
        """Test that the earliest matching route is chosen."""
        router = Router()
        router.get("/files/", prefix=True)(tagged("first"))
        router.get("/", prefix=True)(tagged("second"))

        assert router.match("GET", "/files/a").name == "first"
        assert router.match("GET", "/other").name == "second"


class TestRouterHandle:
    """Tests for Router.handle()."""

    def test_dispatches_to_handler(self, items_router: Router):
        """Test that the matched handler's response is returned."""
        response = items_router.handle(make_request("GET", "/api/v1/items/7"))

        assert response.status == HTTPStatus.OK
        assert response.json == {"route": "get", "path": "/api/v1/items/7"}

    def test_unmatched_returns_404_envelope(self, items_router: Router):
        """Test the 404 for an unknown path."""
        response = items_router.handle(make_request("GET", "/nope"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {
            "status_code": 404,
            "error": "Not Found",
            "message": NOT_FOUND_MESSAGE,
        }
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_wrong_method_is_404_not_405(self, items_router: Router):
        """Test that a method mismatch is indistinguishable from no route."""
        response = items_router.handle(make_request("PATCH", "/api/v1/items"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert "Allow" not in response.headers

    def test_empty_router_returns_404(self):
        """Test that an empty table answers every request with 404."""
        response = Router().handle(make_request("GET", "/"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_handler_exception_propagates(self):
        """Test that the router leaves handler crashes to the server."""
        router = Router()

        @router.get("/boom")
        def boom(request):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            router.handle(make_request("GET", "/boom"))


class TestRouteRegistration:
    """Tests for add_route() and the decorators."""

    def test_add_route(self):
        """Test adding a route directly."""
        router = Router()
        route = router.add_route("get", "/api/v1/items", tagged("list"))

        assert len(router) == 1
        assert route.method == "GET"
        assert route.pattern == "/api/v1/items"
        assert route.match_mode is MatchMode.EXACT
        assert route.name == "list"

    def test_decorator_returns_handler(self):
        """Test that decorators leave the handler usable."""
        router = Router()
        handler = tagged("x")

        assert router.put("/x/", prefix=True)(handler) is handler
        assert router.routes()[0].match_mode is MatchMode.PREFIX

    def test_routes_preserve_order(self, items_router: Router):
        """Test that routes() lists routes in dispatch order."""
        names = [route.name for route in items_router.routes()]
        assert names == ["list", "create", "get", "update", "delete", "root"]

    def test_routes_returns_copy(self, items_router: Router):
        """Test that callers cannot reorder the table."""
        items_router.routes().clear()
        assert len(items_router) == 6

    def test_describe(self, items_router: Router):
        """Test the one-line-per-route description."""
        lines = items_router.describe()

        assert len(lines) == 6
        assert lines[0].split() == ["GET", "/api/v1/items", "exact", "list"]
        assert lines[2].split() == ["GET", "/api/v1/items/", "prefix", "get"]

    def test_duplicate_exact_route_rejected(self):
        """Test that an identical exact route cannot be registered twice."""
        router = Router()
        router.get("/a")(tagged("one"))

        with pytest.raises(RouteConflictError):
            router.get("/a")(tagged("two"))

    def test_route_behind_prefix_rejected(self):
        """Test that a route inside an earlier prefix is refused."""
        router = Router()
        router.get("/api/v1/items/", prefix=True)(tagged("get"))

        with pytest.raises(RouteConflictError):
            router.get("/api/v1/items/archived")(tagged("archived"))
        with pytest.raises(RouteConflictError):
            router.get("/api/v1/items/x/", prefix=True)(tagged("nested"))

    def test_conflicts_are_per_method(self):
        """Test that a prefix only shadows routes of its own method."""
        router = Router()
        router.get("/api/v1/items/", prefix=True)(tagged("get"))
        router.post("/api/v1/items/archive")(tagged("archive"))

        assert router.match("POST", "/api/v1/items/archive").name == "archive"

    def test_exact_before_prefix_allowed(self):
        """Test the required ordering: exact collection route, then id prefix."""
        router = Router()
        router.get("/api/v1/items")(tagged("list"))
        router.get("/api/v1/items/", prefix=True)(tagged("get"))

        assert len(router) == 2

    def test_prefix_then_shorter_exact_allowed(self):
        """Test that an exact path outside the prefix is still reachable."""
        router = Router()
        router.get("/api/v1/items/", prefix=True)(tagged("get"))
        router.get("/api/v1/items")(tagged("list"))

        assert router.match("GET", "/api/v1/items").name == "list"
