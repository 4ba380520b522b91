"""
=============================================================================
ROUTE DISPATCHER
=============================================================================

An ordered table of routes. Each route is a method, a literal pattern, a
match mode and a handler. Dispatch walks the table top to bottom and calls
the first route whose method equals the request method and whose pattern
matches the path:

    ┌────────┬──────────────────┬────────┬─────────────┐
    │ Method │ Pattern          │ Mode   │ Handler     │
    ├────────┼──────────────────┼────────┼─────────────┤
    │ GET    │ /api/v1/items    │ EXACT  │ list_items  │  ← GET /api/v1/items
    │ POST   │ /api/v1/items    │ EXACT  │ create_item │
    │ GET    │ /api/v1/items/   │ PREFIX │ get_item    │  ← GET /api/v1/items/7
    │ PUT    │ /api/v1/items/   │ PREFIX │ update_item │
    │ DELETE │ /api/v1/items/   │ PREFIX │ delete_item │
    │ GET    │ /                │ EXACT  │ root        │
    └────────┴──────────────────┴────────┴─────────────┘

    EXACT   path == pattern
    PREFIX  path.startswith(pattern); the handler parses the rest

Patterns are plain strings, not regexes, and the path is compared exactly
as the parser produced it: no trailing-slash stripping, no case folding.
The parser has already percent-decoded the path, so
"/api/v1/items%2F42" arrives here as "/api/v1/items/42" and matches the
item routes like its unencoded form.

When nothing matches the dispatcher answers 404 with the error envelope.
It does not distinguish "path exists under another method" from "no such
path", so there is no 405 from the router.

=============================================================================
ORDERING
=============================================================================

First match wins, so a PREFIX route shadows every later route of the same
method whose pattern starts with it. add_route() refuses such registrations
with RouteConflictError rather than silently creating a dead route:

    router.get("/api/v1/items/", prefix=True)(get_item)
    router.get("/api/v1/items/archived")(archived)     → RouteConflictError

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, List
import logging

from .request import HTTPRequest
from .response import HTTPResponse, error_response
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


Handler = Callable[[HTTPRequest], HTTPResponse]

NOT_FOUND_MESSAGE = "The requested resource or endpoint was not found on this server."


class RouteConflictError(ValueError):
    """A route was registered behind an earlier route that always wins."""


class MatchMode(Enum):
    EXACT = "exact"
    PREFIX = "prefix"


@dataclass
class Route:
    """
    One row of the dispatch table.

        Route(method="GET", pattern="/api/v1/items/",
              match_mode=MatchMode.PREFIX, handler=get_item)
    """

    method: str
    pattern: str
    match_mode: MatchMode
    handler: Handler
    name: Optional[str] = None

    def matches(self, method: str, path: str) -> bool:
        if method != self.method:
            return False
        if self.match_mode is MatchMode.EXACT:
            return path == self.pattern
        return path.startswith(self.pattern)

    def shadows(self, other: "Route") -> bool:
        """True if every request ``other`` accepts is taken by this route first."""
        if self.method != other.method:
            return False
        if self.match_mode is MatchMode.PREFIX:
            return other.pattern.startswith(self.pattern)
        return other.match_mode is MatchMode.EXACT and other.pattern == self.pattern


class Router:
    """
    Ordered first-match dispatcher.

        router = Router()

        @router.get("/api/v1/items")
        def list_items(request):
            ...

        @router.get("/api/v1/items/", prefix=True)
        def get_item(request):
            ...

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        match_mode: MatchMode = MatchMode.EXACT,
        name: Optional[str] = None,
    ) -> Route:
        """
        Append a route to the end of the table.

        Args:
            method: HTTP method, compared case-sensitively after upper().
            pattern: Literal path or path prefix.
            handler: Called with the request, returns an HTTPResponse.
            match_mode: EXACT or PREFIX.
            name: Label for logs; defaults to the handler's __name__.

        Raises:
            RouteConflictError: An earlier route already takes every
                                request this one would match.
        """
        route = Route(
            method=method.upper(),
            pattern=pattern,
            match_mode=match_mode,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
        )

        for existing in self._routes:
            if existing.shadows(route):
                raise RouteConflictError(
                    f"{route.method} {pattern} ({match_mode.value}) is unreachable: "
                    f"shadowed by {existing.method} {existing.pattern} "
                    f"({existing.match_mode.value})"
                )

        self._routes.append(route)
        return route

    def route(
        self,
        method: str,
        pattern: str,
        prefix: bool = False,
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of add_route(); returns the handler unchanged."""
        mode = MatchMode.PREFIX if prefix else MatchMode.EXACT

        def decorator(handler: Handler) -> Handler:
            self.add_route(method, pattern, handler, mode, name)
            return handler
        return decorator

    def get(self, pattern: str, prefix: bool = False, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route("GET", pattern, prefix, name)

    def post(self, pattern: str, prefix: bool = False, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route("POST", pattern, prefix, name)

    def put(self, pattern: str, prefix: bool = False, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route("PUT", pattern, prefix, name)

    def delete(self, pattern: str, prefix: bool = False, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route("DELETE", pattern, prefix, name)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Route]:
        """First route accepting (method, path), or None."""
        for route in self._routes:
            if route.matches(method, path):
                return route
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch ``request`` to its handler.

        Handler exceptions propagate; the server turns them into a 500.
        """
        route = self.match(request.method, request.path)

        if route is None:
            logger.debug("No route for %s %s", request.method, request.path)
            return error_response(
                HTTPStatus.NOT_FOUND,
                HTTPStatus.NOT_FOUND.phrase,
                NOT_FOUND_MESSAGE,
            )

        logger.debug("%s %s -> %s", request.method, request.path, route.name)
        return route.handler(request)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        """Registered routes in dispatch order (a copy)."""
        return list(self._routes)

    def describe(self) -> List[str]:
        """
        One line per route, for the startup log:

            GET      /api/v1/items              exact   list_items
            GET      /api/v1/items/             prefix  get_item
        """
        return [
            f"{route.method:8} {route.pattern:26} {route.match_mode.value:7} {route.name}"
            for route in self._routes
        ]

    def __len__(self) -> int:
        return len(self._routes)
