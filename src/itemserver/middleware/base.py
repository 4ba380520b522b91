"""
=============================================================================
MIDDLEWARE
=============================================================================

A middleware is a callable ``(request, next) -> response`` wrapped around
the dispatcher. The pipeline nests them so the first one added is the
outermost:

    pipeline.add(LoggingMiddleware())
    handler = pipeline.wrap(router.handle)

        ┌──────────────────────────────────────────┐
        │  LoggingMiddleware                       │
        │  ┌────────────────────────────────────┐  │
        │  │  router.handle → ItemHandlers.*    │  │
        │  └────────────────────────────────────┘  │
        └──────────────────────────────────────────┘

Requests travel inward in the order added, responses travel back outward.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

    Subclasses implement __call__ and must call ``next(request)`` unless
    they answer the request themselves.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered list of middleware that can be wrapped around a handler."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append ``middleware``; returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug("Added middleware: %s", middleware.name)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around ``handler``.

        Wrapping runs in reverse so that for [A, B] the result is
        A → B → handler.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        # A separate scope per layer, so each closure keeps its own pair.
        def handler(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return handler

    def __len__(self) -> int:
        return len(self._middleware)
