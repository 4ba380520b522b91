"""
=============================================================================
ITEM SERVER
=============================================================================

Wires the pieces together:

    SocketServer ── accept ──► Connection ── read_request() ──► raw bytes
                                                                   │
                                              RequestParser.parse()│
                                                                   ▼
    HTTPResponse ◄── LoggingMiddleware ◄── Router ◄── ItemHandlers ◄── ItemStore
         │
         └── to_bytes() ──► Connection.send_response()

Errors that happen before a handler runs are answered here, with the same
error envelope the handlers use:

    read timed out            408
    request too large         413
    framing could not be read 400, traceback logged
    HTTPParseError            its own status (400 / 405 / 413 / 505)
    handler raised            500, traceback logged

Everything runs on the accepting thread, one connection at a time.

    server = ItemServer(ServerConfig(port=8000))
    server.run()                         # blocks until SIGINT/SIGTERM

    # or, without sockets:
    response = server.handle(request)

=============================================================================
"""

import logging
from typing import Optional, Callable, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, RequestTooLarge
from .handlers import ItemHandlers
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, Router,
    error_response, get_phrase,
)
from .middleware import MiddlewarePipeline, Middleware, LoggingMiddleware
from .routes import build_router
from .store import ItemStore


logger = logging.getLogger(__name__)


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

HANDLER_FAILURE_MESSAGE = "An unexpected error occurred while processing the request."
MALFORMED_REQUEST_MESSAGE = "Malformed request."


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for the CLI; leaves existing handlers alone."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    logging.getLogger("itemserver").setLevel(numeric)


class ItemServer:
    """
    The items API server.

    Args:
        config: Server settings; defaults to ServerConfig().
        store: Item store to serve. Built from ``config`` when omitted.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        store: Optional[ItemStore] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self.store = store if store is not None else ItemStore(
            capacity=self.config.store_capacity,
            auto_seed=self.config.seed_sample_items,
        )
        self.handlers = ItemHandlers(self.store)
        self._router = build_router(self.handlers)

        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._socket_server = SocketServer(self.config)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))
        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._middleware.wrap(
            self._router.handle
        )

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening on port 0."""
        return self._socket_server.address

    def use(self, middleware: Middleware) -> "ItemServer":
        """Add middleware inside the access logger and rebuild the chain."""
        self._middleware.add(middleware)
        self._handler = self._middleware.wrap(self._router.handle)
        return self

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True) -> None:
        """
        Serve until shutdown() or SIGINT/SIGTERM.

        Raises:
            OSError: The configured address could not be bound.
        """
        if setup_logging:
            configure_logging(self.config.log_level)

        logger.info(
            "Starting %s (capacity %d, sample data %s, keep-alive %s)",
            self.config.server_name,
            self.store.capacity,
            "on" if self.config.seed_sample_items else "off",
            "on" if self.config.keep_alive else "off",
        )
        for line in self._router.describe():
            logger.info("  %s", line)

        try:
            self._socket_server.start(self._process_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        logger.info("Server stopped")

    def shutdown(self) -> None:
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one parsed request through middleware and the router.

        Never raises: a handler exception becomes a 500 envelope.
        """
        try:
            return self._handler(request)
        except Exception:
            logger.exception("Handler error for %s %s", request.method, request.path)
            return error_response(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                HTTPStatus.INTERNAL_SERVER_ERROR.phrase,
                HANDLER_FAILURE_MESSAGE,
            )

    def respond(
        self,
        raw_request: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> Tuple[HTTPResponse, Optional[HTTPRequest]]:
        """
        Parse and handle one raw request.

        Returns:
            (response, request); request is None when parsing failed.
        """
        try:
            request = self._parser.parse(raw_request, client_address)
        except HTTPParseError as e:
            logger.info("Rejected request from %s: %s", client_address[0] or "-", e)
            return self._error(e.status_code, str(e)), None
        return self.handle(request), request

    def _process_connection(self, conn: Connection) -> None:
        """
        Serve one client. With keep-alive off (the default) that is a
        single request; with it on, requests are served until the client
        closes, goes idle, or asks for "Connection: close".
        """
        with conn:
            while True:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send(conn, self._error(HTTPStatus.REQUEST_TIMEOUT, "Request timeout"))
                    break
                except RequestTooLarge as e:
                    self._send(conn, self._error(HTTPStatus.PAYLOAD_TOO_LARGE, str(e)))
                    break
                except Exception:
                    logger.exception("[%s] Failed to read request", conn.id)
                    self._send(conn, self._error(HTTPStatus.BAD_REQUEST, MALFORMED_REQUEST_MESSAGE))
                    break

                if raw_request is None:
                    break

                response, request = self.respond(raw_request, conn.address)

                keep_alive = (
                    request is not None
                    and self.config.keep_alive
                    and request.is_keep_alive
                    and self._socket_server.is_running
                )
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not self._send(conn, response) or not keep_alive:
                    break
                conn.set_keep_alive()

    def _send(self, conn: Connection, response: HTTPResponse) -> bool:
        return conn.send_response(response.to_bytes(self.config.server_name))

    def _error(self, status: int, message: str) -> HTTPResponse:
        response = error_response(status, get_phrase(status), message)
        response.headers["Connection"] = "close"
        return response
