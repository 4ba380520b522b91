"""
pytest configuration and fixtures.
"""

import json
import threading
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from itemserver import ItemServer, ServerConfig, ItemStore
from itemserver.http import HTTPRequest


def make_request(
    method: str,
    path: str,
    body: Optional[object] = None,
    raw_body: Optional[bytes] = None,
) -> HTTPRequest:
    """Build a parsed request; ``body`` is JSON-encoded, ``raw_body`` sent as-is."""
    if raw_body is None:
        raw_body = json.dumps(body).encode() if body is not None else b""
    headers = {"host": "localhost:8000"}
    if raw_body:
        headers["content-type"] = "application/json"
        headers["content-length"] = str(len(raw_body))
    return HTTPRequest(
        method=method,
        path=path,
        headers=headers,
        body=raw_body,
        client_address=("127.0.0.1", 50000),
    )


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/v1/items?verbose=1&tag=a&tag=b HTTP/1.1\r\n"
        b"Host: localhost:8000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a JSON body."""
    body = b'{"name": "Widget", "value": 7}'
    return (
        b"POST /api/v1/items HTTP/1.1\r\n"
        b"Host: localhost:8000\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        + b"\r\n"
        + body
    )


@pytest.fixture
def config() -> ServerConfig:
    """Test configuration: any free port, quiet access log."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def store() -> ItemStore:
    """A fresh store with default capacity and sample data."""
    return ItemStore()


@pytest.fixture
def server(config: ServerConfig) -> ItemServer:
    """An ItemServer used in-process, without sockets."""
    return ItemServer(config)


class LiveServer:
    """Runs an ItemServer on a background thread."""

    def __init__(self, server: ItemServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def base_url(self) -> str:
        host, port = self.server.address
        return f"http://{host}:{port}"

    def start(self):
        """Start serving and wait until the socket is listening."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server and wait for the accept loop to exit."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[LiveServer, None, None]:
    """An ItemServer listening on a real socket."""
    live = LiveServer(ItemServer(config))
    live.start()

    yield live

    live.stop()
