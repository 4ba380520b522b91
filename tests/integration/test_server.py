"""
Integration tests: a live ItemServer on a real socket.
"""

import json
import socket
import urllib.error
import urllib.request

import pytest

from itemserver import ItemServer, ServerConfig
from itemserver.http.router import NOT_FOUND_MESSAGE


def call(base_url: str, method: str, path: str, body=None):
    """Send a request; return (status, headers, decoded body)."""
    data = json.dumps(body).encode() if body is not None else None
    request = urllib.request.Request(base_url + path, data=data, method=method)
    if data is not None:
        request.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(request, timeout=5) as response:
            return response.status, response.headers, json.loads(response.read())
    except urllib.error.HTTPError as e:
        raw = e.read()
        return e.code, e.headers, json.loads(raw)


def raw_exchange(address, payload: bytes) -> bytes:
    """Send raw bytes and read until the server closes."""
    with socket.create_connection(address, timeout=5) as sock:
        sock.sendall(payload)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestLiveServer:
    """Requests over HTTP."""

    def test_root(self, live_server):
        """Test the greeting and its headers."""
        status, headers, body = call(live_server.base_url, "GET", "/")

        assert status == 200
        assert body["message"].startswith("Welcome")
        assert headers["Content-Type"] == "application/json"
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert headers["Server"] == "ItemServer/1.0"
        assert headers["Connection"] == "close"

    def test_widget_lifecycle(self, live_server):
        """Create, fetch, update, delete, then 404."""
        url = live_server.base_url

        status, _, created = call(url, "POST", "/api/v1/items", {"name": "Widget", "value": 7})
        assert status == 201
        assert created["name"] == "Widget"
        path = f"/api/v1/items/{created['id']}"

        status, _, fetched = call(url, "GET", path)
        assert (status, fetched) == (200, created)

        status, _, updated = call(url, "PUT", path, {"value": 8})
        assert status == 200
        assert updated["value"] == 8

        status, _, listing = call(url, "GET", "/api/v1/items")
        assert updated in listing["items"]

        status, _, deleted = call(url, "DELETE", path)
        assert (status, deleted) == (200, {"message": "Item deleted successfully."})

        status, _, missing = call(url, "GET", path)
        assert status == 404
        assert missing["status_code"] == 404

    def test_invalid_id(self, live_server):
        """Test the 400 envelope over the wire."""
        status, headers, body = call(live_server.base_url, "GET", "/api/v1/items/notanumber")

        assert status == 400
        assert body["error"] == "Bad Request"
        assert headers["Access-Control-Allow-Origin"] == "*"

    def test_unknown_route(self, live_server):
        """Test the catch-all 404."""
        status, _, body = call(live_server.base_url, "GET", "/missing")
        assert (status, body["message"]) == (404, NOT_FOUND_MESSAGE)

    def test_malformed_request(self, live_server):
        """Test that garbage on the socket gets an envelope back."""
        data = raw_exchange(live_server.server.address, b"NONSENSE\r\n\r\n")
        head, body = data.split(b"\r\n\r\n", 1)

        assert head.startswith(b"HTTP/1.1 400 Bad Request")
        assert json.loads(body)["status_code"] == 400

    def test_unknown_method(self, live_server):
        """Test that an unknown method token is a 405 from the parser."""
        data = raw_exchange(live_server.server.address, b"BREW / HTTP/1.1\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 405 Method Not Allowed")

    def test_one_request_per_connection(self, live_server):
        """Test that the server closes after one response by default."""
        data = raw_exchange(
            live_server.server.address,
            b"GET / HTTP/1.1\r\nHost: x\r\n\r\nGET / HTTP/1.1\r\nHost: x\r\n\r\n",
        )
        assert data.count(b"HTTP/1.1 200 OK") == 1


class TestKeepAlive:
    """Connection reuse when enabled."""

    @pytest.fixture
    def keep_alive_server(self):
        from conftest import LiveServer

        live = LiveServer(ItemServer(ServerConfig(
            port=0, keep_alive=True, keep_alive_timeout=1.0, log_level="WARNING",
        )))
        live.start()
        yield live
        live.stop()

    def test_two_requests_one_connection(self, keep_alive_server):
        """Test pipelined requests on one socket, the second closing it."""
        data = raw_exchange(
            keep_alive_server.server.address,
            b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
            b"GET /api/v1/items HTTP/1.1\r\nHost: x\r\nConnection: close\r\n\r\n",
        )

        assert data.count(b"HTTP/1.1 200 OK") == 2
        assert b"Connection: keep-alive" in data
        assert b"Connection: close" in data


class TestMalformedFraming:
    """Bad Content-Length headers on the live socket path."""

    @pytest.mark.parametrize("headers, body", [
        (b"Content-Length: \xb2\r\n", b""),
        ("Content-Length: ²\r\n".encode("utf-8"), b""),
        (b"Content-Length: -5\r\n", b""),
        (b"Content-Length: five\r\n", b""),
        (b"Content-Length: 5\r\nContent-Length: 5\r\n", b"hello"),
    ])
    def test_error_envelope_then_still_serving(self, live_server, headers, body):
        """Test that each bad header gets a 400 envelope and the server keeps answering."""
        data = raw_exchange(
            live_server.server.address,
            b"POST /api/v1/items HTTP/1.1\r\nHost: x\r\n" + headers + b"\r\n" + body,
        )
        head, payload = data.split(b"\r\n\r\n", 1)

        assert head.startswith(b"HTTP/1.1 400 Bad Request")
        assert json.loads(payload)["status_code"] == 400

        status, _, _ = call(live_server.base_url, "GET", "/")
        assert status == 200

    def test_unexpected_read_error(self, live_server, monkeypatch):
        """Test that a failure while reading is answered and does not stop the server."""
        from itemserver.core.connection import Connection

        original = Connection.read_request

        def broken(self):
            raise RuntimeError("framing exploded")

        monkeypatch.setattr(Connection, "read_request", broken)
        data = raw_exchange(live_server.server.address, b"GET / HTTP/1.1\r\n\r\n")
        monkeypatch.setattr(Connection, "read_request", original)

        head, payload = data.split(b"\r\n\r\n", 1)
        assert head.startswith(b"HTTP/1.1 400 Bad Request")
        assert json.loads(payload)["message"] == "Malformed request."

        status, _, _ = call(live_server.base_url, "GET", "/")
        assert status == 200
