"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read by a Connection into an HTTPRequest the router can
dispatch on. The router only ever looks at two fields, ``method`` and
``path``; handlers additionally read ``body`` through the ``json`` property.

=============================================================================
WHAT THE PARSER PRODUCES
=============================================================================

    b"PUT /api/v1/items/3?verbose=1 HTTP/1.1\r\n"
    b"Host: localhost:8000\r\n"
    b"Content-Type: application/json\r\n"
    b"Content-Length: 16\r\n"
    b"\r\n"
    b'{"name":"Gizmo"}'

            │  RequestParser.parse()
            ▼

    HTTPRequest(
        method="PUT",
        path="/api/v1/items/3",          ← query string removed, %-decoded
        version="HTTP/1.1",
        headers={"host": "localhost:8000",
                 "content-type": "application/json",
                 "content-length": "16"},
        query_params={"verbose": ["1"]},
        body=b'{"name":"Gizmo"}',
    )

The path is matched by the router exactly as produced here. In particular a
trailing slash is kept: "/api/v1/items/" is a different path from
"/api/v1/items" and lands on the id routes, which reject the empty id.

=============================================================================
PARSE FAILURES
=============================================================================

    HTTPParseError(status_code=...)
        400  no header terminator, bad request line, bad Content-Length,
             body shorter than Content-Length, ".." in the path
        405  method outside VALID_METHODS
        413  request larger than max_request_size
        505  version other than HTTP/1.0 or HTTP/1.1

The server answers these with the standard error envelope and closes the
connection.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from urllib.parse import parse_qs, urlparse, unquote
import re
import json


class HTTPParseError(Exception):
    """
    Raised when the raw request cannot be turned into an HTTPRequest,
    or when a body that must be JSON is not.

    Carries the HTTP status the client should receive.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity/-Infinity by default; they are not JSON.
    raise ValueError(f"{name} is not valid JSON")


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are stored lowercase so lookups are case-insensitive.
    ``client_address`` and ``raw`` are kept for logging only.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)
    raw: bytes = b""

    _body_json: Optional[Any] = field(default=None, repr=False)

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters ("application/json")."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        """Content-Length as an int, 0 when missing or unparseable."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def json(self) -> Any:
        """
        The body decoded as JSON, parsed once and cached.

        Content-Type is deliberately not checked: clients such as curl
        send JSON bodies as application/x-www-form-urlencoded by default.

        Returns:
            The decoded value, or None for an empty body.

        Raises:
            HTTPParseError: Body is not UTF-8, not JSON, or uses the
                            NaN/Infinity extensions.
        """
        if self._body_json is None and self.body:
            try:
                self._body_json = json.loads(
                    self.body.decode("utf-8"),
                    parse_constant=_reject_constant,
                )
            except (ValueError, UnicodeDecodeError) as e:
                # json.JSONDecodeError is a ValueError subclass
                raise HTTPParseError(f"Invalid JSON body: {e}")
        return self._body_json

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the client asked to reuse the connection.

        HTTP/1.1 keeps alive unless "Connection: close";
        HTTP/1.0 closes unless "Connection: keep-alive".
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP/1.x request bytes into HTTPRequest objects.

        1. size check                     → 413
        2. split at \\r\\n\\r\\n              → 400 if absent
        3. request line                   → 400 / 405 / 505
        4. header lines (lowercased)
        5. body, exactly Content-Length   → 400 if short or malformed
    """

    VALID_METHODS = {
        "GET",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "HEAD",
        "OPTIONS",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        """
        Args:
            max_request_size: Largest accepted request in bytes, headers
                              and body together.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Raw bytes of exactly one request (as returned by
                  Connection.read_request()).
            client_address: Peer (ip, port), kept for the access log.

        Raises:
            HTTPParseError: The request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        content_length = self._parse_content_length(headers)
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )
        body = body[:content_length]

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body,
            client_address=client_address,
            raw=data,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, Dict[str, list[str]], str]:
        """
        Split "METHOD SP REQUEST-URI SP HTTP-VERSION" into its parts.

        Returns:
            (method, path, query_params, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        parsed = urlparse(uri)
        # Decoded before routing: "/api/v1/items%2F42" becomes "/api/v1/items/42".
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        if ".." in path:
            raise HTTPParseError("Invalid path: contains ..")

        return method, path, query_params, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines into a lowercase-keyed dict.

        Repeated headers are joined with ", ". Obsolete folded
        continuation lines are appended to the previous header.
        Lines that are not headers at all are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers

    def _parse_content_length(self, headers: Dict[str, str]) -> int:
        raw = headers.get("content-length")
        if raw is None:
            return 0
        # A repeated header was joined into "n, n"; anything but one
        # non-negative integer is a framing error.
        if not raw.isascii() or not raw.isdigit():
            raise HTTPParseError(f"Invalid Content-Length: {raw!r}")
        return int(raw)

