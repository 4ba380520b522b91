"""
=============================================================================
HTTP RESPONSES AND THE JSON FORMATTER
=============================================================================

Every response the item API sends is one of three shapes:

    ┌──────────────────────────────────────────────────────────────────────┐
    │  SUCCESS          json_response(200, {"items": [...]})              │
    │                                                                      │
    │      HTTP/1.1 200 OK                                                 │
    │      Content-Type: application/json                                  │
    │      Access-Control-Allow-Origin: *                                  │
    │                                                                      │
    │      {"items":[{"id":1,"name":"First Item","value":100}]}            │
    ├──────────────────────────────────────────────────────────────────────┤
    │  ERROR ENVELOPE   error_response(404, "Not Found", "Item ...")       │
    │                                                                      │
    │      HTTP/1.1 404 Not Found                                          │
    │      Content-Type: application/json                                  │
    │      Access-Control-Allow-Origin: *                                  │
    │                                                                      │
    │      {"status_code":404,"error":"Not Found","message":"Item ..."}    │
    ├──────────────────────────────────────────────────────────────────────┤
    │  FALLBACK         the envelope itself could not be serialized        │
    │                                                                      │
    │      HTTP/1.1 500 Internal Server Error                              │
    │      Content-Type: text/plain                                        │
    │      Access-Control-Allow-Origin: *                                  │
    │                                                                      │
    │      Internal Server Error: Failed to generate structured error ...  │
    └──────────────────────────────────────────────────────────────────────┘

The fallback is assembled from module constants only, so producing it
cannot fail in the same way the envelope did.

to_bytes() adds the transport headers (Content-Length, Date, Server) when a
response is written to the socket; the formatter never sets them itself.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json
import logging

from .status_codes import HTTPStatus, get_phrase
# Module import: itemserver.errors imports this package in turn.
from .. import errors


logger = logging.getLogger(__name__)


JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"
CORS_HEADER = "Access-Control-Allow-Origin"
CORS_ALLOW_ALL = "*"

FALLBACK_STATUS = HTTPStatus.INTERNAL_SERVER_ERROR
FALLBACK_BODY = (
    b"Internal Server Error: Failed to generate structured error response."
)

# Exceptions json.dumps can raise for a value it cannot represent:
# unserializable types, NaN/Infinity with allow_nan=False, cycles, depth.
_SERIALIZATION_ERRORS = (
    TypeError,
    ValueError,
    OverflowError,
    RecursionError,
    MemoryError,
)


@dataclass
class HTTPResponse:
    """
    A response ready to be written to the client.

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Status line, e.g. HTTP/1.1 404 Not Found."""
        return f"{self.version} {int(self.status)} {get_phrase(self.status)}"

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    @property
    def json(self) -> Any:
        """Decoded JSON body. Convenience for tests and middleware."""
        return json.loads(self.body.decode("utf-8"))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        if isinstance(body, str):
            self.body = body.encode("utf-8")
        else:
            self.body = body
        return self

    def to_bytes(self, server_name: str = "ItemServer/1.0") -> bytes:
        """
        Serialize for the socket.

            HTTP/1.1 201 Created\\r\\n
            Content-Type: application/json\\r\\n
            Access-Control-Allow-Origin: *\\r\\n
            Content-Length: 40\\r\\n             ← added if missing
            Date: Sat, 17 Oct 2026 ... GMT\\r\\n  ← added if missing
            Server: ItemServer/1.0\\r\\n          ← added if missing
            \\r\\n
            {"id":3,"name":"Widget","value":7}

        Args:
            server_name: Value for the Server header.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent construction of HTTPResponse objects.

        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .cors()
            .json_bytes(b'{"id":3}')
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = b""

    def status(self, status: Union[HTTPStatus, int]) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def json_bytes(self, payload: Union[str, bytes]) -> "ResponseBuilder":
        """Already-serialized JSON body, sent verbatim."""
        self.content_type(JSON_CONTENT_TYPE)
        return self.body(payload)

    def cors(self, origin: str = CORS_ALLOW_ALL) -> "ResponseBuilder":
        return self.header(CORS_HEADER, origin)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    RFC 7231 HTTP-date, always GMT: "Sat, 17 Oct 2026 09:30:00 GMT".

    Built by hand because strftime("%a %b") follows the C locale.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def dumps(value: Any) -> str:
    """
    Serialize ``value`` the way every response body is serialized:
    compact separators, UTF-8 text kept as-is, NaN/Infinity refused.
    """
    return json.dumps(
        value,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


# =============================================================================
# THE FORMATTER
# =============================================================================

def json_response(
    status: Union[HTTPStatus, int],
    body: Union[str, bytes, dict, list],
) -> HTTPResponse:
    """
    A JSON response with the fixed Content-Type and CORS headers.

    Args:
        status: HTTP status.
        body: Either pre-serialized JSON (``str``/``bytes``, emitted
              verbatim) or a dict/list to serialize.

    Returns:
        The response. If ``body`` cannot be serialized the caller gets a
        500 error envelope instead.
    """
    if not isinstance(body, (str, bytes)):
        try:
            body = dumps(body)
        except _SERIALIZATION_ERRORS as e:
            logger.error("Failed to serialize %s response body: %s", int(status), e)
            return error_response(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                HTTPStatus.INTERNAL_SERVER_ERROR.phrase,
                "Failed to serialize response body.",
            )

    return (ResponseBuilder()
        .status(status)
        .cors()
        .json_bytes(body)
        .build())


def format_error_envelope(
    status: Union[HTTPStatus, int],
    label: str,
    message: str,
) -> str:
    """
    Serialize ``{"status_code", "error", "message"}`` in that key order.

    Raises:
        InternalFormatting: ``status`` is not a known HTTP status, or a
            field cannot be represented as JSON.
    """
    try:
        return dumps({
            "status_code": int(HTTPStatus(status)),
            "error": label,
            "message": message,
        })
    except _SERIALIZATION_ERRORS as e:
        raise errors.InternalFormatting(
            f"Failed to build error envelope for {status!r}: {e}"
        ) from e


def error_response(
    status: Union[HTTPStatus, int],
    label: str,
    message: str,
) -> HTTPResponse:
    """
    The error envelope as a JSON response.

    Never raises: on InternalFormatting a constant plain-text 500 is
    returned instead (see fallback_response()).
    """
    try:
        payload = format_error_envelope(status, label, message)
    except errors.InternalFormatting as e:
        logger.error("%s", e.message)
        return fallback_response()
    return json_response(status, payload)


def fallback_response() -> HTTPResponse:
    """Plain-text 500 used when no JSON body could be produced."""
    return HTTPResponse(
        status=FALLBACK_STATUS,
        headers={
            "Content-Type": TEXT_CONTENT_TYPE,
            CORS_HEADER: CORS_ALLOW_ALL,
        },
        body=FALLBACK_BODY,
    )


def api_error_response(exc) -> HTTPResponse:
    """Envelope for an ``itemserver.errors.APIError``."""
    return error_response(exc.status_code, exc.label, exc.message)
