"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the item API can emit, with their reason phrases.

=============================================================================
WHERE EACH CODE COMES FROM
=============================================================================

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ GET /, list, get, update, delete succeeded                │
    │  201   │ POST /api/v1/items created an item                        │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Bad id in the path, bad JSON body, bad fields             │
    │  404   │ No route matched, or no item carries that id              │
    │  405   │ Request line used a method the parser does not know       │
    │  408   │ Client connected but never finished sending               │
    │  413   │ Request bigger than max_request_size                      │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ Handler crashed, or the error envelope itself failed      │
    │  505   │ Request line carried something other than HTTP/1.0|1.1    │
    │  507   │ Item store is at capacity                                 │
    └────────┴───────────────────────────────────────────────────────────┘

Note that the router never answers 405: a known path requested with the
wrong method is simply "no route", i.e. 404. The 405 above is produced only
by the request parser for methods outside its allow-list.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

    IntEnum, so members compare and serialize as plain integers:

        >>> HTTPStatus.CREATED == 201
        True
        >>> HTTPStatus.INSUFFICIENT_STORAGE.phrase
        'Insufficient Storage'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505
    INSUFFICIENT_STORAGE = 507      # WebDAV, reused for "store is full"

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line, also used as the short
        ``error`` label of the error envelope.
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """4xx or 5xx. Used by the access log to pick a level."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
    HTTPStatus.INSUFFICIENT_STORAGE: "Insufficient Storage",
}


def get_phrase(status_code: int) -> str:
    """
    Reason phrase for a raw integer code.

    Codes outside the enum get "Unknown" rather than raising, so the
    transport can still write a status line for them.
    """
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown"
