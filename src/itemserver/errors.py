"""
=============================================================================
API ERROR TAXONOMY
=============================================================================

Every failure the item API reports to a client is one of four kinds:

    ┌──────────────────────┬────────┬──────────────────────────────────────┐
    │  Exception           │ Status │ Raised when                          │
    ├──────────────────────┼────────┼──────────────────────────────────────┤
    │  ClientError         │  400   │ Bad path id, bad JSON, bad fields    │
    │  NotFound            │  404   │ No route, or no such item            │
    │   └─ ItemNotFound    │  404   │ Store lookup by id came up empty     │
    │  CapacityExceeded    │  507   │ Store already holds `capacity` items │
    │  InternalFormatting  │  500   │ Error envelope could not be built    │
    └──────────────────────┴────────┴──────────────────────────────────────┘

Handlers catch these locally and turn them into the standard error envelope
with ``error_response(exc.status_code, exc.label, exc.message)``. Nothing
in this family is retried or propagated past the handler that raised it.

Like ``HTTPParseError`` in the transport layer, each exception carries the
HTTP status it maps to, so the conversion is a lookup rather than a chain
of isinstance checks.

=============================================================================
"""

from .http.status_codes import HTTPStatus


class APIError(Exception):
    """
    Base class for errors that become an error envelope.

    Attributes:
        message: Human-readable detail for the envelope's ``message`` field.
        status_code: HTTP status to answer with.
    """

    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def label(self) -> str:
        """Short label for the envelope's ``error`` field."""
        return self.status_code.phrase


class ClientError(APIError):
    """The request itself is malformed: path id, JSON body or fields."""

    status_code = HTTPStatus.BAD_REQUEST


class NotFound(APIError):
    """Nothing lives at the requested route or id."""

    status_code = HTTPStatus.NOT_FOUND


class ItemNotFound(NotFound):
    """Raised by the item store when no live item has the given id."""

    def __init__(self, item_id: int, message: str = "Item with specified ID not found."):
        super().__init__(message)
        self.item_id = item_id


class CapacityExceeded(APIError):
    """The item store is full; nothing was created."""

    status_code = HTTPStatus.INSUFFICIENT_STORAGE

    def __init__(
        self,
        capacity: int,
        message: str = "Cannot create more items, in-memory storage limit reached.",
    ):
        super().__init__(message)
        self.capacity = capacity


class InternalFormatting(APIError):
    """
    The error envelope could not be serialized.

    Raised by http.response.format_error_envelope() and caught by
    error_response(), which answers with the plain-text fallback 500.
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
