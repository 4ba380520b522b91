"""
HTTP protocol layer: request parsing, responses, routing, path ids.
"""

from .status_codes import HTTPStatus, get_phrase
from .request import HTTPRequest, HTTPParseError, RequestParser
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    json_response,
    error_response,
    format_error_envelope,
    fallback_response,
)
from .router import Router, Route, MatchMode, RouteConflictError
from .identifiers import extract_id, MAX_ITEM_ID

__all__ = [
    "HTTPStatus",
    "get_phrase",
    "HTTPRequest",
    "HTTPParseError",
    "RequestParser",
    "HTTPResponse",
    "ResponseBuilder",
    "format_http_date",
    "json_response",
    "error_response",
    "format_error_envelope",
    "fallback_response",
    "Router",
    "Route",
    "MatchMode",
    "RouteConflictError",
    "extract_id",
    "MAX_ITEM_ID",
]
