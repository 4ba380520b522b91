"""
=============================================================================
ACCESS LOGGING
=============================================================================

One line per request on the ``itemserver.access`` logger, in either
Apache-like text or JSON:

    text:  127.0.0.1 - - [17/Oct/2026:09:30:00 +0000] "POST /api/v1/items" 201 40 0.31ms
    json:  {"request_id":"9f1c2a7b","method":"POST","path":"/api/v1/items",...}

Every response also gets an ``X-Request-ID`` header carrying the id that
appears in the log line.

Route it separately from the application logs with:

    logging.getLogger("itemserver.access").addHandler(file_handler)

=============================================================================
"""

from dataclasses import dataclass, asdict
from typing import Optional
import json
import logging
import time
import uuid

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("itemserver.access")


@dataclass
class RequestLog:
    """One access log entry."""

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        target = f"{self.path}?{self.query}" if self.query else self.path
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Times each request and writes an access log line.

    Responses with a 5xx status are logged at WARNING, everything else at
    ``log_level``. A handler exception is logged and re-raised so the
    server can answer it.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
    ):
        if log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed: %s %s - %s: %s (%.2fms) [%s]",
                request.method, request.path, type(e).__name__, e,
                duration_ms, request_id,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        entry = self.build_entry(request, response, request_id, duration_ms)

        level = logging.WARNING if int(response.status) >= 500 else self.log_level
        logger.log(level, self.format_entry(entry))

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id
        return response

    def build_entry(
        self,
        request: HTTPRequest,
        response: HTTPResponse,
        request_id: str,
        duration_ms: float,
        timestamp: Optional[str] = None,
    ) -> RequestLog:
        raw_query = "&".join(
            f"{name}={value}"
            for name, values in request.query_params.items()
            for value in values
        )
        return RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=raw_query,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=timestamp or time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def format_entry(self, entry: RequestLog) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict(), separators=(",", ":"))
        return entry.to_text()
