"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket. The server only needs three things from
it: read one complete request, write one response, close.

    conn.read_request()
        recv() until "\\r\\n\\r\\n"      ← headers complete
        read Content-Length        ← find out how much body follows
        recv() until body complete
        return exactly one request; keep any surplus for the next call

TCP delivers bytes in arbitrary chunks, so a single recv() can hold half a
request or one and a half. The buffer carries the surplus across calls,
which matters only when keep-alive is on.

=============================================================================
TIMEOUTS
=============================================================================

    first request     ``timeout``             (default 30s) → TimeoutError
    later requests    ``keep_alive_timeout``  (default 5s)  → None (idle close)

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


class RequestTooLarge(ValueError):
    """The client sent more than ``max_request_size`` bytes for one request."""


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    An accepted client socket with request framing.

    Attributes:
        socket: The client socket.
        address: Peer (ip, port).
        id: Short random id used in debug logs.
        requests_handled: Complete requests read so far.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: float = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def is_closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    def read_request(self) -> Optional[bytes]:
        """
        Read exactly one HTTP request.

        Returns:
            The raw request bytes, or None if the client closed the
            connection (or went idle between keep-alive requests).

        Raises:
            TimeoutError: The first request did not arrive in time.
            RequestTooLarge: More than ``max_request_size`` bytes buffered.
        """
        self.state = ConnectionState.READING
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._append(chunk)

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._content_length(self._buffer[:header_end])
            if body_start + content_length > self.max_request_size:
                raise RequestTooLarge(
                    f"Declared body of {content_length} bytes exceeds limit"
                )

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    # Hand over what arrived; the parser reports the short body.
                    break
                self._append(chunk)

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]
            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug("[%s] Keep-alive timeout", self.id)
                return None
            raise TimeoutError("Request read timeout")
        finally:
            if not self.is_closed:
                self.socket.settimeout(self.timeout)

    def _append(self, chunk: bytes) -> None:
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLarge(f"Request too large: {len(self._buffer)} bytes")

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    @staticmethod
    def _content_length(header_section: bytes) -> int:
        """
        Best-effort Content-Length lookup on raw headers, used only to
        frame the body. A malformed value frames as 0 and is rejected
        later by the request parser.
        """
        text = header_section.decode("latin-1").lower()
        for line in text.split("\r\n")[1:]:
            name, sep, value = line.partition(":")
            if sep and name.strip() == "content-length":
                value = value.strip()
                # str.isdigit() is also true for superscripts such as "²".
                return int(value) if value.isascii() and value.isdigit() else 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """
        Write all of ``data``.

        Returns:
            False if the client went away mid-write.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning("[%s] Send failed: %s", self.id, e)
            return False

    def set_keep_alive(self) -> None:
        self.state = ConnectionState.KEEP_ALIVE

    def close(self) -> None:
        """
        Shut down the write side, drain briefly, release the socket.
        Idempotent.
        """
        if self.is_closed:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            # socket.timeout is an OSError subclass
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            "[%s] Closed after %d request(s), %.3fs",
            self.id, self.requests_handled, time.time() - self.created_at,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
