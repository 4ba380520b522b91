"""
Transport: the accept loop and per-client connection framing.
"""

from .connection import Connection, ConnectionState, RequestTooLarge
from .socket_server import SocketServer

__all__ = ["Connection", "ConnectionState", "RequestTooLarge", "SocketServer"]
