"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables live on one dataclass. It can be built three ways, and the CLI
layers them: environment first, then command-line flags on top.

    ServerConfig(port=9000)                          # code
    ITEMS_PORT=9000 python -m itemserver             # environment
    python -m itemserver --port 9000                 # command line

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    ITEMS_HOST         bind address              127.0.0.1
    ITEMS_PORT         listen port (0 = any)     8000
    ITEMS_TIMEOUT      first-request timeout     30
    ITEMS_KEEP_ALIVE   reuse connections         false
    ITEMS_CAPACITY     max live items            100
    ITEMS_SEED         insert sample items       true
    ITEMS_LOG_LEVEL    DEBUG..CRITICAL           INFO
    ITEMS_LOG_FORMAT   access log: text|json     text

Booleans accept 1/0, true/false, yes/no, on/off in any case.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default, convert):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class ServerConfig:
    """
    Configuration for the item server.

    NETWORK       host, port, backlog, buffer_size, timeout
    HTTP          keep_alive, keep_alive_timeout, max_request_size
    STORE         store_capacity, seed_sample_items
    LOGGING       log_level, log_format
    """

    # NETWORK
    host: str = "127.0.0.1"
    port: int = 8000
    backlog: int = 128
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0

    # HTTP
    keep_alive: bool = False
    """
    Serve more than one request per connection. Off by default: the accept
    loop is single-worker, so an idle keep-alive client would block every
    other client until ``keep_alive_timeout`` expires.
    """
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    # STORE
    store_capacity: int = 100
    seed_sample_items: bool = True
    """Insert "First Item" and "Second Item" whenever the store is empty."""

    # LOGGING
    log_level: str = "INFO"
    log_format: str = "text"

    server_name: str = "ItemServer/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a config from ``ITEMS_*`` environment variables.

        Raises:
            ValueError: A variable is set but cannot be converted.
        """
        defaults = cls()
        return cls(
            host=os.getenv("ITEMS_HOST", defaults.host),
            port=_env_number("ITEMS_PORT", defaults.port, int),
            timeout=_env_number("ITEMS_TIMEOUT", defaults.timeout, float),
            keep_alive=_env_bool("ITEMS_KEEP_ALIVE", defaults.keep_alive),
            store_capacity=_env_number("ITEMS_CAPACITY", defaults.store_capacity, int),
            seed_sample_items=_env_bool("ITEMS_SEED", defaults.seed_sample_items),
            log_level=os.getenv("ITEMS_LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv("ITEMS_LOG_FORMAT", defaults.log_format).lower(),
        )

    def validate(self) -> None:
        """
        Check every field, failing at startup rather than mid-request.

        Raises:
            ValueError: Describing the first bad field.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")
        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")
        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")
        if self.max_request_size < 1024:
            raise ValueError("max_request_size must be >= 1024")
        if self.store_capacity < 1:
            raise ValueError("store_capacity must be >= 1")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
