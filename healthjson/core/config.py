# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for the server, client and CLI
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for the health server and client. The listen port
can be overridden with the HEALTH_PORT environment variable, which
both the server and the client honour.

Design:
- Immutable dataclass for defaults
- Environment variable overrides
- Invalid overrides fall back to the default
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Media types served by the handler, in order of preference
CONTENT_TYPE = "application/health+json"
ALTERNATIVE_CONTENT_TYPE = "application/json"

PORT_ENV = "HEALTH_PORT"
DEFAULT_PORT = 9999


def parse_port(value: Optional[str]) -> Optional[int]:
    """Parse a uint16 port number, returning None if invalid."""
    if value is None:
        return None
    try:
        port = int(value.strip(), 10)
    except ValueError:
        return None
    if not 0 <= port <= 65535:
        return None
    return port


def port_from_env() -> int:
    """Port from HEALTH_PORT, or the default port."""
    raw = os.getenv(PORT_ENV)
    port = parse_port(raw)
    if port is None:
        if raw is not None:
            logger.warning(f"Ignoring invalid {PORT_ENV}={raw!r}, using {DEFAULT_PORT}")
        return DEFAULT_PORT
    return port


@dataclass(frozen=True)
class HealthDefaults:
    """
    Defaults for the health server and client.

    Timeouts are in seconds. keep_alive_timeout closes idle keep-alive
    connections between requests; uvicorn has no timeout for reading
    request headers, so none is configured here.
    """
    port: int = DEFAULT_PORT
    bind_host: str = "0.0.0.0"
    client_host: str = "localhost"
    client_timeout: float = 30.0
    keep_alive_timeout: float = 30.0
    cli_interval: float = 2.0

    @classmethod
    def from_env(cls) -> "HealthDefaults":
        """Create from environment variables."""
        return cls(port=port_from_env())


def get_defaults() -> HealthDefaults:
    """Defaults with current environment overrides applied."""
    return HealthDefaults.from_env()


__all__ = [
    "CONTENT_TYPE",
    "ALTERNATIVE_CONTENT_TYPE",
    "PORT_ENV",
    "DEFAULT_PORT",
    "HealthDefaults",
    "get_defaults",
    "parse_port",
    "port_from_env",
]
