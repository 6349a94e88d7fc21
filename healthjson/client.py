# ============================================================================
# HEALTH CLIENT
# ============================================================================
# STATUS: Client - Fetch a health response over HTTP
# PURPOSE: Container health probes and the healthcheck CLI
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Client

httpx client fetching the health+json document served by another
process. check_health() blocks; async code awaits check_health_async().

Usage:
    response = check_health(ctx, with_host("10.0.0.5"), with_port(9999))
    if not response.good():
        ...

For services, client_main() can be put early in ``main()`` so the same
image can probe itself:

    if sys.argv[1:] == ["healthcheck"]:
        client_main()

    # Dockerfile
    HEALTHCHECK --interval=10s --timeout=30s CMD ./app healthcheck
"""

import asyncio
import sys
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from healthjson.core.config import CONTENT_TYPE, get_defaults
from healthjson.core.context import Context
from healthjson.core.errors import (
    DecodeError,
    HealthError,
    OptionError,
    TransportError,
)
from healthjson.core.logging import get_logger, log_context
from healthjson.models import Response

logger = get_logger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_ERR = 1
EXIT_USER = 2

# How often an in-flight request checks whether its context has ended
CANCEL_POLL_INTERVAL = 0.05


@dataclass
class ClientConfig:
    """Target of a health request."""
    host: str
    port: int
    timeout: float


Option = Callable[[ClientConfig], None]


def with_host(host: str) -> Option:
    """Option selecting the host to query."""
    def apply(config: ClientConfig) -> None:
        if not host:
            raise OptionError("host must not be empty")
        config.host = host
    return apply


def with_port(port: int) -> Option:
    """Option selecting the port to query."""
    def apply(config: ClientConfig) -> None:
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port <= 65535:
            raise OptionError(f"port out of range: {port!r}")
        config.port = port
    return apply


def with_timeout(timeout: float) -> Option:
    """Option setting the HTTP timeout in seconds."""
    def apply(config: ClientConfig) -> None:
        if timeout <= 0:
            raise OptionError(f"timeout must be positive: {timeout!r}")
        config.timeout = float(timeout)
    return apply


def _config(*options: Option) -> ClientConfig:
    defaults = get_defaults()
    config = ClientConfig(
        host=defaults.client_host,
        port=defaults.port,
        timeout=defaults.client_timeout,
    )
    for option in options:
        option(config)
    return config


def _url(config: ClientConfig) -> str:
    host = f"[{config.host}]" if ":" in config.host else config.host
    return f"http://{host}:{config.port}/"


async def check_health_async(ctx: Optional[Context] = None, *options: Option) -> Response:
    """
    Get a health response from an HTTP server.

    A fail response arrives as HTTP 500 but is still decoded and
    returned; only an undecodable body is an error. The request is
    abandoned as soon as ctx is cancelled or passes its deadline.

    Args:
        ctx: Bounds the request; its remaining time caps the timeout
        *options: with_host(), with_port(), with_timeout()

    Raises:
        OptionError: If an option is invalid
        TransportError: If the request fails or ctx ends before a reply
        DecodeError: If the body is not a health response
    """
    if ctx is None:
        ctx = Context.background()

    config = _config(*options)

    if ctx.done():
        raise TransportError(f"failed to send HTTP request: {ctx.error}") from ctx.error

    timeout = config.timeout
    remaining = ctx.remaining()
    if remaining is not None:
        timeout = min(timeout, remaining)

    url = _url(config)

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            request = asyncio.ensure_future(
                client.get(url, headers={"Accept": CONTENT_TYPE})
            )
            try:
                while not request.done():
                    await asyncio.wait({request}, timeout=CANCEL_POLL_INTERVAL)
                    if not request.done() and ctx.done():
                        with log_context(remote=url):
                            logger.debug(f"Health request abandoned: {ctx.error}")
                        raise TransportError(
                            f"failed to send HTTP request: {ctx.error}"
                        ) from ctx.error
            finally:
                if not request.done():
                    request.cancel()
                    await asyncio.gather(request, return_exceptions=True)
            resp = request.result()
    except httpx.HTTPError as e:
        with log_context(remote=url):
            logger.debug(f"Health request failed: {e}")
        raise TransportError(f"failed to send HTTP request: {e}") from e

    if resp.is_error:
        with log_context(remote=url):
            logger.debug(f"Health endpoint answered {resp.status_code}")

    try:
        return Response.from_json(resp.content)
    except DecodeError as e:
        raise DecodeError(f"{e} (HTTP {resp.status_code})") from e.__cause__


def check_health(ctx: Optional[Context] = None, *options: Option) -> Response:
    """
    Blocking form of check_health_async(), for scripts and the CLI.

    Must not be called from a running event loop; await
    check_health_async() there instead.
    """
    return asyncio.run(check_health_async(ctx, *options))


def client_main(ctx: Optional[Context] = None, *options: Option) -> None:
    """
    Probe the local health server and exit the process.

    Writes the response to stdout and exits 0 when it is good, 1 when
    it is not or the request failed, and 2 for invalid options.
    """
    exit_code = EXIT_OK

    try:
        response = check_health(ctx, *options)
    except OptionError as e:
        logger.error(f"Error: {e}")
        exit_code = EXIT_USER
    except HealthError as e:
        logger.error(f"Error: {e}")
        exit_code = EXIT_ERR
    else:
        response.write(sys.stdout)
        sys.stdout.write("\n")
        sys.stdout.flush()
        if not response.good():
            exit_code = EXIT_ERR

    sys.exit(exit_code)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "EXIT_OK",
    "EXIT_ERR",
    "EXIT_USER",
    "ClientConfig",
    "Option",
    "with_host",
    "with_port",
    "with_timeout",
    "check_health",
    "check_health_async",
    "client_main",
]
