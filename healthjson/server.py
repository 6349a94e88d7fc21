# ============================================================================
# HEALTH SERVER
# ============================================================================
# STATUS: HTTP - Server lifecycle
# PURPOSE: Serve the health router on HEALTH_PORT until the context ends
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Server

Runs a uvicorn server for the health router in a background thread.

start_server() is idempotent: the first call binds the listening socket
(before returning, so clients can connect straight away) and later calls
return the running instance. Cancelling the context passed to the first
call shuts the server down gracefully, after which a new call starts a
fresh instance.

Usage:
    ctx = Context.background()
    start_server(ctx)

    # On shutdown
    ctx.cancel()
"""

import socket
import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI

from healthjson.__version__ import __version__
from healthjson.core.config import get_defaults
from healthjson.core.context import Context
from healthjson.core.errors import ServerError
from healthjson.core.logging import get_logger
from healthjson.executor import HealthCheckExecutor
from healthjson.registry import HealthRegistry, get_registry
from healthjson.router import health_router

logger = get_logger(__name__)

# How long the shutdown watcher waits for in-flight requests
SHUTDOWN_TIMEOUT = 30.0


def create_app(
    registry: Optional[HealthRegistry] = None,
    context: Optional[Context] = None,
) -> FastAPI:
    """
    Build the FastAPI application serving the health endpoint.

    Args:
        registry: Registry to aggregate (uses global if None)
        context: Parent context for every health check
    """
    executor = HealthCheckExecutor(
        registry=registry if registry is not None else get_registry(),
    )

    app = FastAPI(
        title="Health",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.registry = executor.registry
    app.state.executor = executor
    app.state.context = context or Context.background()
    app.include_router(health_router)

    return app


class HealthServer:
    """
    A uvicorn server bound to a listening socket and a context.

    Idle keep-alive connections are closed after
    HealthDefaults.keep_alive_timeout seconds.

    Attributes:
        port: Port actually bound (differs from the requested one for 0)
    """

    def __init__(
        self,
        ctx: Context,
        registry: Optional[HealthRegistry] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ):
        defaults = get_defaults()
        self.ctx = ctx
        self.host = host or defaults.bind_host
        self._requested_port = defaults.port if port is None else port

        self.app = create_app(registry=registry, context=ctx)
        self._config = uvicorn.Config(
            self.app,
            log_config=None,
            access_log=False,
            timeout_keep_alive=int(defaults.keep_alive_timeout),
            lifespan="on",
        )
        self._server = uvicorn.Server(self._config)
        self._socket: Optional[socket.socket] = None
        self._serve_thread: Optional[threading.Thread] = None
        self._watch_thread: Optional[threading.Thread] = None
        self.port = self._requested_port

    def start(self) -> None:
        """
        Bind the socket and start serving in the background.

        Raises:
            ServerError: If the socket cannot be bound
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self._requested_port))
            sock.listen(128)
        except OSError as e:
            sock.close()
            raise ServerError(
                f"failed to listen on {self.host}:{self._requested_port}: {e}"
            ) from e

        self._socket = sock
        self.port = sock.getsockname()[1]

        self._serve_thread = threading.Thread(
            target=self._serve,
            name="healthjson-server",
            daemon=True,
        )
        self._watch_thread = threading.Thread(
            target=self._watch,
            name="healthjson-shutdown",
            daemon=True,
        )
        self._serve_thread.start()
        self._watch_thread.start()

        logger.info(f"Health server listening on {self.host}:{self.port}")

    def _serve(self) -> None:
        try:
            self._server.run(sockets=[self._socket])
        except Exception as e:
            logger.error(f"Health server stopped unexpectedly: {e}", exc_info=True)
        finally:
            self._socket.close()

    def _watch(self) -> None:
        self.ctx.wait()
        logger.info(f"Shutting down health server on port {self.port}")

        try:
            self._server.should_exit = True
            self._serve_thread.join(SHUTDOWN_TIMEOUT)
            if self._serve_thread.is_alive():
                logger.error(f"Health server did not stop within {SHUTDOWN_TIMEOUT}s")
                self._server.force_exit = True
        except Exception as e:
            logger.error(f"Error shutting down health server: {e}", exc_info=True)
        finally:
            _clear_server(self)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the server to shut down after its context ends."""
        if self._watch_thread is not None:
            self._watch_thread.join(timeout)

    @property
    def started(self) -> bool:
        """True once uvicorn has finished its startup."""
        return self._server.started


# ============================================================================
# PROCESS-WIDE SERVER
# ============================================================================

_server: Optional[HealthServer] = None
_server_lock = threading.Lock()


def _clear_server(server: HealthServer) -> None:
    global _server
    with _server_lock:
        if _server is server:
            _server = None


def get_server() -> Optional[HealthServer]:
    """The running health server, if any."""
    with _server_lock:
        return _server


def start_server(ctx: Context) -> HealthServer:
    """
    Start the health server if it is not already running.

    Args:
        ctx: Cancelling this context shuts the server down

    Returns:
        The running server

    Raises:
        ServerError: If the socket cannot be bound
    """
    global _server
    with _server_lock:
        if _server is not None:
            return _server

        server = HealthServer(ctx)
        server.start()
        _server = server
        return server


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "create_app",
    "HealthServer",
    "get_server",
    "start_server",
]
