# ============================================================================
# HEALTHJSON
# ============================================================================
# STATUS: Library - Health checks over HTTP
# PURPOSE: Expose service health as application/health+json
# CREATED: 19 OCT 2026
# ============================================================================
"""
healthjson

Health checking utilities for long-running services, serving the
application/health+json format (https://inadarei.github.io/rfc-healthcheck/).

Architecture:
- Checker: anything with check_health(ctx) returning Check records
- HealthRegistry: unique names for checkers, safe for concurrent use
- HealthCheckExecutor: parallel fan-out with failure containment
- health_router / start_server: the HTTP endpoint on HEALTH_PORT (9999)
- check_health / client_main: fetch a response from another process

Usage:
    from healthjson import Check, Context, Status, register_func

    ctx = Context.background()
    registration = register_func(
        "queue",
        lambda ctx: [Check(status=Status.PASS, output="all good")],
        ctx=ctx,  # also starts the server
    )

    # Probe it (e.g. from a Docker HEALTHCHECK)
    #   python -m healthjson
"""

from healthjson.__version__ import __version__
from healthjson.core.context import Context
from healthjson.core.errors import (
    HealthError,
    OptionError,
    TransportError,
    DecodeError,
    ServerError,
    AggregationCancelledError,
)
from healthjson.models import (
    COMPONENT_TYPE_COMPONENT,
    COMPONENT_TYPE_DATASTORE,
    COMPONENT_TYPE_SYSTEM,
    Status,
    Check,
    Response,
    worst_status,
)
from healthjson.registry import (
    Checker,
    FuncChecker,
    Registration,
    HealthRegistry,
    get_registry,
    register,
    register_func,
    deregister_all,
)
from healthjson.executor import HealthCheckExecutor, check_now
from healthjson.router import health_router
from healthjson.server import HealthServer, create_app, get_server, start_server
from healthjson.client import (
    check_health,
    check_health_async,
    client_main,
    with_host,
    with_port,
    with_timeout,
)

__all__ = [
    "__version__",
    # Core types
    "Context",
    "Status",
    "Check",
    "Response",
    "worst_status",
    "COMPONENT_TYPE_COMPONENT",
    "COMPONENT_TYPE_DATASTORE",
    "COMPONENT_TYPE_SYSTEM",
    # Errors
    "HealthError",
    "OptionError",
    "TransportError",
    "DecodeError",
    "ServerError",
    "AggregationCancelledError",
    # Registry
    "Checker",
    "FuncChecker",
    "Registration",
    "HealthRegistry",
    "get_registry",
    "register",
    "register_func",
    "deregister_all",
    # Executor
    "HealthCheckExecutor",
    "check_now",
    # HTTP
    "health_router",
    "HealthServer",
    "create_app",
    "get_server",
    "start_server",
    # Client
    "check_health",
    "check_health_async",
    "client_main",
    "with_host",
    "with_port",
    "with_timeout",
]
