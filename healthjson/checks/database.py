# ============================================================================
# DATABASE HEALTH CHECKS
# ============================================================================
# STATUS: Adapters - Ping-based checkers
# PURPOSE: Turn any handle with a ping(ctx) method into a checker
# CREATED: 19 OCT 2026
# ============================================================================
"""
Database Health Checks

Adapters for connection-like objects exposing ``ping(ctx)``: database
pools, cache clients, message brokers. The ping may be sync or async;
raising means the datastore is unreachable.

Usage:
    registration = register_pinger(pool, "postgres")
"""

import inspect
import time
from typing import Any, Awaitable, List, Optional, Protocol, Union

from healthjson.core.context import Context
from healthjson.core.logging import get_logger
from healthjson.models import COMPONENT_TYPE_DATASTORE, Check, Status
from healthjson.registry import HealthRegistry, Registration, get_registry

logger = get_logger(__name__)


class Pinger(Protocol):
    """Anything that can be pinged."""

    def ping(self, ctx: Context) -> Union[Any, Awaitable[Any]]:
        ...


class PingChecker:
    """
    Checker reporting whether a Pinger answers.

    Each check starts from a copy of ``base``, records the ping
    duration in nanoseconds and fails with the exception text if the
    ping raises.
    """

    def __init__(self, pinger: Pinger, base: Optional[Check] = None):
        self.pinger = pinger
        self.base = base.model_copy(deep=True) if base is not None else Check()
        if not self.base.component_type:
            self.base.component_type = COMPONENT_TYPE_DATASTORE

    def _result(self, started: float, error: Optional[Exception]) -> List[Check]:
        check = self.base.model_copy(deep=True)
        check.set_observed_time(time.perf_counter() - started)
        if error is not None:
            logger.warning(f"Ping of {type(self.pinger).__name__} failed: {error}")
            check.status = Status.FAIL
            check.output = str(error)
        return [check]

    def __repr__(self) -> str:
        return f"PingChecker({type(self.pinger).__name__})"


class SyncPingChecker(PingChecker):
    """PingChecker for a blocking ping()."""

    def check_health(self, ctx: Context) -> List[Check]:
        started = time.perf_counter()
        try:
            self.pinger.ping(ctx)
        except Exception as e:
            return self._result(started, e)
        return self._result(started, None)


class AsyncPingChecker(PingChecker):
    """PingChecker for an ``async def ping()``."""

    async def check_health(self, ctx: Context) -> List[Check]:
        started = time.perf_counter()
        try:
            await self.pinger.ping(ctx)
        except Exception as e:
            return self._result(started, e)
        return self._result(started, None)


def ping_checker(pinger: Pinger, base: Optional[Check] = None) -> PingChecker:
    """Wrap a pinger in the checker matching its ping() flavour."""
    if inspect.iscoroutinefunction(pinger.ping):
        return AsyncPingChecker(pinger, base)
    return SyncPingChecker(pinger, base)


def register_pinger(
    pinger: Pinger,
    name: str = "",
    base: Optional[Check] = None,
    ctx: Optional[Context] = None,
    registry: Optional[HealthRegistry] = None,
) -> Registration:
    """
    Register a health check that pings ``pinger``.

    Args:
        pinger: Object with a ping(ctx) method
        name: Registration name; empty uses the pinger's type name
        base: Template for the produced check (componentId etc.);
            componentType defaults to "datastore"
        ctx: If given, make sure the health server is running
        registry: Registry to use (uses global if None)
    """
    checker = ping_checker(pinger, base)
    name = name or type(pinger).__name__

    if ctx is not None:
        from healthjson.server import start_server
        start_server(ctx)

    registry = registry if registry is not None else get_registry()
    return registry.register(name, checker)


__all__ = [
    "Pinger",
    "PingChecker",
    "SyncPingChecker",
    "AsyncPingChecker",
    "ping_checker",
    "register_pinger",
]
