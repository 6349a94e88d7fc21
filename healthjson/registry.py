# ============================================================================
# HEALTH CHECK REGISTRY
# ============================================================================
# STATUS: Core - Checker registration and name allocation
# PURPOSE: Process-wide mapping from unique name to checker
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Registry

Manages registration of checkers under unique names.

A checker is anything with a ``check_health(ctx)`` method returning a
list of Check records (sync or async). Bare callables are wrapped in a
FuncChecker by register_func().

Usage:
    # Object registration
    registration = register("postgres", PostgresChecker(pool))

    # Function registration
    registration = register_func("queue", lambda ctx: [Check(status=Status.PASS)])

    # Later, e.g. when closing whatever is being checked
    registration.deregister()

Name collisions are resolved with a linear probe: registering "x"
three times yields "x", "x-1" and "x-2".
"""

import threading
from dataclasses import dataclass, field
from typing import (
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

from healthjson.core.context import Context
from healthjson.core.logging import get_logger
from healthjson.models import Check

logger = get_logger(__name__)

CheckResult = Union[List[Check], Awaitable[List[Check]]]
CheckFunc = Callable[[Context], CheckResult]


@runtime_checkable
class Checker(Protocol):
    """Anything whose health can be checked."""

    def check_health(self, ctx: Context) -> CheckResult:
        ...


class FuncChecker:
    """Adapts a bare callable to the Checker protocol."""

    def __init__(self, func: CheckFunc):
        self.func = func

    def check_health(self, ctx: Context) -> CheckResult:
        return self.func(ctx)

    def __repr__(self) -> str:
        return f"FuncChecker({getattr(self.func, '__qualname__', self.func)!r})"


# ============================================================================
# READER-WRITER LOCK
# ============================================================================

class ReadWriteLock:
    """
    Many readers or one writer.

    Writers are preferred: once a writer is waiting, new readers
    block until it is done.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    def read(self) -> "_Held":
        return _Held(self.acquire_read, self.release_read)

    def write(self) -> "_Held":
        return _Held(self.acquire_write, self.release_write)


class _Held:
    def __init__(self, acquire, release):
        self._acquire = acquire
        self._release = release

    def __enter__(self):
        self._acquire()
        return self

    def __exit__(self, *exc_info):
        self._release()
        return False


# ============================================================================
# REGISTRATION
# ============================================================================

@dataclass(frozen=True, eq=False)
class Registration:
    """
    Handle returned when registering a checker.

    Use it to deregister that particular checker later. Deregistering
    twice is a no-op, even if the name has since been reused.
    """
    name: str
    registry: "HealthRegistry" = field(repr=False)

    def deregister(self) -> None:
        """Remove the checker registered under this handle."""
        self.registry._remove(self)


class HealthRegistry:
    """
    Registry of named checkers.

    Safe for concurrent use: register/deregister take the writer role,
    snapshot() takes the reader role.
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._checkers: Dict[str, Tuple[Registration, Checker]] = {}

    def register(self, name: str, checker: Checker) -> Registration:
        """
        Register a checker under a unique name.

        Args:
            name: Preferred name; empty derives one from the checker type
            checker: Object with a check_health(ctx) method

        Returns:
            Registration carrying the name actually assigned
        """
        if not name:
            name = type(checker).__name__

        with self._lock.write():
            unique = name
            counter = 0
            while unique in self._checkers:
                counter += 1
                unique = f"{name}-{counter}"

            registration = Registration(name=unique, registry=self)
            self._checkers[unique] = (registration, checker)

        logger.debug(f"Registered health checker: {unique} ({checker!r})")
        return registration

    def register_func(self, name: str, func: CheckFunc) -> Registration:
        """Register a bare callable as a checker."""
        return self.register(name, FuncChecker(func))

    def _remove(self, registration: Registration) -> None:
        with self._lock.write():
            slot = self._checkers.get(registration.name)
            if slot is None or slot[0] is not registration:
                return
            del self._checkers[registration.name]

        logger.debug(f"Deregistered health checker: {registration.name}")

    def deregister_all(self) -> None:
        """Remove all registered checkers."""
        with self._lock.write():
            self._checkers.clear()

    def snapshot(self) -> List[Tuple[str, Checker]]:
        """Copy of the live (name, checker) pairs."""
        with self._lock.read():
            return [(name, slot[1]) for name, slot in self._checkers.items()]

    def names(self) -> List[str]:
        """Names of all registered checkers."""
        with self._lock.read():
            return list(self._checkers)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._checkers)

    def __contains__(self, name: str) -> bool:
        with self._lock.read():
            return name in self._checkers


# ============================================================================
# GLOBAL REGISTRY
# ============================================================================

_registry: Optional[HealthRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> HealthRegistry:
    """Get the process-wide health registry."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = HealthRegistry()
        return _registry


def register(
    name: str,
    checker: Checker,
    ctx: Optional[Context] = None,
) -> Registration:
    """
    Register a checker with the process-wide registry.

    Args:
        name: Preferred name; empty derives one from the checker type
        checker: Object with a check_health(ctx) method
        ctx: If given, make sure the health server is running, bound
            to this context
    """
    if ctx is not None:
        from healthjson.server import start_server
        start_server(ctx)

    return get_registry().register(name, checker)


def register_func(
    name: str,
    func: CheckFunc,
    ctx: Optional[Context] = None,
) -> Registration:
    """Register a bare callable with the process-wide registry."""
    return register(name, FuncChecker(func), ctx=ctx)


def deregister_all() -> None:
    """Remove every checker from the process-wide registry."""
    get_registry().deregister_all()


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "Checker",
    "CheckFunc",
    "FuncChecker",
    "ReadWriteLock",
    "Registration",
    "HealthRegistry",
    "get_registry",
    "register",
    "register_func",
    "deregister_all",
]
