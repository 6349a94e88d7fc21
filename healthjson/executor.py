# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# STATUS: Core - Parallel checker fan-out
# PURPOSE: Run every registered checker and fold the results
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Executor

Executes checkers with:
- Parallel execution (async checkers on the event loop, each sync
  checker on a thread of its own)
- Failure containment (a raising checker becomes one fail check)
- Result aggregation with 'worst wins' semantics

No per-checker timeouts are applied; callers bound execution time
through the Context they pass in.
"""

import asyncio
import inspect
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Tuple

from healthjson.core.context import Context
from healthjson.core.errors import AggregationCancelledError
from healthjson.core.logging import get_logger, log_context
from healthjson.models import Check, Response
from healthjson.registry import Checker, FuncChecker, HealthRegistry, get_registry

logger = get_logger(__name__)


def _is_async(checker: Checker) -> bool:
    if isinstance(checker, FuncChecker):
        return inspect.iscoroutinefunction(checker.func)
    return inspect.iscoroutinefunction(checker.check_health)


def _as_checks(result: Any) -> List[Check]:
    if result is None:
        return []
    if isinstance(result, Check):
        return [result]
    return [c if isinstance(c, Check) else Check.model_validate(c) for c in result]


class HealthCheckExecutor:
    """
    Fans a health request out to every registered checker.

    Checkers registered or deregistered while a check is running do not
    affect it: each check works on a snapshot taken when it starts.
    Every sync checker in that snapshot gets its own worker thread, so
    checkers never queue behind one another or behind other requests.
    """

    def __init__(self, registry: Optional[HealthRegistry] = None):
        """
        Initialize executor.

        Args:
            registry: Health registry (uses global if None)
        """
        self.registry = registry if registry is not None else get_registry()

    async def check_now(self, ctx: Optional[Context] = None) -> Response:
        """
        Run all registered checkers and aggregate their checks.

        Args:
            ctx: Passed to every checker; dispatch stops once it is done

        Returns:
            Response whose status is the worst of all checks

        Raises:
            AggregationCancelledError: If ctx ended before every checker
                was dispatched. Carries the partial response.
        """
        if ctx is None:
            ctx = Context.background()

        start_time = time.monotonic()
        response = Response()
        snapshot = self.registry.snapshot()
        dispatched: List[Tuple[str, "asyncio.Future[List[Check]]"]] = []
        cancelled = None

        sync_count = sum(1 for _, checker in snapshot if not _is_async(checker))
        thread_pool = ThreadPoolExecutor(
            max_workers=max(sync_count, 1),
            thread_name_prefix="healthjson-check",
        )

        try:
            for name, checker in snapshot:
                if ctx.done():
                    cancelled = ctx.error
                    logger.warning(f"Health check cancelled before running {name}: {cancelled}")
                    break

                task = asyncio.ensure_future(
                    self._execute_checker(name, checker, ctx, thread_pool)
                )
                dispatched.append((name, task))

            results = await asyncio.gather(*(task for _, task in dispatched))
        finally:
            thread_pool.shutdown(wait=False)

        for (name, _), checks in zip(dispatched, results):
            response.add_checks(name, *checks)

        logger.debug(
            f"Health check completed: {response.status.value} "
            f"({len(dispatched)} checkers, {(time.monotonic() - start_time) * 1000:.1f}ms)"
        )

        if cancelled is not None:
            raise AggregationCancelledError(response, cancelled) from cancelled

        return response

    async def _execute_checker(
        self,
        name: str,
        checker: Checker,
        ctx: Context,
        thread_pool: ThreadPoolExecutor,
    ) -> List[Check]:
        """Execute a single checker, turning exceptions into a fail check."""
        start_time = time.monotonic()

        try:
            if _is_async(checker):
                checks = _as_checks(await checker.check_health(ctx))
            else:
                loop = asyncio.get_running_loop()
                checks = await loop.run_in_executor(
                    thread_pool,
                    self._call_sync,
                    name,
                    checker,
                    ctx,
                    loop,
                )

        except Exception as e:
            logger.error(f"Health checker {name} panicked: {e}", exc_info=True)
            return [Check.from_panic(e)]

        logger.debug(
            f"Health checker {name}: {len(checks)} checks "
            f"({(time.monotonic() - start_time) * 1000:.1f}ms)"
        )

        return checks

    @staticmethod
    def _call_sync(
        name: str,
        checker: Checker,
        ctx: Context,
        loop: asyncio.AbstractEventLoop,
    ) -> List[Check]:
        with log_context(checker=name, operation="check_health"):
            result = checker.check_health(ctx)
            if inspect.iscoroutine(result):
                # Sync callable handing back a coroutine; run it on the loop
                result = asyncio.run_coroutine_threadsafe(result, loop).result()
            return _as_checks(result)


# ============================================================================
# GLOBAL EXECUTOR
# ============================================================================

_executor: Optional[HealthCheckExecutor] = None
_executor_lock = threading.Lock()


def get_executor() -> HealthCheckExecutor:
    """Executor bound to the process-wide registry."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = HealthCheckExecutor(registry=get_registry())
        return _executor


async def check_now(ctx: Optional[Context] = None) -> Response:
    """Run every checker in the process-wide registry."""
    return await get_executor().check_now(ctx)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HealthCheckExecutor",
    "get_executor",
    "check_now",
]
