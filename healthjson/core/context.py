# ============================================================================
# CANCELLATION CONTEXT
# ============================================================================
# STATUS: Core - Cancellation and deadlines
# PURPOSE: Bound checker execution, client requests and server lifetime
# CREATED: 19 OCT 2026
# ============================================================================
"""
Cancellation Context

A Context carries a cancellation signal and an optional deadline across
threads. Contexts form a tree: cancelling a parent cancels its children,
and a child's deadline never outlives its parent's.

Usage:
    ctx = Context.background().with_timeout(5.0)
    response = await executor.check_now(ctx)

    # Elsewhere
    ctx.cancel()
"""

import threading
import time
from typing import List, Optional

from healthjson.core.errors import (
    ContextError,
    ContextCancelledError,
    DeadlineExceededError,
)


class Context:
    """
    Thread-safe cancellation token with an optional deadline.

    Attributes:
        deadline: time.monotonic() value after which the context is done,
            or None for no deadline
    """

    def __init__(
        self,
        parent: Optional["Context"] = None,
        timeout: Optional[float] = None,
    ):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: List["Context"] = []
        self._error: Optional[ContextError] = None
        self._parent = parent

        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self.deadline = deadline

        if parent is not None:
            parent._attach(self)

    @classmethod
    def background(cls) -> "Context":
        """Root context that only ends when cancelled."""
        return cls()

    def with_cancel(self) -> "Context":
        """Child context that can be cancelled independently."""
        return Context(parent=self)

    def with_timeout(self, timeout: float) -> "Context":
        """Child context that ends after ``timeout`` seconds."""
        return Context(parent=self, timeout=timeout)

    def _attach(self, child: "Context") -> None:
        with self._lock:
            if self._error is None:
                self._children.append(child)
                return
            error = self._error
        child._finish(error)

    def _finish(self, error: ContextError) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            children, self._children = self._children, []
            self._event.set()

        for child in children:
            child._finish(error)

        if self._parent is not None:
            self._parent._detach(self)

    def _detach(self, child: "Context") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def cancel(self) -> None:
        """Cancel this context and all of its children."""
        self._finish(ContextCancelledError())

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def done(self) -> bool:
        """True once the context is cancelled or past its deadline."""
        if self._event.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self._finish(DeadlineExceededError())
            return True
        return False

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the context is done or ``timeout`` seconds pass.

        Returns:
            True if the context is done
        """
        end = time.monotonic() + timeout if timeout is not None else None
        while not self.done():
            limits = [self.remaining()]
            if end is not None:
                left = end - time.monotonic()
                if left <= 0:
                    return False
                limits.append(left)
            limits = [limit for limit in limits if limit is not None]
            self._event.wait(min(limits) if limits else None)
        return True

    @property
    def error(self) -> Optional[ContextError]:
        """Why the context ended, or None while it is live."""
        if not self.done():
            return None
        return self._error


__all__ = [
    "Context",
]
