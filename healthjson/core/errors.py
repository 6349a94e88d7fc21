# ============================================================================
# HEALTH ERRORS
# ============================================================================
# STATUS: Core - Exception hierarchy
# PURPOSE: Typed failures surfaced by the client, aggregator and server
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Errors

All library failures derive from HealthError so callers can catch
one base class. Checker exceptions never surface here: the executor
turns them into synthetic fail checks.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from healthjson.models import Response


class HealthError(Exception):
    """Base exception for health errors."""
    pass


class OptionError(HealthError):
    """Raised when a client option is invalid."""
    def __init__(self, message: str):
        super().__init__(f"invalid option: {message}")


class TransportError(HealthError):
    """Raised when the health endpoint cannot be reached."""
    pass


class DecodeError(HealthError):
    """Raised when a health response cannot be decoded."""
    pass


class ServerError(HealthError):
    """Raised when the health server cannot start listening."""
    pass


# ============================================================================
# CONTEXT TERMINATION
# ============================================================================

class ContextError(HealthError):
    """Base exception for an ended context."""
    pass


class ContextCancelledError(ContextError):
    """The context was cancelled explicitly."""
    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceededError(ContextError):
    """The context deadline passed."""
    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class AggregationCancelledError(HealthError):
    """
    Raised when the context ends while checkers are being dispatched.

    The checks collected before the context ended are available
    on the ``response`` attribute.
    """
    def __init__(self, response: "Response", cause: Optional[ContextError] = None):
        self.response = response
        self.cause = cause
        super().__init__(f"health check aborted: {cause or ContextCancelledError()}")


__all__ = [
    "HealthError",
    "OptionError",
    "TransportError",
    "DecodeError",
    "ServerError",
    "ContextError",
    "ContextCancelledError",
    "DeadlineExceededError",
    "AggregationCancelledError",
]
