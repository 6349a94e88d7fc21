# ============================================================================
# CORE MODULE
# ============================================================================
# STATUS: Core - Shared infrastructure
# PURPOSE: Errors, cancellation, configuration and logging
# CREATED: 19 OCT 2026
# ============================================================================
"""
Core Module

Shared building blocks used by every healthjson component.
"""

from healthjson.core.errors import (
    HealthError,
    OptionError,
    TransportError,
    DecodeError,
    ServerError,
    ContextError,
    ContextCancelledError,
    DeadlineExceededError,
    AggregationCancelledError,
)
from healthjson.core.context import Context
from healthjson.core.config import (
    CONTENT_TYPE,
    ALTERNATIVE_CONTENT_TYPE,
    HealthDefaults,
    get_defaults,
)

__all__ = [
    # Errors
    "HealthError",
    "OptionError",
    "TransportError",
    "DecodeError",
    "ServerError",
    "ContextError",
    "ContextCancelledError",
    "DeadlineExceededError",
    "AggregationCancelledError",
    # Context
    "Context",
    # Config
    "CONTENT_TYPE",
    "ALTERNATIVE_CONTENT_TYPE",
    "HealthDefaults",
    "get_defaults",
]
