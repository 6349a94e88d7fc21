# ============================================================================
# HEALTH CHECK ADAPTERS
# ============================================================================
# STATUS: Adapters - Ready-made checkers
# PURPOSE: Thin wrappers registering common handles as checkers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Adapters

Ready-made checkers built on the registry API:

Database Checks:
- register_pinger: anything with a ping(ctx) method
"""

from healthjson.checks.database import (
    Pinger,
    PingChecker,
    ping_checker,
    register_pinger,
)

__all__ = [
    "Pinger",
    "PingChecker",
    "ping_checker",
    "register_pinger",
]
