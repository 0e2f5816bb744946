from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, default_limits=[])


def rate_limit(limit: str | None = None):
    """Per-client limit for a route; no-op when RATE_LIMIT_ENABLED is off."""
    if not settings.rate_limit_enabled:
        return lambda func: func
    return limiter.limit(limit or settings.rate_limit)
