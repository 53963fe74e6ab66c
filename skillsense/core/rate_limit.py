from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from skillsense.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def ai_rate_limit():
    """Limit applied to endpoints that call the hosted model."""
    return limiter.limit(settings.rate_limit)
