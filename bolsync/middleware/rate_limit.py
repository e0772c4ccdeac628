"""
Rate Limiting Middleware
Inbound request limits for the sync endpoints using slowapi

RATE LIMITS:
- Global: 100 requests/minute per caller (default)
- Per-route limits are set on the sync routes themselves

Callers are keyed by IP. The cron scheduler hits us from a handful of
addresses, so per-IP limits double as per-scheduler limits.
"""
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from bolsync.core.config import settings

logger = logging.getLogger(__name__)


def rate_limit_key_func(request: Request) -> str:
    ip = get_remote_address(request)
    logger.debug(f"Rate limit key: ip={ip}")
    return f"ip:{ip}"


limiter = Limiter(
    key_func=rate_limit_key_func,
    default_limits=["100/minute"],
    # Shared counters across instances when Redis is configured
    storage_uri=settings.redis_url or "memory://",
    enabled=settings.environment != "test",
)
