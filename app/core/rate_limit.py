"""
Rate limiting.

Data routes get slowapi's default per-address limit. The auth endpoints are
exempt from it and each has its own moving window (``rate_limit(name)``),
counted in the ``limits`` storage named by ``settings.rate_limit_storage_uri``.
The default ``memory://`` storage is process-local: with several instances
behind a load balancer each one counts on its own, so point it at a shared
backend such as ``redis://`` there.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict

from fastapi import Request, Response
from limits import RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings
from app.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitStatus:
    limit: int
    remaining: int
    reset_time: float  # epoch seconds

    def headers(self) -> Dict[str, str]:
        reset = datetime.fromtimestamp(self.reset_time, tz=timezone.utc)
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset.isoformat(),
        }


class AuthRateLimiter:
    """Moving-window limiter keyed by endpoint and client address; rejected hits are not counted."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.strategy = MovingWindowRateLimiter(storage)

    def check(self, endpoint: str, client: str, max_requests: int, window_seconds: int) -> RateLimitStatus:
        """Record one request, raising RateLimitExceededError when the window is full."""
        item = RateLimitItemPerSecond(max_requests, window_seconds)
        allowed = self.strategy.hit(item, endpoint, client)
        reset_time, remaining = self.strategy.get_window_stats(item, endpoint, client)

        if not allowed:
            retry_after = max(1, math.ceil(reset_time - time.time()))
            raise RateLimitExceededError(max_requests, window_seconds, retry_after)

        return RateLimitStatus(limit=max_requests, remaining=remaining, reset_time=reset_time)

    def reset(self) -> None:
        self.storage.reset()


auth_limiter = AuthRateLimiter(storage_from_string(settings.rate_limit_storage_uri))

# Default per-address limit for data routes; auth routes are exempt and use auth_limiter
default_limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    storage_uri=settings.rate_limit_storage_uri,
)


def rate_limit(endpoint: str):
    """Dependency factory enforcing the configured auth limit for an endpoint."""
    async def check_rate_limit(request: Request, response: Response) -> RateLimitStatus:
        client = get_remote_address(request)
        try:
            status = auth_limiter.check(
                endpoint,
                client,
                settings.auth_rate_limit(endpoint),
                settings.rate_limit_window_seconds,
            )
        except RateLimitExceededError:
            logger.warning("Rate limit exceeded for %s:%s", endpoint, client)
            raise
        response.headers.update(status.headers())
        return status
    return check_rate_limit
