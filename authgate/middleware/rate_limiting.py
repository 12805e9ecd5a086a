"""Per-client request limits backed by Redis"""

import hashlib
from typing import Optional
from fastapi import Request, HTTPException, status
import redis
from authgate.config import settings
import structlog

logger = structlog.get_logger()

redis_client: Optional[redis.Redis] = None


def init_redis():
    """Connect the rate limiter. Limits are not enforced if Redis is unreachable."""
    global redis_client
    try:
        redis_client = redis.from_url(settings.REDIS_URL)
        redis_client.ping()
        logger.info("redis_connected", purpose="rate_limiting")
    except redis.RedisError as e:
        logger.warning("redis_unavailable", purpose="rate_limiting", error=str(e))
        redis_client = None


class RateLimiter:
    """
    Fixed-window counter for one scope of requests.

    An instance is a route dependency counting per client IP. Routes that
    also limit per account call ``hit`` with the email as identifier; the
    identifier is hashed so addresses never appear in Redis keys.
    """

    def __init__(self, scope: str, limit: int, window: int = 60):
        self.scope = scope
        self.limit = limit
        self.window = window

    def redis_key(self, request: Request, identifier: Optional[str] = None) -> str:
        client_ip = request.client.host if request.client else "unknown"
        key = f"authgate:rate_limit:{self.scope}:{client_ip}"
        normalized = identifier.strip().lower() if identifier else ""
        if normalized:
            key += ":" + hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]
        return key

    async def hit(self, request: Request, identifier: Optional[str] = None) -> None:
        """Count one request. Raises 429 once the window's limit is passed."""
        if not redis_client:
            return

        key = self.redis_key(request, identifier)
        current = redis_client.incr(key)
        if current == 1:
            redis_client.expire(key, self.window)

        if current > self.limit:
            logger.warning("rate_limit_exceeded", scope=self.scope, key=key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded: {self.limit} requests per {self.window} seconds",
                headers={"Retry-After": str(self.window)},
            )

    async def __call__(self, request: Request) -> None:
        await self.hit(request)
