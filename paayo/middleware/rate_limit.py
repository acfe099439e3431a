"""In-memory token-bucket rate limiting.

Four tiers, each a map of scope key -> token bucket:

- api: blanket limit per client IP, applied by ``RateLimitMiddleware``
- engagement: per device (likes, view records, comment submits)
- write: per user for CMS mutations
- upload: per user for media uploads

The per-route tiers are FastAPI dependencies (``RateLimitChecker``). Idle
buckets are evicted by ``run_bucket_gc``, started from the app lifespan.
"""

import asyncio
import re
import time
from enum import Enum
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse

from paayo.config import settings
from paayo.core.exceptions import RateLimitExceededError
from paayo.core.fingerprint import ViewerContext, get_client_ip, request_fingerprint
from paayo.core.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 60
DEVICE_ID_HEADER = "X-Device-Id"
_DEVICE_ID_RE = re.compile(r"^[A-Za-z0-9-]{8,128}$")


class TokenBucket:
    """Classic token bucket: ``capacity`` tokens, refilled continuously."""

    __slots__ = ("capacity", "refill_per_second", "tokens", "updated_at")

    def __init__(self, capacity: int, refill_per_second: float, now: float) -> None:
        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self.tokens = float(capacity)
        self.updated_at = now

    def consume(self, now: float) -> bool:
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_per_second)
        self.updated_at = now

        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False


class KeyedRateLimiter:
    """One token bucket per scope key, ``per_minute`` requests each."""

    def __init__(
        self,
        name: str,
        per_minute: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.per_minute = per_minute
        self.clock = clock
        self._buckets: dict[str, TokenBucket] = {}

    def check(self, key: str) -> bool:
        """Take one token for ``key``. Synchronous: never suspends."""
        now = self.clock()
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = TokenBucket(self.per_minute, self.per_minute / 60.0, now)
            self._buckets[key] = bucket
        return bucket.consume(now)

    def evict_idle(self, idle_seconds: float) -> int:
        cutoff = self.clock() - idle_seconds
        stale = [key for key, bucket in self._buckets.items() if bucket.updated_at < cutoff]
        for key in stale:
            del self._buckets[key]
        return len(stale)

    def reset(self) -> None:
        self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)


class RateLimitTier(str, Enum):
    API = "api"
    ENGAGEMENT = "engagement"
    WRITE = "write"
    UPLOAD = "upload"


limiters: dict[RateLimitTier, KeyedRateLimiter] = {
    RateLimitTier.API: KeyedRateLimiter("api", settings.rate_limit_api_per_minute),
    RateLimitTier.ENGAGEMENT: KeyedRateLimiter(
        "engagement", settings.rate_limit_engagement_per_minute
    ),
    RateLimitTier.WRITE: KeyedRateLimiter("write", settings.rate_limit_write_per_minute),
    RateLimitTier.UPLOAD: KeyedRateLimiter("upload", settings.rate_limit_upload_per_minute),
}


def rate_limited_response() -> Response:
    return PlainTextResponse(
        RateLimitExceededError.message_text,
        status_code=429,
        headers={
            "Retry-After": str(RETRY_AFTER_SECONDS),
            "X-RateLimit-Exceeded": "true",
        },
    )


# ============================================================================
# Scope keys
# ============================================================================


def ip_scope_key(request: Request) -> str:
    return get_client_ip(request)


def device_scope_key(request: Request) -> str:
    """Well-formed ``X-Device-Id`` header, else an anonymous fingerprint."""
    device_id = request.headers.get(DEVICE_ID_HEADER, "")
    if _DEVICE_ID_RE.match(device_id):
        return f"device:{device_id}"
    return f"fp:{request_fingerprint(request, ViewerContext.RATE_LIMIT)}"


def user_scope_key(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    return f"ip:{get_client_ip(request)}"


# ============================================================================
# Blanket limit (middleware) and per-route tiers (dependencies)
# ============================================================================


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Blanket per-IP limit for everything under the API prefix."""

    def __init__(self, app, limiter: KeyedRateLimiter | None = None) -> None:
        super().__init__(app)
        self.limiter = limiter or limiters[RateLimitTier.API]

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        path = request.url.path
        if not path.startswith(settings.api_prefix) or path.startswith(
            f"{settings.api_prefix}/health"
        ):
            return await call_next(request)

        client_ip = ip_scope_key(request)
        if not self.limiter.check(client_ip):
            logger.warning(
                "rate_limit_exceeded",
                tier=self.limiter.name,
                client_ip=client_ip,
                path=path,
            )
            return rate_limited_response()

        return await call_next(request)


class RateLimitChecker:
    """Dependency enforcing one tier for a route.

    Usage:
        @router.post("/views", dependencies=[Depends(engagement_rate_limit)])
        async def record_view(...):
            ...
    """

    def __init__(
        self,
        tier: RateLimitTier,
        key_func: Callable[[Request], str],
        limiter: KeyedRateLimiter | None = None,
    ) -> None:
        self.tier = tier
        self.key_func = key_func
        self.limiter = limiter

    async def __call__(self, request: Request) -> None:
        limiter = self.limiter or limiters[self.tier]
        key = self.key_func(request)
        if not limiter.check(key):
            logger.warning("rate_limit_exceeded", tier=self.tier.value, scope=key)
            raise RateLimitExceededError(retry_after=RETRY_AFTER_SECONDS)


engagement_rate_limit = RateLimitChecker(RateLimitTier.ENGAGEMENT, device_scope_key)
write_rate_limit = RateLimitChecker(RateLimitTier.WRITE, user_scope_key)
upload_rate_limit = RateLimitChecker(RateLimitTier.UPLOAD, user_scope_key)


async def run_bucket_gc(interval_seconds: float, idle_seconds: float) -> None:
    """Evict idle buckets from every tier, forever. Cancel to stop."""
    while True:
        await asyncio.sleep(interval_seconds)
        for limiter in limiters.values():
            evicted = limiter.evict_idle(idle_seconds)
            if evicted:
                logger.debug(
                    "rate_limit_buckets_evicted",
                    tier=limiter.name,
                    evicted=evicted,
                    remaining=len(limiter),
                )
