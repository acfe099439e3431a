"""Cache-Control headers by path prefix."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

NO_CACHE = "no-store, no-cache, must-revalidate, max-age=0"
SHORT = "public, max-age=60, stale-while-revalidate=30"
MEDIUM = "public, max-age=300, stale-while-revalidate=60"
LONG = "public, max-age=3600, stale-while-revalidate=300"
IMMUTABLE = "public, max-age=31536000, immutable"
PRIVATE = "private, no-store"

SHARED_POLICIES = frozenset({SHORT, MEDIUM, LONG})

# First matching prefix wins.
CACHE_POLICIES: tuple[tuple[str, str], ...] = (
    ("/api/health", LONG),
    ("/api/hero-slides", LONG),
    ("/api/regions", MEDIUM),
    ("/api/tags", MEDIUM),
    ("/api/posts", SHORT),
    ("/api/events", SHORT),
    ("/api/activities", SHORT),
    ("/api/attractions", SHORT),
    ("/api/videos", SHORT),
    ("/api/photos", SHORT),
    ("/api/photo-features", SHORT),
    ("/api/hotels", SHORT),
    ("/api/search", SHORT),
    ("/api/content-links", SHORT),
    ("/api/notifications", NO_CACHE),
    ("/api/users", NO_CACHE),
    ("/api/views", NO_CACHE),
    ("/api/content", NO_CACHE),
    ("/uploads/", IMMUTABLE),
)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def get_cache_policy(method: str, path: str, *, authenticated: bool = False) -> str:
    """Policy for a successful response. Public tiers turn private when signed in."""
    if method in MUTATING_METHODS:
        return NO_CACHE

    for prefix, policy in CACHE_POLICIES:
        if path.startswith(prefix):
            if authenticated and policy in SHARED_POLICIES:
                return PRIVATE
            return policy
    return NO_CACHE


class CacheControlMiddleware(BaseHTTPMiddleware):
    """Add ``Cache-Control`` unless the handler already set one.

    Error responses are never cached publicly.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        response = await call_next(request)

        if "cache-control" in response.headers:
            return response

        if response.status_code >= 400:
            response.headers["Cache-Control"] = NO_CACHE
        else:
            response.headers["Cache-Control"] = get_cache_policy(
                request.method,
                request.url.path,
                authenticated=getattr(request.state, "user", None) is not None,
            )
        return response
