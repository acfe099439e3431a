"""Request plane middleware, listed outermost first in ``paayo.main``."""

from paayo.middleware.cache import CacheControlMiddleware
from paayo.middleware.csrf import CSRFMiddleware
from paayo.middleware.rate_limit import RateLimitMiddleware
from paayo.middleware.request_id import RequestIdMiddleware
from paayo.middleware.request_logging import RequestLoggingMiddleware
from paayo.middleware.session import OptionalSessionMiddleware

__all__ = [
    "CSRFMiddleware",
    "CacheControlMiddleware",
    "OptionalSessionMiddleware",
    "RateLimitMiddleware",
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
]
