"""Request logging (tracing) middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from paayo.config import settings
from paayo.core.fingerprint import get_client_ip
from paayo.core.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)

# Health checks poll these every few seconds; keep them out of INFO output.
QUIET_PATHS = frozenset({"/api/health", "/api/health/live", "/api/health/ready"})

SSE_PATH = "/api/notifications/stream"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log request start and completion with timing.

    The request id is assigned further in by ``RequestIdMiddleware`` and the
    session user by ``SessionMiddleware``; both are read back from
    ``request.state`` once the response is ready. Requests slower than
    ``slow_request_ms`` are logged as warnings.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        path = request.url.path
        bind_context(
            method=request.method,
            path=path,
            client_ip=get_client_ip(request),
        )
        start_time = time.perf_counter()

        logger.debug(
            "request_started",
            query_params=str(request.query_params),
            user_agent=request.headers.get("user-agent", ""),
        )

        try:
            response = await call_next(request)

            process_time_ms = _elapsed_ms(start_time)
            user = getattr(request.state, "user", None)
            fields = {
                "request_id": getattr(request.state, "request_id", None),
                "user_id": user.id if user else None,
                "status_code": response.status_code,
                "process_time_ms": process_time_ms,
            }

            if path == SSE_PATH:
                # Time to first byte only; the stream itself stays open.
                logger.info("stream_opened", **fields)
            elif process_time_ms >= settings.slow_request_ms:
                logger.warning("request_slow", **fields)
            elif path in QUIET_PATHS:
                logger.debug("request_completed", **fields)
            else:
                logger.info("request_completed", **fields)

            response.headers["X-Process-Time"] = f"{process_time_ms / 1000:.4f}"
            return response

        except Exception as exc:
            logger.exception(
                "request_failed",
                request_id=getattr(request.state, "request_id", None),
                error=str(exc),
                process_time_ms=_elapsed_ms(start_time),
            )
            raise

        finally:
            clear_context()


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
