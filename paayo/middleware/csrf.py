"""Double-submit cookie CSRF protection."""

import hmac
import secrets
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from paayo.config import settings
from paayo.core.exceptions import CSRFError
from paayo.core.logging import get_logger

logger = get_logger(__name__)

CSRF_COOKIE = "paayo_csrf"
CSRF_HEADER = "X-CSRF-Token"
CSRF_COOKIE_MAX_AGE = 86400

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def generate_csrf_token() -> str:
    return secrets.token_hex(32)


def tokens_match(header_token: str | None, cookie_token: str | None) -> bool:
    """Constant-time comparison; missing values never match."""
    if not header_token or not cookie_token:
        return False
    return hmac.compare_digest(header_token.encode("utf-8"), cookie_token.encode("utf-8"))


class CSRFMiddleware(BaseHTTPMiddleware):
    """Require ``X-CSRF-Token`` to mirror the ``paayo_csrf`` cookie on
    state-changing requests, and mint the cookie when a client has none."""

    def __init__(self, app, secure_cookie: bool | None = None) -> None:
        super().__init__(app)
        self.secure_cookie = (
            not settings.csrf_insecure_dev if secure_cookie is None else secure_cookie
        )
        prefix = settings.api_prefix
        self.exempt_prefixes = (
            f"{prefix}/health",
            f"{prefix}/notifications/stream",
            f"{prefix}/auth/",
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        cookie_token = request.cookies.get(CSRF_COOKIE)

        if self._requires_check(request) and not tokens_match(
            request.headers.get(CSRF_HEADER), cookie_token
        ):
            logger.warning(
                "csrf_rejected",
                path=request.url.path,
                method=request.method,
                has_cookie=cookie_token is not None,
                has_header=CSRF_HEADER.lower() in request.headers,
            )
            error = CSRFError()
            response: Response = JSONResponse(status_code=error.status_code, content=error.detail)
        else:
            response = await call_next(request)

        if not cookie_token:
            self._set_cookie(response, generate_csrf_token())
        return response

    def _requires_check(self, request: Request) -> bool:
        if request.method in SAFE_METHODS:
            return False
        return not request.url.path.startswith(self.exempt_prefixes)

    def _set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            CSRF_COOKIE,
            token,
            max_age=CSRF_COOKIE_MAX_AGE,
            path="/",
            secure=self.secure_cookie,
            httponly=False,
            samesite="lax",
        )
