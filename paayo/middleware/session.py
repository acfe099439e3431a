"""Optional session resolution."""

from typing import Callable

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.base import BaseHTTPMiddleware

from paayo.core.database import async_session_factory
from paayo.core.logging import bind_context, get_logger
from paayo.core.security import extract_session_token, resolve_session

logger = get_logger(__name__)


class OptionalSessionMiddleware(BaseHTTPMiddleware):
    """Attach ``request.state.user`` when the cookies carry a live session.

    A missing or invalid session leaves ``user = None``; the route
    extractors decide whether that is acceptable.
    """

    def __init__(
        self,
        app,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        super().__init__(app)
        self.session_factory = session_factory or async_session_factory

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request.state.user = None

        token = extract_session_token(request.cookies)
        if token:
            try:
                async with self.session_factory() as db:
                    user = await resolve_session(db, token)
            except SQLAlchemyError as e:
                logger.error("session_lookup_failed", error=str(e))
                user = None

            if user is not None:
                request.state.user = user
                bind_context(user_id=user.id)

        return await call_next(request)
