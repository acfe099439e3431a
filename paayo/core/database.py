"""Database engine, session management and transaction helpers."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, Callable, ParamSpec, TypeVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from paayo.config import settings

engine = create_async_engine(
    str(settings.database_url),
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Usage:
        @router.get("/posts")
        async def list_posts(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session for code running outside a request (background tasks, scripts,
    middleware).

    Usage:
        async with get_db_context() as db:
            result = await db.execute(query)
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


P = ParamSpec("P")
R = TypeVar("R")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    for arg in args:
        if isinstance(arg, AsyncSession):
            return arg
    if kwargs.get("db") is not None:
        return kwargs["db"]
    if args:
        return getattr(args[0], "db", None)
    return None


def transactional(func: Callable[P, R]) -> Callable[P, R]:
    """Commit after the wrapped coroutine returns, roll back if it raises.

    The session is taken from a positional ``AsyncSession``, a ``db`` keyword,
    or ``self.db`` on service classes.

    Usage:
        class PostService:
            def __init__(self, db: AsyncSession):
                self.db = db

            @transactional
            async def soft_delete(self, post_id: str) -> None:
                await self.db.execute(...)
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        db = _find_session(args, kwargs)
        if db is None:
            raise ValueError("No AsyncSession found in function arguments")

        try:
            result = await func(*args, **kwargs)
            await db.commit()
            return result
        except Exception:
            await db.rollback()
            raise

    return wrapper  # type: ignore


async def check_db_connection() -> bool:
    """Check database connectivity for health checks."""
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
            return True
    except Exception:
        return False


async def close_db() -> None:
    await engine.dispose()
