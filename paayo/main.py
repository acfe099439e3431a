"""FastAPI application entry point."""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from paayo.config import settings
from paayo.core.database import check_db_connection, close_db, get_db_context
from paayo.core.exceptions import (
    AppException,
    CacheError,
    ConflictError,
    DatabaseError,
    InternalServerError,
    RateLimitExceededError,
    UnprocessableEntityError,
    is_unique_violation,
)
from paayo.core.logging import get_logger, setup_logging
from paayo.core.redis import close_redis, init_redis
from paayo.middleware import (
    CacheControlMiddleware,
    CSRFMiddleware,
    OptionalSessionMiddleware,
    RateLimitMiddleware,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
)
from paayo.middleware.rate_limit import run_bucket_gc
from paayo.modules.auth.service import seed_admin
from paayo.modules.media.cleanup import run_media_cleanup_loop
from paayo.modules.media.storage import LocalStorage

# Setup logging on module load
setup_logging()
logger = get_logger(__name__)


def _start_background_tasks() -> list[asyncio.Task]:
    return [
        asyncio.create_task(
            run_bucket_gc(
                settings.rate_limit_gc_interval_seconds, settings.rate_limit_idle_seconds
            ),
            name="rate_limit_gc",
        ),
        asyncio.create_task(
            run_media_cleanup_loop(
                settings.media_cleanup_interval_hours, settings.media_cleanup_grace_hours
            ),
            name="media_cleanup",
        ),
    ]


async def _stop_background_tasks(tasks: list[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    for task in tasks:
        with contextlib.suppress(asyncio.CancelledError):
            await task


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup checks, admin seed and background tasks.

    Database, upload directory and admin seed failures abort startup.
    Redis is optional: notifications fall back to polling without it.
    """
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if not await check_db_connection():
        logger.error("database_connection_failed")
        raise RuntimeError("Database is unreachable")
    logger.info("database_connected")

    try:
        await init_redis()
    except (RedisError, OSError) as e:
        logger.warning("redis_init_failed", error=str(e))

    if settings.media_storage == "local":
        LocalStorage().ensure_root()

    async with get_db_context() as db:
        await seed_admin(db)

    tasks = _start_background_tasks()

    yield

    logger.info("application_shutting_down")
    await _stop_background_tasks(tasks)
    await close_redis()
    await close_db()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Content, engagement and media API for the Paayo tourism platform",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    _setup_middleware(app)
    _setup_exception_handlers(app)
    _setup_routers(app)

    app.mount(
        "/uploads",
        StaticFiles(directory=settings.upload_path, check_dir=False),
        name="uploads",
    )

    return app


def _setup_middleware(app: FastAPI) -> None:
    """Configure application middleware.

    Starlette runs the last added middleware first, so they are added
    innermost first. Request order: CORS, GZip, request logging, request
    id, blanket rate limit, CSRF, optional session, cache control.
    """
    app.add_middleware(CacheControlMiddleware)
    app.add_middleware(OptionalSessionMiddleware)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", "X-Process-Time", "Retry-After"],
    )


def _render(exc: AppException) -> Response:
    if isinstance(exc, RateLimitExceededError):
        return PlainTextResponse(exc.message, status_code=exc.status_code, headers=exc.headers)
    return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)


def _setup_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> Response:
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> Response:
        return _render(UnprocessableEntityError(details=jsonable_encoder(exc.errors())))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> Response:
        if is_unique_violation(exc):
            logger.info("unique_violation", path=request.url.path)
            return _render(ConflictError())
        logger.error("integrity_error", path=request.url.path, error=str(exc.orig))
        return _render(DatabaseError())

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> Response:
        logger.exception("database_error", path=request.url.path)
        return _render(DatabaseError())

    @app.exception_handler(RedisError)
    async def redis_error_handler(request: Request, exc: RedisError) -> Response:
        logger.exception("cache_error", path=request.url.path)
        return _render(CacheError())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> Response:
        logger.exception("unhandled_exception", error=str(exc), path=request.url.path)
        return _render(InternalServerError())


def _setup_routers(app: FastAPI) -> None:
    """Register API routers."""
    from paayo.modules.auth.router import router as users_router
    from paayo.modules.content.router import router as content_router
    from paayo.modules.engagement.router import router as engagement_router
    from paayo.modules.health.router import router as health_router
    from paayo.modules.media.router import router as media_router
    from paayo.modules.notifications.router import router as notifications_router
    from paayo.modules.search.router import router as search_router
    from paayo.modules.tags.router import router as tags_router

    for router in (
        health_router,
        users_router,
        content_router,
        tags_router,
        engagement_router,
        media_router,
        notifications_router,
        search_router,
    ):
        app.include_router(router, prefix=settings.api_prefix)


# Create app instance
app = create_app()
