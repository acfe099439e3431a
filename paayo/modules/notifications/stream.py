"""Server-sent event stream of a user's notifications.

On connect the stream sends ``connected`` and the current ``unread_count``.
After that it relays Redis pub/sub messages as ``notification`` and
``unread_count`` events. When Redis is unavailable, or the subscription
breaks mid-stream, it polls the unread count from the database instead and
only emits when the number changes.

A ``: keepalive`` comment goes out every ``keepalive_seconds`` and a
``heartbeat`` event every ``heartbeat_seconds``.
"""

import asyncio
import json
import time
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paayo.config import settings
from paayo.core.database import async_session_factory
from paayo.core.logging import get_logger
from paayo.modules.notifications.service import (
    NotificationService,
    count_channel,
    user_channel,
)

logger = get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
KEEPALIVE = ": keepalive\n\n"


def format_sse_event(event_type: str, data: Any) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"


class NotificationStream:
    def __init__(
        self,
        user_id: str,
        *,
        redis_client: Redis | None,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        poll_seconds: float | None = None,
        keepalive_seconds: float | None = None,
        heartbeat_seconds: float | None = None,
        tick_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.user_id = user_id
        self.redis = redis_client
        self.session_factory = session_factory
        self.poll_seconds = poll_seconds or settings.notification_poll_seconds
        self.keepalive_seconds = keepalive_seconds or settings.sse_keepalive_seconds
        self.heartbeat_seconds = heartbeat_seconds or settings.sse_heartbeat_seconds
        self.tick_seconds = tick_seconds
        self.clock = clock

        now = clock()
        self._last_keepalive = now
        self._last_heartbeat = now
        self._last_count: int | None = None

    async def _unread_count(self) -> int:
        async with self.session_factory() as db:
            return await NotificationService(db, redis_client=self.redis).unread_count(
                self.user_id
            )

    def _timers(self) -> list[str]:
        """Keepalive comment and heartbeat event chunks that are due."""
        now = self.clock()
        chunks = []
        if now - self._last_keepalive >= self.keepalive_seconds:
            self._last_keepalive = now
            chunks.append(KEEPALIVE)
        if now - self._last_heartbeat >= self.heartbeat_seconds:
            self._last_heartbeat = now
            chunks.append(
                format_sse_event("heartbeat", {"ts": datetime.now(UTC).isoformat()})
            )
        return chunks

    async def _subscribe(self) -> Any | None:
        if self.redis is None:
            return None
        pubsub = self.redis.pubsub()
        try:
            await pubsub.subscribe(user_channel(self.user_id), count_channel(self.user_id))
        except RedisError as e:
            logger.warning("sse_subscribe_failed", user_id=self.user_id, error=str(e))
            await pubsub.aclose()
            return None
        return pubsub

    async def events(self, request: Request) -> AsyncGenerator[str, None]:
        yield format_sse_event("connected", {"user_id": self.user_id})

        self._last_count = await self._unread_count()
        yield format_sse_event("unread_count", {"count": self._last_count})

        pubsub = await self._subscribe()
        logger.info("sse_connected", user_id=self.user_id, mode="pubsub" if pubsub else "poll")
        try:
            if pubsub is not None:
                async for chunk in self._relay(request, pubsub):
                    yield chunk
            else:
                async for chunk in self._poll(request):
                    yield chunk
        finally:
            if pubsub is not None:
                try:
                    await pubsub.unsubscribe()
                    await pubsub.aclose()
                except RedisError as e:
                    logger.debug("sse_unsubscribe_failed", error=str(e))
            logger.info("sse_disconnected", user_id=self.user_id)

    async def _relay(self, request: Request, pubsub: Any) -> AsyncGenerator[str, None]:
        count_name = count_channel(self.user_id)
        while not await request.is_disconnected():
            try:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=self.tick_seconds
                )
            except RedisError as e:
                logger.warning("sse_pubsub_failed", user_id=self.user_id, error=str(e))
                async for chunk in self._poll(request):
                    yield chunk
                return

            if message is not None:
                data = json.loads(message["data"])
                if message["channel"] == count_name:
                    self._last_count = data.get("count", 0)
                    yield format_sse_event("unread_count", data)
                else:
                    yield format_sse_event("notification", data)

            for chunk in self._timers():
                yield chunk

    async def _poll(self, request: Request) -> AsyncGenerator[str, None]:
        last_poll = self.clock()
        while not await request.is_disconnected():
            await asyncio.sleep(self.tick_seconds)

            if self.clock() - last_poll >= self.poll_seconds:
                last_poll = self.clock()
                count = await self._unread_count()
                if count != self._last_count:
                    self._last_count = count
                    yield format_sse_event("unread_count", {"count": count})

            for chunk in self._timers():
                yield chunk
