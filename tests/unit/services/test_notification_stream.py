"""Unit tests for the notification SSE stream."""

import itertools
import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from paayo.modules.notifications.service import count_channel, user_channel
from paayo.modules.notifications.stream import KEEPALIVE, NotificationStream, format_sse_event

USER_ID = "u1"


def _parse(chunk: str) -> tuple[str, dict]:
    lines = chunk.strip().split("\n")
    event = lines[0].removeprefix("event: ")
    data = json.loads(lines[1].removeprefix("data: "))
    return event, data


def _session_factory(db: AsyncMock):
    @asynccontextmanager
    async def factory():
        yield db

    return factory


def _request(disconnect_after: int) -> Mock:
    """Request that reports disconnected after ``disconnect_after`` checks."""
    request = Mock()
    request.is_disconnected = AsyncMock(
        side_effect=[False] * disconnect_after + [True]
    )
    return request


def _stepping_clock(step: float = 10.0):
    counter = itertools.count()
    return lambda: next(counter) * step


async def _collect(stream: NotificationStream, request: Mock) -> list[str]:
    return [chunk async for chunk in stream.events(request)]


class TestFormatSseEvent:
    """Tests for format_sse_event."""

    @pytest.mark.unit
    def test_event_framing(self) -> None:
        assert format_sse_event("unread_count", {"count": 2}) == (
            'event: unread_count\ndata: {"count": 2}\n\n'
        )


class TestNotificationStream:
    """Tests for NotificationStream."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_poll_mode_emits_changes(self, mock_db: AsyncMock, result_factory) -> None:
        """Without Redis the unread count is polled and only emitted on change."""
        mock_db.execute.side_effect = [result_factory(scalar=3), result_factory(scalar=5)]
        stream = NotificationStream(
            USER_ID,
            redis_client=None,
            session_factory=_session_factory(mock_db),
            poll_seconds=5,
            keepalive_seconds=10_000,
            heartbeat_seconds=10_000,
            tick_seconds=0,
            clock=_stepping_clock(),
        )

        chunks = await _collect(stream, _request(disconnect_after=1))

        assert [_parse(c) for c in chunks] == [
            ("connected", {"user_id": USER_ID}),
            ("unread_count", {"count": 3}),
            ("unread_count", {"count": 5}),
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_poll_mode_is_quiet_without_changes(
        self, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=2)
        stream = NotificationStream(
            USER_ID,
            redis_client=None,
            session_factory=_session_factory(mock_db),
            poll_seconds=5,
            keepalive_seconds=10_000,
            heartbeat_seconds=10_000,
            tick_seconds=0,
            clock=_stepping_clock(),
        )

        chunks = await _collect(stream, _request(disconnect_after=2))

        assert len(chunks) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pubsub_relays_messages(self, mock_db: AsyncMock, result_factory) -> None:
        """Redis messages should be relayed as notification and unread_count events."""
        mock_db.execute.return_value = result_factory(scalar=0)
        notification = {"id": "n1", "title": "New comment from Sita"}
        pubsub = Mock()
        pubsub.subscribe = AsyncMock()
        pubsub.unsubscribe = AsyncMock()
        pubsub.aclose = AsyncMock()
        pubsub.get_message = AsyncMock(
            side_effect=[
                {"channel": user_channel(USER_ID), "data": json.dumps(notification)},
                {"channel": count_channel(USER_ID), "data": json.dumps({"count": 1})},
            ]
        )
        redis_client = Mock()
        redis_client.pubsub.return_value = pubsub
        stream = NotificationStream(
            USER_ID,
            redis_client=redis_client,
            session_factory=_session_factory(mock_db),
            keepalive_seconds=10_000,
            heartbeat_seconds=10_000,
            tick_seconds=0,
            clock=_stepping_clock(),
        )

        chunks = await _collect(stream, _request(disconnect_after=2))

        assert [_parse(c) for c in chunks[2:]] == [
            ("notification", notification),
            ("unread_count", {"count": 1}),
        ]
        pubsub.unsubscribe.assert_awaited_once()
        pubsub.aclose.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_subscribe_failure_falls_back_to_polling(
        self, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.side_effect = [result_factory(scalar=1), result_factory(scalar=4)]
        pubsub = Mock()
        pubsub.subscribe = AsyncMock(side_effect=RedisConnectionError("down"))
        pubsub.aclose = AsyncMock()
        redis_client = Mock()
        redis_client.pubsub.return_value = pubsub
        stream = NotificationStream(
            USER_ID,
            redis_client=redis_client,
            session_factory=_session_factory(mock_db),
            poll_seconds=5,
            keepalive_seconds=10_000,
            heartbeat_seconds=10_000,
            tick_seconds=0,
            clock=_stepping_clock(),
        )

        chunks = await _collect(stream, _request(disconnect_after=1))

        assert _parse(chunks[-1]) == ("unread_count", {"count": 4})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keepalive_and_heartbeat(self, mock_db: AsyncMock, result_factory) -> None:
        """Due timers should emit a keepalive comment and a heartbeat event."""
        mock_db.execute.return_value = result_factory(scalar=0)
        stream = NotificationStream(
            USER_ID,
            redis_client=None,
            session_factory=_session_factory(mock_db),
            poll_seconds=10_000,
            keepalive_seconds=15,
            heartbeat_seconds=15,
            tick_seconds=0,
            clock=_stepping_clock(),
        )

        chunks = await _collect(stream, _request(disconnect_after=1))

        assert KEEPALIVE in chunks
        assert any(chunk.startswith("event: heartbeat") for chunk in chunks)
