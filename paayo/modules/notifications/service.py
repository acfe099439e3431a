"""Staff notifications, stored in Postgres and fanned out through Redis.

Every write publishes to two per-user channels:

- ``notifications:{user_id}`` carries the new notification as JSON
- ``notifications:{user_id}:count`` carries ``{"count": <unread>}``

Publishing is best effort. The row is the source of truth and the SSE stream
falls back to polling when Redis is unavailable.
"""

import json
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.exceptions import NotFoundError
from paayo.core.logging import get_logger
from paayo.core.redis import get_redis_client
from paayo.modules.auth.models import User, UserRole
from paayo.modules.notifications.models import Notification
from paayo.modules.notifications.schemas import NotificationResponse

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 50


def user_channel(user_id: str) -> str:
    return f"notifications:{user_id}"


def count_channel(user_id: str) -> str:
    return f"notifications:{user_id}:count"


class NotificationService:
    def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
        self.db = db
        self.redis = redis_client if redis_client is not None else get_redis_client()

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def _publish(self, channel: str, payload: dict[str, Any]) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.publish(channel, json.dumps(payload, default=str))
        except RedisError as e:
            logger.warning("notification_publish_failed", channel=channel, error=str(e))

    async def _publish_notification(self, notification: Notification) -> None:
        payload = NotificationResponse.model_validate(notification).model_dump(mode="json")
        await self._publish(user_channel(notification.recipient_id), payload)
        await self.publish_count(notification.recipient_id)

    async def publish_count(self, user_id: str) -> None:
        if self.redis is None:
            return
        count = await self.unread_count(user_id)
        await self._publish(count_channel(user_id), {"count": count})

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        *,
        recipient_id: str,
        kind: str,
        title: str,
        message: str | None = None,
        actor_id: str | None = None,
        target_type: str | None = None,
        target_id: str | None = None,
        action_url: str | None = None,
    ) -> Notification:
        notification = Notification(
            recipient_id=recipient_id,
            actor_id=actor_id,
            kind=kind,
            title=title,
            message=message,
            target_type=target_type,
            target_id=target_id,
            action_url=action_url,
        )
        self.db.add(notification)
        await self.db.commit()
        await self.db.refresh(notification)

        await self._publish_notification(notification)
        return notification

    async def notify_admins(
        self,
        *,
        kind: str,
        title: str,
        message: str | None = None,
        actor_id: str | None = None,
        target_type: str | None = None,
        target_id: str | None = None,
        action_url: str | None = None,
    ) -> int:
        """One notification per active, unbanned admin, skipping the actor."""
        stmt = select(User.id).where(
            User.role == UserRole.ADMIN.value,
            User.is_active.is_(True),
            User.banned_at.is_(None),
        )
        if actor_id is not None:
            stmt = stmt.where(User.id != actor_id)
        admin_ids = list((await self.db.execute(stmt)).scalars().all())
        if not admin_ids:
            return 0

        notifications = [
            Notification(
                recipient_id=admin_id,
                actor_id=actor_id,
                kind=kind,
                title=title,
                message=message,
                target_type=target_type,
                target_id=target_id,
                action_url=action_url,
            )
            for admin_id in admin_ids
        ]
        self.db.add_all(notifications)
        await self.db.commit()

        for notification in notifications:
            await self.db.refresh(notification)
            await self._publish_notification(notification)

        logger.info("admins_notified", kind=kind, recipients=len(notifications))
        return len(notifications)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    async def list_for_user(
        self, user_id: str, *, limit: int = DEFAULT_LIST_LIMIT, unread_only: bool = False
    ) -> list[Notification]:
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        stmt = select(Notification).where(Notification.recipient_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def unread_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.recipient_id == user_id, Notification.is_read.is_(False))
        )
        return result.scalar() or 0

    async def mark_read(self, user_id: str, notification_id: str) -> None:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.recipient_id == user_id)
            .values(is_read=True, read_at=func.coalesce(Notification.read_at, func.now()))
        )
        if result.rowcount == 0:
            raise NotFoundError("Notification", notification_id)
        await self.db.commit()
        await self.publish_count(user_id)

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=func.now())
        )
        await self.db.commit()
        await self.publish_count(user_id)
        return result.rowcount
