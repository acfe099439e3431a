"""Engagement targets: which content rows can be viewed, liked or commented on.

``TargetKind`` is the closed set of kinds. ``target_exists`` answers whether a
live, published row exists for a (kind, id) pair. The ``sync_*`` helpers
rewrite the denormalised counters from ``count(*)`` over the event tables,
so concurrent syncs always converge on the true value.
"""

from enum import Enum

from sqlalchemy import exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import column, table

from paayo.core.logging import get_logger

logger = get_logger(__name__)


class TargetKind(str, Enum):
    POST = "post"
    VIDEO = "video"
    PHOTO = "photo"
    HOTEL = "hotel"

    @property
    def table_name(self) -> str:
        return _TABLE_NAMES[self]

    @property
    def has_like_count(self) -> bool:
        return self in LIKEABLE_KINDS

    @classmethod
    def parse(cls, value: "str | TargetKind") -> "TargetKind | None":
        if isinstance(value, TargetKind):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


_TABLE_NAMES = {
    TargetKind.POST: "posts",
    TargetKind.VIDEO: "videos",
    TargetKind.PHOTO: "photo_features",
    TargetKind.HOTEL: "hotels",
}

LIKEABLE_KINDS = frozenset({TargetKind.POST, TargetKind.VIDEO, TargetKind.PHOTO})
VIEWABLE_KINDS = frozenset(TargetKind)
COMMENTABLE_KINDS = frozenset(TargetKind)


def _content_table(kind: TargetKind):
    columns = [
        column("id"),
        column("deleted_at"),
        column("status"),
        column("view_count"),
    ]
    if kind.has_like_count:
        columns.append(column("like_count"))
    return table(kind.table_name, *columns)


_content_views = table("content_views", column("target_type"), column("target_id"))
_content_likes = table("content_likes", column("target_type"), column("target_id"))


async def target_exists(db: AsyncSession, kind: "TargetKind | str", target_id: str) -> bool:
    """True iff a non-deleted, published row of this kind has this id."""
    target = TargetKind.parse(kind)
    if target is None:
        logger.warning("unknown_target_kind", target_type=str(kind))
        return False

    content = _content_table(target)
    stmt = select(
        exists().where(
            content.c.id == target_id,
            content.c.deleted_at.is_(None),
            content.c.status == "published",
        )
    )
    result = await db.execute(stmt)
    return bool(result.scalar())


async def sync_view_count(db: AsyncSession, kind: TargetKind, target_id: str) -> int:
    """Rewrite ``view_count`` from the raw view rows and return it."""
    count_stmt = (
        select(func.count())
        .select_from(_content_views)
        .where(
            _content_views.c.target_type == kind.value,
            _content_views.c.target_id == target_id,
        )
    )
    count = (await db.execute(count_stmt)).scalar() or 0

    content = _content_table(kind)
    await db.execute(
        update(content).where(content.c.id == target_id).values(view_count=count)
    )
    return count


async def sync_like_count(db: AsyncSession, kind: TargetKind, target_id: str) -> int:
    """Rewrite ``like_count`` from the like rows and return it.

    Kinds without a ``like_count`` column only get the count back.
    """
    count_stmt = (
        select(func.count())
        .select_from(_content_likes)
        .where(
            _content_likes.c.target_type == kind.value,
            _content_likes.c.target_id == target_id,
        )
    )
    count = (await db.execute(count_stmt)).scalar() or 0

    if kind.has_like_count:
        content = _content_table(kind)
        await db.execute(
            update(content).where(content.c.id == target_id).values(like_count=count)
        )
    return count
