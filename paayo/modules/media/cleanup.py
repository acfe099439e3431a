"""Orphan media reclamation.

A media row is reachable while its filename appears as a substring in any of
the columns below (soft-deleted rows do not count):

- posts.cover_image, posts.content
- hotels.cover_image, hotels.gallery, hotels.description
- hero_slides.custom_image
- photo_images.image_url
- regions.cover_image

Unreachable rows older than the grace period are orphans. A cleanup pass
deletes orphan rows in batches, then their main and thumbnail files.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import Text, cast, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.database import get_db_context
from paayo.core.logging import get_logger
from paayo.modules.content.models import Hotel, HeroSlide, PhotoImage, Post, Region
from paayo.modules.media.models import Media
from paayo.modules.media.schemas import CleanupReport
from paayo.modules.media.storage import MediaStorage, StorageError, get_storage

logger = get_logger(__name__)

DELETE_BATCH_SIZE = 100


@dataclass(frozen=True)
class Orphan:
    id: str
    filename: str
    thumbnail_filename: str | None


def _is_referenced():
    pattern = func.concat("%", Media.filename, "%")
    return or_(
        exists().where(
            Post.deleted_at.is_(None),
            or_(Post.cover_image.like(pattern), cast(Post.content, Text).like(pattern)),
        ),
        exists().where(
            Hotel.deleted_at.is_(None),
            or_(
                Hotel.cover_image.like(pattern),
                cast(Hotel.gallery, Text).like(pattern),
                Hotel.description.like(pattern),
            ),
        ),
        exists().where(HeroSlide.custom_image.like(pattern)),
        exists().where(PhotoImage.image_url.like(pattern)),
        exists().where(Region.deleted_at.is_(None), Region.cover_image.like(pattern)),
    )


async def find_orphans(db: AsyncSession, grace_hours: int) -> list[Orphan]:
    cutoff = datetime.now(UTC) - timedelta(hours=grace_hours)
    result = await db.execute(
        select(Media.id, Media.filename, Media.thumbnail_filename)
        .where(Media.created_at < cutoff, ~_is_referenced())
        .order_by(Media.created_at)
    )
    return [Orphan(*row) for row in result.all()]


async def cleanup_orphans(
    db: AsyncSession,
    *,
    grace_hours: int,
    dry_run: bool = False,
    storage: MediaStorage | None = None,
) -> CleanupReport:
    orphans = await find_orphans(db, grace_hours)
    report = CleanupReport(
        dry_run=dry_run,
        grace_hours=grace_hours,
        orphans_found=len(orphans),
        orphans_deleted=0,
        files_deleted=0,
    )
    if dry_run or not orphans:
        logger.info("media_cleanup_completed", **report.model_dump())
        return report

    deleted = 0
    for start in range(0, len(orphans), DELETE_BATCH_SIZE):
        batch = orphans[start:start + DELETE_BATCH_SIZE]
        result = await db.execute(delete(Media).where(Media.id.in_([o.id for o in batch])))
        deleted += result.rowcount
    await db.commit()
    report.orphans_deleted = deleted

    storage = storage or get_storage()
    for orphan in orphans:
        for filename in (orphan.filename, orphan.thumbnail_filename):
            if not filename:
                continue
            try:
                await storage.delete(filename)
                report.files_deleted += 1
            except StorageError as e:
                logger.warning("media_cleanup_file_failed", filename=filename, error=str(e))
                report.file_errors.append(f"{filename}: {e}")

    logger.info(
        "media_cleanup_completed",
        orphans_found=report.orphans_found,
        orphans_deleted=report.orphans_deleted,
        files_deleted=report.files_deleted,
        file_errors=len(report.file_errors),
    )
    return report


async def run_media_cleanup_loop(interval_hours: float, grace_hours: int) -> None:
    """Reclaim orphans every ``interval_hours``, forever. Cancel to stop.

    The first pass runs one full interval after startup.
    """
    while True:
        await asyncio.sleep(interval_hours * 3600)
        try:
            async with get_db_context() as db:
                await cleanup_orphans(db, grace_hours=grace_hours)
        except Exception as e:
            logger.exception("media_cleanup_failed", error=str(e))
