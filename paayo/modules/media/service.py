"""Business logic for media module."""

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.exceptions import BadRequestError, InternalServerError, NotFoundError
from paayo.core.logging import get_logger
from paayo.core.pagination import paginate_query
from paayo.core.security import AuthenticatedUser, ensure_can_modify
from paayo.modules.media.models import Media
from paayo.modules.media.processing import ALLOWED_MIME_TYPES, process_image_async
from paayo.modules.media.storage import MediaStorage, StorageError, get_storage
from paayo.modules.notifications.models import NotificationKind
from paayo.modules.notifications.service import NotificationService

logger = get_logger(__name__)


class MediaService:
    def __init__(self, db: AsyncSession, storage: MediaStorage | None = None):
        self.db = db
        self.storage = storage or get_storage()

    async def upload(
        self,
        data: bytes,
        *,
        original_name: str,
        content_type: str | None,
        user: AuthenticatedUser,
    ) -> Media:
        """Transcode, store both files, then record the media row.

        Files written before a failed commit are removed again.
        """
        if not content_type:
            raise BadRequestError("Missing image content type")
        if content_type.lower() not in ALLOWED_MIME_TYPES:
            raise BadRequestError(f"Unsupported image type '{content_type}'")
        if not data:
            raise BadRequestError("Empty upload")

        processed = await process_image_async(data)
        stored: list[str] = []

        try:
            await self.storage.save(processed.filename, processed.main_bytes, processed.mime_type)
            stored.append(processed.filename)
            await self.storage.save(
                processed.thumbnail_filename, processed.thumbnail_bytes, processed.mime_type
            )
            stored.append(processed.thumbnail_filename)
        except StorageError as e:
            logger.error("media_store_failed", filename=processed.filename, error=str(e))
            await self._discard_files(stored)
            raise InternalServerError("Could not store uploaded image")

        media = Media(
            filename=processed.filename,
            original_name=original_name[:255],
            mime_type=processed.mime_type,
            size_bytes=processed.size_bytes,
            width=processed.width,
            height=processed.height,
            blur_hash=processed.blur_hash,
            thumbnail_filename=processed.thumbnail_filename,
            uploaded_by=user.id,
        )
        try:
            self.db.add(media)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("media_record_failed", filename=processed.filename, error=str(e))
            await self._discard_files(stored)
            raise
        await self.db.refresh(media)

        logger.info(
            "media_uploaded",
            media_id=media.id,
            filename=media.filename,
            size_bytes=media.size_bytes,
            width=media.width,
            height=media.height,
        )
        await self._notify_admins(media, user)
        return media

    async def _discard_files(self, filenames: list[str]) -> None:
        for filename in filenames:
            try:
                await self.storage.delete(filename)
            except StorageError as e:
                logger.warning("media_discard_failed", filename=filename, error=str(e))

    async def _notify_admins(self, media: Media, user: AuthenticatedUser) -> None:
        try:
            await NotificationService(self.db).notify_admins(
                kind=NotificationKind.MEDIA_UPLOADED.value,
                title=f"{user.name or user.email} uploaded an image",
                message=media.original_name,
                actor_id=user.id,
                target_type="media",
                target_id=media.id,
                action_url="/dashboard/media",
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning("media_notification_failed", media_id=media.id, error=str(e))

    async def list_media(self, *, page: int = 1, page_size: int = 20) -> tuple[list[Media], int]:
        return await paginate_query(
            self.db, select(Media), page=page, page_size=page_size,
            order_by=[Media.created_at.desc()],
        )

    async def get_by_id(self, media_id: str) -> Media:
        media = (
            await self.db.execute(select(Media).where(Media.id == media_id))
        ).scalar_one_or_none()
        if media is None:
            raise NotFoundError("Media", media_id)
        return media

    async def delete(self, media_id: str, user: AuthenticatedUser) -> None:
        media = await self.get_by_id(media_id)
        ensure_can_modify(user, media.uploaded_by)

        await self.db.execute(delete(Media).where(Media.id == media_id))
        await self.db.commit()
        logger.info("media_deleted", media_id=media_id, filename=media.filename)

        for filename in (media.filename, media.thumbnail_filename):
            if not filename:
                continue
            try:
                await self.storage.delete(filename)
            except StorageError as e:
                logger.warning("media_file_delete_failed", filename=filename, error=str(e))
