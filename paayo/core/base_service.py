"""Shared lifecycle for slugged, publishable, soft-deletable content.

Every content kind (posts, regions, videos, hotels, photo features) gets the
same rules from ``ContentService``:

- Visibility: admins and editors may pass any status filter; everyone else
  only ever sees published rows. A hidden draft is reported as not found.
- Create: random-suffixed slug, inserted as draft; unique violations are
  retried with a fresh suffix up to ``SLUG_ATTEMPTS`` times.
- Update: three-state fields resolved in Python, then one UPDATE writing
  every writable column. A title change re-derives the slug.
- Status: publishing stamps ``published_at`` once; unpublishing keeps it.
- Delete: soft delete, restore and hard delete.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from paayo.core.base_model import Base
from paayo.core.database import transactional
from paayo.core.exceptions import NotFoundError, SlugConflictError, is_unique_violation
from paayo.core.logging import get_logger
from paayo.core.pagination import paginate_query
from paayo.core.partial_update import changed_columns, resolve_columns
from paayo.core.security import AuthenticatedUser, ensure_can_modify
from paayo.core.slug import SLUG_ATTEMPTS, generate_slug

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"


def effective_status(user: AuthenticatedUser | None, requested: str | None) -> str | None:
    """Status filter actually applied for this caller."""
    if user is not None and user.is_privileged:
        return requested
    return STATUS_PUBLISHED


class ContentService(Generic[ModelT]):
    """Base service for content kinds.

    Usage:
        class VideoService(ContentService[Video]):
            model = Video
            resource_name = "Video"
            nullable_fields = ("description", "thumbnail_url", ...)
    """

    model: type[ModelT]
    resource_name: str = "Content"
    title_field: str = "title"
    # Writable columns that cannot be cleared (explicit null keeps them).
    required_fields: tuple[str, ...] = ("title", "is_featured")
    # Writable columns where explicit null clears the value.
    nullable_fields: tuple[str, ...] = ()

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _live(self) -> Select:
        return select(self.model).where(self.model.deleted_at.is_(None))

    def featured_order(self) -> list[Any]:
        """Featured first; inside featured, explicit display order before
        unordered rows; then newest published."""
        model = self.model
        return [
            model.is_featured.desc(),
            model.display_order.is_(None),
            model.display_order.asc(),
            model.published_at.desc().nulls_last(),
            model.created_at.desc(),
        ]

    async def list_items(
        self,
        *,
        user: AuthenticatedUser | None,
        status: str | None = None,
        filters: list[Any] | None = None,
        page: int = 1,
        page_size: int = 20,
        order_by: list[Any] | None = None,
    ) -> tuple[list[ModelT], int]:
        stmt = self._live()
        applied_status = effective_status(user, status)
        if applied_status is not None:
            stmt = stmt.where(self.model.status == applied_status)
        for condition in filters or []:
            stmt = stmt.where(condition)

        return await paginate_query(
            self.db,
            stmt,
            page=page,
            page_size=page_size,
            order_by=order_by or self.featured_order(),
        )

    async def get_by_slug(self, slug: str, user: AuthenticatedUser | None) -> ModelT:
        stmt = self._live().where(self.model.slug == slug)
        applied_status = effective_status(user, None)
        if applied_status is not None:
            stmt = stmt.where(self.model.status == applied_status)

        entity = (await self.db.execute(stmt)).scalar_one_or_none()
        if entity is None:
            raise NotFoundError(self.resource_name, slug)
        return entity

    async def get_by_id(self, entity_id: str, *, include_deleted: bool = False) -> ModelT:
        stmt = select(self.model).where(self.model.id == entity_id)
        if not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        stmt = stmt.execution_options(populate_existing=True)

        entity = (await self.db.execute(stmt)).scalar_one_or_none()
        if entity is None:
            raise NotFoundError(self.resource_name, entity_id)
        return entity

    async def list_deleted(self, page: int = 1, page_size: int = 20) -> tuple[list[ModelT], int]:
        stmt = select(self.model).where(self.model.deleted_at.is_not(None))
        return await paginate_query(
            self.db,
            stmt,
            page=page,
            page_size=page_size,
            order_by=[self.model.deleted_at.desc()],
        )

    async def slug_taken(self, slug: str, exclude_id: str | None = None) -> bool:
        conditions = [self.model.slug == slug, self.model.deleted_at.is_(None)]
        if exclude_id is not None:
            conditions.append(self.model.id != exclude_id)
        result = await self.db.execute(select(exists().where(*conditions)))
        return bool(result.scalar())

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, data: BaseModel, author_id: str) -> ModelT:
        """Insert as draft with a fresh slug, retrying on slug collisions."""
        values = self._create_values(data)
        title = values[self.title_field]

        for attempt in range(1, SLUG_ATTEMPTS + 1):
            entity = self.model(
                **values,
                slug=generate_slug(title),
                author_id=author_id,
                status=STATUS_DRAFT,
            )
            self.db.add(entity)
            try:
                await self.db.flush()
            except IntegrityError as e:
                await self.db.rollback()
                if not is_unique_violation(e):
                    raise
                logger.info(
                    "slug_collision_retry",
                    resource=self.resource_name,
                    attempt=attempt,
                )
                continue

            await self._after_create(entity, data)
            await self.db.commit()
            logger.info(
                "content_created",
                resource=self.resource_name,
                id=entity.id,
                slug=entity.slug,
                author_id=author_id,
            )
            return await self.get_by_id(entity.id)

        raise SlugConflictError(self.resource_name)

    def _create_values(self, data: BaseModel) -> dict[str, Any]:
        return data.model_dump()

    async def _after_create(self, entity: ModelT, data: BaseModel) -> None:
        """Hook for child rows inserted in the same transaction."""

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update(self, entity_id: str, data: BaseModel, user: AuthenticatedUser) -> ModelT:
        entity = await self.get_by_id(entity_id)
        ensure_can_modify(user, entity.author_id)

        writable = self.required_fields + self.nullable_fields
        current = {name: getattr(entity, name) for name in writable}
        values = resolve_columns(
            data,
            current,
            nullable=self.nullable_fields,
            required=self.required_fields,
        )

        if values[self.title_field] != current[self.title_field]:
            values["slug"] = await self._unique_slug(values[self.title_field], entity_id)

        await self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id, self.model.deleted_at.is_(None))
            .values(**values, updated_at=func.now())
        )
        await self.db.commit()

        logger.info(
            "content_updated",
            resource=self.resource_name,
            id=entity_id,
            changed=sorted(changed_columns(values, current)),
        )
        return await self.get_by_id(entity_id)

    async def _unique_slug(self, title: str, exclude_id: str) -> str:
        for _ in range(SLUG_ATTEMPTS):
            candidate = generate_slug(title)
            if not await self.slug_taken(candidate, exclude_id=exclude_id):
                return candidate
        raise SlugConflictError(self.resource_name)

    # ------------------------------------------------------------------
    # Status and ordering
    # ------------------------------------------------------------------

    @transactional
    async def update_status(
        self, entity_id: str, new_status: str, user: AuthenticatedUser
    ) -> ModelT:
        entity = await self.get_by_id(entity_id)
        ensure_can_modify(user, entity.author_id)

        values: dict[str, Any] = {"status": new_status, "updated_at": func.now()}
        if new_status == STATUS_PUBLISHED:
            values["published_at"] = func.coalesce(self.model.published_at, func.now())

        await self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id, self.model.deleted_at.is_(None))
            .values(**values)
        )
        logger.info(
            "content_status_changed",
            resource=self.resource_name,
            id=entity_id,
            status=new_status,
        )
        return await self.get_by_id(entity_id)

    @transactional
    async def update_display_order(
        self, entity_id: str, display_order: int | None, user: AuthenticatedUser
    ) -> ModelT:
        entity = await self.get_by_id(entity_id)
        ensure_can_modify(user, entity.author_id)

        await self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id)
            .values(display_order=display_order, updated_at=func.now())
        )
        return await self.get_by_id(entity_id)

    # ------------------------------------------------------------------
    # Delete / restore
    # ------------------------------------------------------------------

    @transactional
    async def soft_delete(self, entity_id: str, user: AuthenticatedUser) -> None:
        entity = await self.get_by_id(entity_id)
        ensure_can_modify(user, entity.author_id)

        await self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id, self.model.deleted_at.is_(None))
            .values(deleted_at=func.now())
        )
        logger.info("content_soft_deleted", resource=self.resource_name, id=entity_id)

    @transactional
    async def restore(self, entity_id: str) -> ModelT:
        result = await self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id, self.model.deleted_at.is_not(None))
            .values(deleted_at=None)
        )
        if result.rowcount == 0:
            raise NotFoundError(self.resource_name, entity_id)

        logger.info("content_restored", resource=self.resource_name, id=entity_id)
        return await self.get_by_id(entity_id)

    @transactional
    async def hard_delete(self, entity_id: str) -> None:
        """Remove the row; child rows go with it through FK cascades."""
        result = await self.db.execute(delete(self.model).where(self.model.id == entity_id))
        if result.rowcount == 0:
            raise NotFoundError(self.resource_name, entity_id)

        logger.info("content_hard_deleted", resource=self.resource_name, id=entity_id)
