"""Business logic for tags module."""

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.database import transactional
from paayo.core.exceptions import BadRequestError, ConflictError, NotFoundError, ValidationError
from paayo.core.logging import get_logger
from paayo.core.pagination import paginate_query
from paayo.core.slug import simple_slug
from paayo.core.targets import TargetKind
from paayo.modules.tags.models import ContentTag, Tag
from paayo.modules.tags.schemas import TagCreate, TagUpdate

logger = get_logger(__name__)


def parse_target_kind(value: str) -> TargetKind:
    kind = TargetKind.parse(value)
    if kind is None:
        raise BadRequestError(f"Unknown target type '{value}'")
    return kind


class TagService:
    """Tag catalogue and tag assignment to content rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    async def list_tags(
        self,
        *,
        search: str | None = None,
        tag_type: str | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[Tag], int]:
        stmt = select(Tag)
        if search:
            stmt = stmt.where(Tag.name.ilike(f"%{search.strip()}%"))
        if tag_type:
            stmt = stmt.where(Tag.tag_type == tag_type)
        return await paginate_query(
            self.db, stmt, page=page, page_size=page_size, order_by=[Tag.name]
        )

    async def usage_counts(self, tag_ids: list[str]) -> dict[str, int]:
        if not tag_ids:
            return {}
        result = await self.db.execute(
            select(ContentTag.tag_id, func.count())
            .where(ContentTag.tag_id.in_(tag_ids))
            .group_by(ContentTag.tag_id)
        )
        return {tag_id: count for tag_id, count in result.all()}

    async def get_by_slug(self, slug: str) -> Tag:
        tag = (await self.db.execute(select(Tag).where(Tag.slug == slug))).scalar_one_or_none()
        if tag is None:
            raise NotFoundError("Tag", slug)
        return tag

    async def get_by_id(self, tag_id: str) -> Tag:
        result = await self.db.execute(
            select(Tag).where(Tag.id == tag_id).execution_options(populate_existing=True)
        )
        tag = result.scalar_one_or_none()
        if tag is None:
            raise NotFoundError("Tag", tag_id)
        return tag

    def _slug_for(self, name: str) -> str:
        slug = simple_slug(name)
        if not slug:
            raise ValidationError("Tag name must contain at least one letter or digit")
        return slug

    async def create(self, data: TagCreate) -> Tag:
        tag = Tag(name=data.name.strip(), slug=self._slug_for(data.name), tag_type=data.tag_type)
        self.db.add(tag)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Tag '{data.name}' already exists")

        logger.info("tag_created", tag_id=tag.id, slug=tag.slug)
        return await self.get_by_id(tag.id)

    async def update(self, tag_id: str, data: TagUpdate) -> Tag:
        tag = await self.get_by_id(tag_id)
        values: dict[str, str] = {}
        if data.name is not None and data.name.strip() != tag.name:
            values["name"] = data.name.strip()
            values["slug"] = self._slug_for(data.name)
        if data.tag_type is not None:
            values["tag_type"] = data.tag_type

        if values:
            try:
                await self.db.execute(
                    update(Tag).where(Tag.id == tag_id).values(**values, updated_at=func.now())
                )
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError(f"Tag '{values.get('name')}' already exists")
        return await self.get_by_id(tag_id)

    @transactional
    async def delete(self, tag_id: str) -> None:
        result = await self.db.execute(delete(Tag).where(Tag.id == tag_id))
        if result.rowcount == 0:
            raise NotFoundError("Tag", tag_id)
        logger.info("tag_deleted", tag_id=tag_id)

    # ------------------------------------------------------------------
    # Content association
    # ------------------------------------------------------------------

    async def get_content_tags(self, target_type: str, target_id: str) -> list[Tag]:
        kind = parse_target_kind(target_type)
        result = await self.db.execute(
            select(Tag)
            .join(ContentTag, ContentTag.tag_id == Tag.id)
            .where(ContentTag.target_type == kind.value, ContentTag.target_id == target_id)
            .order_by(Tag.name)
        )
        return list(result.scalars().all())

    async def _replace_content_tags(
        self, kind: TargetKind, target_id: str, tag_ids: list[str]
    ) -> None:
        await self.db.execute(
            delete(ContentTag).where(
                ContentTag.target_type == kind.value, ContentTag.target_id == target_id
            )
        )
        if tag_ids:
            await self.db.execute(
                insert(ContentTag)
                .values(
                    [
                        {"tag_id": tag_id, "target_type": kind.value, "target_id": target_id}
                        for tag_id in tag_ids
                    ]
                )
                .on_conflict_do_nothing(
                    index_elements=["tag_id", "target_type", "target_id"]
                )
            )

    @transactional
    async def set_content_tags(
        self, target_type: str, target_id: str, tag_ids: list[str]
    ) -> list[Tag]:
        kind = parse_target_kind(target_type)
        unique_ids = list(dict.fromkeys(tag_ids))

        if unique_ids:
            found = set(
                (await self.db.execute(select(Tag.id).where(Tag.id.in_(unique_ids))))
                .scalars()
                .all()
            )
            missing = [tag_id for tag_id in unique_ids if tag_id not in found]
            if missing:
                raise ValidationError(
                    "Unknown tag ids",
                    errors=[{"field": "tag_ids", "value": tag_id} for tag_id in missing],
                )

        await self._replace_content_tags(kind, target_id, unique_ids)
        return await self.get_content_tags(kind.value, target_id)

    @transactional
    async def set_content_tags_by_name(
        self, target_type: str, target_id: str, names: list[str], tag_type: str
    ) -> list[Tag]:
        """Assign tags by name, creating any that do not exist yet."""
        kind = parse_target_kind(target_type)

        by_slug: dict[str, str] = {}
        for name in names:
            cleaned = name.strip()
            if cleaned:
                by_slug.setdefault(self._slug_for(cleaned), cleaned)

        if by_slug:
            await self.db.execute(
                insert(Tag)
                .values(
                    [
                        {"name": name, "slug": slug, "tag_type": tag_type}
                        for slug, name in by_slug.items()
                    ]
                )
                .on_conflict_do_nothing(index_elements=["slug"])
            )
            tag_ids = list(
                (await self.db.execute(select(Tag.id).where(Tag.slug.in_(list(by_slug)))))
                .scalars()
                .all()
            )
        else:
            tag_ids = []

        await self._replace_content_tags(kind, target_id, tag_ids)
        return await self.get_content_tags(kind.value, target_id)
