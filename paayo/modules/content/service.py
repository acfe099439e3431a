"""Business logic for content module."""

import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.base_service import STATUS_PUBLISHED, ContentService
from paayo.core.database import transactional
from paayo.core.exceptions import BadRequestError, ConflictError, NotFoundError, ValidationError
from paayo.core.logging import get_logger
from paayo.core.pagination import paginate_query
from paayo.core.partial_update import resolve_columns
from paayo.core.redis import CacheClient
from paayo.core.security import AuthenticatedUser, ensure_can_modify
from paayo.modules.content.models import (
    ContentLink,
    HeroContentType,
    HeroSlide,
    Hotel,
    HotelBranch,
    LinkSource,
    LinkTarget,
    PhotoFeature,
    PhotoImage,
    Post,
    Region,
    Video,
    VideoPlatform,
)
from paayo.modules.content.schemas import (
    ContentLinkCreate,
    ContentLinkItem,
    HeroSlideCreate,
    HeroSlideUpdate,
    HotelBranchCreate,
    HotelBranchUpdate,
    PhotoImageCreate,
    PhotoImageUpdate,
    ResolvedHeroSlide,
)

logger = get_logger(__name__)


def _search_condition(term: str | None, *columns: Any) -> Any | None:
    if not term:
        return None
    pattern = f"%{term.strip()}%"
    return or_(*(col.ilike(pattern) for col in columns))


# ============================================================================
# Region Service
# ============================================================================


class RegionService(ContentService[Region]):
    model = Region
    resource_name = "Region"
    title_field = "name"
    required_fields = ("name", "is_featured")
    nullable_fields = (
        "description",
        "cover_image",
        "map_data",
        "attraction_rank",
        "province",
        "district",
        "latitude",
        "longitude",
        "display_order",
    )

    async def list_regions(
        self,
        *,
        user: AuthenticatedUser | None,
        status: str | None = None,
        province: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Region], int]:
        filters = []
        if province:
            filters.append(Region.province == province)
        condition = _search_condition(search, Region.name, Region.district)
        if condition is not None:
            filters.append(condition)

        return await self.list_items(
            user=user, status=status, filters=filters, page=page, page_size=page_size
        )


# ============================================================================
# Post Service
# ============================================================================


class PostService(ContentService[Post]):
    """Articles, events, activities and attractions share the posts table."""

    model = Post
    resource_name = "Post"
    required_fields = ("title", "type", "is_featured")
    nullable_fields = (
        "short_description",
        "content",
        "cover_image",
        "region_id",
        "event_date",
        "event_end_date",
        "display_order",
    )

    async def list_posts(
        self,
        *,
        user: AuthenticatedUser | None,
        status: str | None = None,
        post_type: str | None = None,
        region_id: str | None = None,
        featured: bool | None = None,
        search: str | None = None,
        upcoming: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Post], int]:
        filters = []
        if post_type:
            filters.append(Post.type == post_type)
        if region_id:
            filters.append(Post.region_id == region_id)
        if featured is not None:
            filters.append(Post.is_featured.is_(featured))
        condition = _search_condition(search, Post.title, Post.short_description)
        if condition is not None:
            filters.append(condition)

        order_by = None
        if upcoming:
            filters.append(
                or_(
                    Post.event_date >= func.now(),
                    Post.event_end_date >= func.now(),
                )
            )
            order_by = [Post.event_date.asc().nulls_last(), Post.created_at.desc()]

        return await self.list_items(
            user=user,
            status=status,
            filters=filters,
            page=page,
            page_size=page_size,
            order_by=order_by,
        )


# ============================================================================
# Video Service
# ============================================================================


_VIDEO_ID_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    VideoPlatform.YOUTUBE.value: (
        re.compile(r"[?&]v=([A-Za-z0-9_-]{6,})"),
        re.compile(r"youtu\.be/([A-Za-z0-9_-]{6,})"),
        re.compile(r"/(?:embed|shorts|live)/([A-Za-z0-9_-]{6,})"),
    ),
    VideoPlatform.VIMEO.value: (re.compile(r"vimeo\.com/(?:video/)?(\d+)"),),
    VideoPlatform.TIKTOK.value: (re.compile(r"/video/(\d+)"),),
}


def extract_video_id(platform: str, url: str) -> str | None:
    """Platform video id parsed out of a share/watch URL."""
    for pattern in _VIDEO_ID_PATTERNS.get(platform, ()):
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


class VideoService(ContentService[Video]):
    model = Video
    resource_name = "Video"
    required_fields = ("title", "platform", "video_url", "is_featured")
    nullable_fields = (
        "description",
        "video_id",
        "thumbnail_url",
        "duration",
        "region_id",
        "display_order",
    )

    def _create_values(self, data: BaseModel) -> dict[str, Any]:
        values = data.model_dump()
        if not values.get("video_id"):
            values["video_id"] = extract_video_id(values["platform"], values["video_url"])
        return values

    async def list_videos(
        self,
        *,
        user: AuthenticatedUser | None,
        status: str | None = None,
        platform: str | None = None,
        region_id: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Video], int]:
        filters = []
        if platform:
            filters.append(Video.platform == platform)
        if region_id:
            filters.append(Video.region_id == region_id)
        return await self.list_items(
            user=user, status=status, filters=filters, page=page, page_size=page_size
        )


# ============================================================================
# Hotel Service (with branches)
# ============================================================================


class HotelService(ContentService[Hotel]):
    model = Hotel
    resource_name = "Hotel"
    title_field = "name"
    required_fields = ("name", "is_featured")
    nullable_fields = (
        "description",
        "email",
        "phone",
        "website",
        "star_rating",
        "price_range",
        "amenities",
        "cover_image",
        "gallery",
        "region_id",
        "display_order",
    )

    def _create_values(self, data: BaseModel) -> dict[str, Any]:
        return data.model_dump(exclude={"branches"})

    async def _after_create(self, entity: Hotel, data: BaseModel) -> None:
        branches = getattr(data, "branches", None) or []
        self._add_branch_rows(entity.id, branches)
        if branches:
            await self.db.flush()

    async def list_hotels(
        self,
        *,
        user: AuthenticatedUser | None,
        status: str | None = None,
        region_id: str | None = None,
        price_range: str | None = None,
        star_rating: int | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Hotel], int]:
        filters = []
        if region_id:
            filters.append(Hotel.region_id == region_id)
        if price_range:
            filters.append(Hotel.price_range == price_range)
        if star_rating is not None:
            filters.append(Hotel.star_rating == star_rating)
        return await self.list_items(
            user=user, status=status, filters=filters, page=page, page_size=page_size
        )

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def _add_branch_rows(self, hotel_id: str, branches: list[HotelBranchCreate]) -> None:
        """Add branch rows; only the first branch flagged as main keeps the flag."""
        seen_main = False
        for branch in branches:
            values = branch.model_dump()
            if values["is_main"]:
                values["is_main"] = not seen_main
                seen_main = True
            self.db.add(HotelBranch(hotel_id=hotel_id, **values))

    async def _clear_main_flag(self, hotel_id: str, keep_id: str | None = None) -> None:
        stmt = update(HotelBranch).where(
            HotelBranch.hotel_id == hotel_id, HotelBranch.is_main.is_(True)
        )
        if keep_id is not None:
            stmt = stmt.where(HotelBranch.id != keep_id)
        await self.db.execute(stmt.values(is_main=False))

    async def _get_branch(self, hotel_id: str, branch_id: str) -> HotelBranch:
        result = await self.db.execute(
            select(HotelBranch).where(
                HotelBranch.id == branch_id, HotelBranch.hotel_id == hotel_id
            )
        )
        branch = result.scalar_one_or_none()
        if branch is None:
            raise NotFoundError("Hotel branch", branch_id)
        return branch

    async def list_branches(self, hotel_id: str) -> list[HotelBranch]:
        await self.get_by_id(hotel_id)
        result = await self.db.execute(
            select(HotelBranch)
            .where(HotelBranch.hotel_id == hotel_id)
            .order_by(HotelBranch.is_main.desc(), HotelBranch.created_at)
        )
        return list(result.scalars().all())

    @transactional
    async def add_branch(
        self, hotel_id: str, data: HotelBranchCreate, user: AuthenticatedUser
    ) -> HotelBranch:
        hotel = await self.get_by_id(hotel_id)
        ensure_can_modify(user, hotel.author_id)

        if data.is_main:
            await self._clear_main_flag(hotel_id)

        branch = HotelBranch(hotel_id=hotel_id, **data.model_dump())
        self.db.add(branch)
        await self.db.flush()
        await self.db.refresh(branch)

        logger.info("hotel_branch_added", hotel_id=hotel_id, branch_id=branch.id)
        return branch

    @transactional
    async def update_branch(
        self,
        hotel_id: str,
        branch_id: str,
        data: HotelBranchUpdate,
        user: AuthenticatedUser,
    ) -> HotelBranch:
        hotel = await self.get_by_id(hotel_id)
        ensure_can_modify(user, hotel.author_id)
        branch = await self._get_branch(hotel_id, branch_id)

        values = resolve_columns(
            data,
            {
                "name": branch.name,
                "is_main": branch.is_main,
                "address": branch.address,
                "phone": branch.phone,
                "email": branch.email,
                "coordinates": branch.coordinates,
                "region_id": branch.region_id,
            },
            required=("name", "is_main"),
            nullable=("address", "phone", "email", "coordinates", "region_id"),
        )
        if values["is_main"] and not branch.is_main:
            await self._clear_main_flag(hotel_id, keep_id=branch_id)

        await self.db.execute(
            update(HotelBranch)
            .where(HotelBranch.id == branch_id)
            .values(**values, updated_at=func.now())
        )
        await self.db.refresh(branch)
        return branch

    @transactional
    async def remove_branch(
        self, hotel_id: str, branch_id: str, user: AuthenticatedUser
    ) -> None:
        hotel = await self.get_by_id(hotel_id)
        ensure_can_modify(user, hotel.author_id)

        result = await self.db.execute(
            delete(HotelBranch).where(
                HotelBranch.id == branch_id, HotelBranch.hotel_id == hotel_id
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Hotel branch", branch_id)
        logger.info("hotel_branch_removed", hotel_id=hotel_id, branch_id=branch_id)

    @transactional
    async def set_branches(
        self,
        hotel_id: str,
        branches: list[HotelBranchCreate],
        user: AuthenticatedUser,
    ) -> Hotel:
        """Replace every branch of a hotel in one transaction."""
        hotel = await self.get_by_id(hotel_id)
        ensure_can_modify(user, hotel.author_id)

        await self.db.execute(delete(HotelBranch).where(HotelBranch.hotel_id == hotel_id))
        self._add_branch_rows(hotel_id, branches)
        await self.db.flush()

        logger.info("hotel_branches_replaced", hotel_id=hotel_id, count=len(branches))
        return await self.get_by_id(hotel_id)


# ============================================================================
# Photo Feature Service (with images)
# ============================================================================


class PhotoFeatureService(ContentService[PhotoFeature]):
    model = PhotoFeature
    resource_name = "Photo feature"
    nullable_fields = ("description", "region_id", "display_order")

    def _create_values(self, data: BaseModel) -> dict[str, Any]:
        return data.model_dump(exclude={"images"})

    async def _after_create(self, entity: PhotoFeature, data: BaseModel) -> None:
        images = getattr(data, "images", None) or []
        self._add_image_rows(entity.id, images, uploaded_by=entity.author_id)
        if images:
            await self.db.flush()

    async def list_features(
        self,
        *,
        user: AuthenticatedUser | None,
        status: str | None = None,
        region_id: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[PhotoFeature], int]:
        filters = [PhotoFeature.region_id == region_id] if region_id else []
        return await self.list_items(
            user=user, status=status, filters=filters, page=page, page_size=page_size
        )

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _add_image_rows(
        self, feature_id: str, images: list[PhotoImageCreate], uploaded_by: str | None
    ) -> None:
        for index, image in enumerate(images):
            self.db.add(
                PhotoImage(
                    photo_feature_id=feature_id,
                    image_url=image.image_url,
                    caption=image.caption,
                    display_order=image.display_order if image.display_order is not None else index,
                    uploaded_by=uploaded_by,
                )
            )

    async def _get_image(self, feature_id: str, image_id: str) -> PhotoImage:
        result = await self.db.execute(
            select(PhotoImage).where(
                PhotoImage.id == image_id, PhotoImage.photo_feature_id == feature_id
            )
        )
        image = result.scalar_one_or_none()
        if image is None:
            raise NotFoundError("Photo image", image_id)
        return image

    async def list_images(self, feature_id: str) -> list[PhotoImage]:
        await self.get_by_id(feature_id)
        result = await self.db.execute(
            select(PhotoImage)
            .where(PhotoImage.photo_feature_id == feature_id)
            .order_by(PhotoImage.display_order, PhotoImage.created_at)
        )
        return list(result.scalars().all())

    @transactional
    async def add_image(
        self, feature_id: str, data: PhotoImageCreate, user: AuthenticatedUser
    ) -> PhotoImage:
        feature = await self.get_by_id(feature_id)
        ensure_can_modify(user, feature.author_id)

        display_order = data.display_order
        if display_order is None:
            result = await self.db.execute(
                select(func.coalesce(func.max(PhotoImage.display_order) + 1, 0)).where(
                    PhotoImage.photo_feature_id == feature_id
                )
            )
            display_order = result.scalar() or 0

        image = PhotoImage(
            photo_feature_id=feature_id,
            image_url=data.image_url,
            caption=data.caption,
            display_order=display_order,
            uploaded_by=user.id,
        )
        self.db.add(image)
        await self.db.flush()
        await self.db.refresh(image)

        logger.info("photo_image_added", feature_id=feature_id, image_id=image.id)
        return image

    @transactional
    async def update_image(
        self,
        feature_id: str,
        image_id: str,
        data: PhotoImageUpdate,
        user: AuthenticatedUser,
    ) -> PhotoImage:
        feature = await self.get_by_id(feature_id)
        ensure_can_modify(user, feature.author_id)
        image = await self._get_image(feature_id, image_id)

        values = resolve_columns(
            data,
            {
                "image_url": image.image_url,
                "display_order": image.display_order,
                "caption": image.caption,
            },
            required=("image_url", "display_order"),
            nullable=("caption",),
        )
        await self.db.execute(
            update(PhotoImage).where(PhotoImage.id == image_id).values(**values)
        )
        await self.db.refresh(image)
        return image

    @transactional
    async def remove_image(
        self, feature_id: str, image_id: str, user: AuthenticatedUser
    ) -> None:
        feature = await self.get_by_id(feature_id)
        ensure_can_modify(user, feature.author_id)

        result = await self.db.execute(
            delete(PhotoImage).where(
                PhotoImage.id == image_id, PhotoImage.photo_feature_id == feature_id
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Photo image", image_id)
        logger.info("photo_image_removed", feature_id=feature_id, image_id=image_id)

    @transactional
    async def reorder_images(
        self, feature_id: str, image_ids: list[str], user: AuthenticatedUser
    ) -> PhotoFeature:
        """Set ``display_order`` from the position of each id in ``image_ids``."""
        feature = await self.get_by_id(feature_id)
        ensure_can_modify(user, feature.author_id)

        if len(set(image_ids)) != len(image_ids):
            raise BadRequestError("Duplicate image ids in reorder request")

        existing = set(
            (
                await self.db.execute(
                    select(PhotoImage.id).where(PhotoImage.photo_feature_id == feature_id)
                )
            ).scalars().all()
        )
        unknown = [image_id for image_id in image_ids if image_id not in existing]
        if unknown:
            raise ValidationError(
                "Some images do not belong to this photo feature",
                errors=[{"field": "image_ids", "value": image_id} for image_id in unknown],
            )

        for position, image_id in enumerate(image_ids):
            await self.db.execute(
                update(PhotoImage)
                .where(PhotoImage.id == image_id)
                .values(display_order=position)
            )

        return await self.get_by_id(feature_id)

    @transactional
    async def set_images(
        self,
        feature_id: str,
        images: list[PhotoImageCreate],
        user: AuthenticatedUser,
    ) -> PhotoFeature:
        """Replace every image of a photo feature in one transaction."""
        feature = await self.get_by_id(feature_id)
        ensure_can_modify(user, feature.author_id)

        await self.db.execute(
            delete(PhotoImage).where(PhotoImage.photo_feature_id == feature_id)
        )
        self._add_image_rows(feature_id, images, uploaded_by=user.id)
        await self.db.flush()

        logger.info("photo_images_replaced", feature_id=feature_id, count=len(images))
        return await self.get_by_id(feature_id)


# ============================================================================
# Hero Slide Service
# ============================================================================


HERO_CACHE_KEY = "hero_slides:active"
HERO_CACHE_TTL = 60

_HERO_REQUIRED = ("content_type", "sort_order", "is_active")
_HERO_NULLABLE = (
    "content_id",
    "custom_title",
    "custom_description",
    "custom_image",
    "custom_link",
    "starts_at",
    "ends_at",
)


class HeroSlideService:
    """Homepage hero carousel.

    The public list only contains active slides inside their time window whose
    referenced content is live and published. It is cached in Redis and the
    cache is dropped on every mutation.
    """

    def __init__(self, db: AsyncSession, cache: CacheClient | None = None):
        self.db = db
        self.cache = cache or CacheClient(None)

    async def _invalidate(self) -> None:
        await self.cache.delete_pattern("hero_slides:*")

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    async def list_active(self) -> list[ResolvedHeroSlide]:
        cached = await self.cache.get_json(HERO_CACHE_KEY)
        if cached is not None:
            return [ResolvedHeroSlide.model_validate(item) for item in cached]

        now = datetime.now(UTC)
        result = await self.db.execute(
            select(HeroSlide)
            .where(
                HeroSlide.is_active.is_(True),
                or_(HeroSlide.starts_at.is_(None), HeroSlide.starts_at <= now),
                or_(HeroSlide.ends_at.is_(None), HeroSlide.ends_at > now),
            )
            .order_by(HeroSlide.sort_order, HeroSlide.created_at)
        )

        resolved: list[ResolvedHeroSlide] = []
        for slide in result.scalars().all():
            item = await self._resolve(slide)
            if item is not None:
                resolved.append(item)

        await self.cache.set_json(
            HERO_CACHE_KEY,
            [item.model_dump(mode="json") for item in resolved],
            ttl=HERO_CACHE_TTL,
        )
        return resolved

    async def _resolve(self, slide: HeroSlide) -> ResolvedHeroSlide | None:
        if slide.content_type == HeroContentType.CUSTOM.value:
            return ResolvedHeroSlide(
                id=slide.id,
                content_type=slide.content_type,
                title=slide.custom_title or "",
                description=slide.custom_description,
                image=slide.custom_image,
                link=slide.custom_link,
                sort_order=slide.sort_order,
            )

        model, path = {
            HeroContentType.POST.value: (Post, "posts"),
            HeroContentType.VIDEO.value: (Video, "videos"),
            HeroContentType.PHOTO.value: (PhotoFeature, "photos"),
        }[slide.content_type]

        entity = (
            await self.db.execute(
                select(model).where(
                    model.id == slide.content_id,
                    model.deleted_at.is_(None),
                    model.status == STATUS_PUBLISHED,
                )
            )
        ).scalar_one_or_none()
        if entity is None:
            logger.debug("hero_slide_target_missing", slide_id=slide.id)
            return None

        if isinstance(entity, Post):
            description, image = entity.short_description, entity.cover_image
        elif isinstance(entity, Video):
            description, image = entity.description, entity.thumbnail_url
        else:
            description = entity.description
            image = entity.images[0].image_url if entity.images else None

        return ResolvedHeroSlide(
            id=slide.id,
            content_type=slide.content_type,
            content_id=slide.content_id,
            title=slide.custom_title or entity.title,
            description=slide.custom_description or description,
            image=slide.custom_image or image,
            link=slide.custom_link or f"/{path}/{entity.slug}",
            sort_order=slide.sort_order,
        )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def list_all(
        self, *, is_active: bool | None = None, page: int = 1, page_size: int = 50
    ) -> tuple[list[HeroSlide], int]:
        stmt = select(HeroSlide)
        if is_active is not None:
            stmt = stmt.where(HeroSlide.is_active.is_(is_active))
        return await paginate_query(
            self.db,
            stmt,
            page=page,
            page_size=page_size,
            order_by=[HeroSlide.sort_order, HeroSlide.created_at],
        )

    async def counts(self) -> dict[str, int]:
        row = (
            await self.db.execute(
                select(
                    func.count(HeroSlide.id),
                    func.count(HeroSlide.id).filter(HeroSlide.is_active.is_(True)),
                )
            )
        ).one()
        total, active = row[0] or 0, row[1] or 0
        return {"total": total, "active": active, "inactive": total - active}

    async def get_by_id(self, slide_id: str) -> HeroSlide:
        result = await self.db.execute(
            select(HeroSlide)
            .where(HeroSlide.id == slide_id)
            .execution_options(populate_existing=True)
        )
        slide = result.scalar_one_or_none()
        if slide is None:
            raise NotFoundError("Hero slide", slide_id)
        return slide

    async def create(self, data: HeroSlideCreate) -> HeroSlide:
        slide = HeroSlide(**data.model_dump())
        self.db.add(slide)
        await self.db.commit()
        await self._invalidate()

        logger.info("hero_slide_created", slide_id=slide.id, content_type=slide.content_type)
        return await self.get_by_id(slide.id)

    async def update(self, slide_id: str, data: HeroSlideUpdate) -> HeroSlide:
        slide = await self.get_by_id(slide_id)
        current = {name: getattr(slide, name) for name in _HERO_REQUIRED + _HERO_NULLABLE}
        values = resolve_columns(
            data, current, required=_HERO_REQUIRED, nullable=_HERO_NULLABLE
        )

        if values["content_type"] != HeroContentType.CUSTOM.value and not values["content_id"]:
            raise ValidationError("content_id is required unless content_type is 'custom'")
        if values["starts_at"] and values["ends_at"] and values["ends_at"] <= values["starts_at"]:
            raise ValidationError("ends_at must be after starts_at")

        await self.db.execute(
            update(HeroSlide)
            .where(HeroSlide.id == slide_id)
            .values(**values, updated_at=func.now())
        )
        await self.db.commit()
        await self._invalidate()
        return await self.get_by_id(slide_id)

    async def delete(self, slide_id: str) -> None:
        result = await self.db.execute(delete(HeroSlide).where(HeroSlide.id == slide_id))
        if result.rowcount == 0:
            raise NotFoundError("Hero slide", slide_id)
        await self.db.commit()
        await self._invalidate()
        logger.info("hero_slide_deleted", slide_id=slide_id)

    async def toggle(self, slide_id: str) -> HeroSlide:
        slide = await self.get_by_id(slide_id)
        await self.db.execute(
            update(HeroSlide)
            .where(HeroSlide.id == slide_id)
            .values(is_active=not slide.is_active, updated_at=func.now())
        )
        await self.db.commit()
        await self._invalidate()
        return await self.get_by_id(slide_id)

    async def reorder(self, slide_ids: list[str]) -> list[HeroSlide]:
        if len(set(slide_ids)) != len(slide_ids):
            raise BadRequestError("Duplicate slide ids in reorder request")

        for position, slide_id in enumerate(slide_ids):
            result = await self.db.execute(
                update(HeroSlide)
                .where(HeroSlide.id == slide_id)
                .values(sort_order=position, updated_at=func.now())
            )
            if result.rowcount == 0:
                await self.db.rollback()
                raise NotFoundError("Hero slide", slide_id)

        await self.db.commit()
        await self._invalidate()

        slides, _ = await self.list_all(page=1, page_size=100)
        return slides


# ============================================================================
# Content links
# ============================================================================


def _parse_link_kind(enum_cls, value: str, field: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(kind.value for kind in enum_cls)
        raise ValidationError(
            f"Invalid {field} '{value}'. Must be one of: {allowed}",
            errors=[{"field": field, "value": value}],
        )


def _reject_self_link(source: LinkSource, source_id: str, target: LinkTarget, target_id: str) -> None:
    # only a same-kind pair can name the same row
    if source.value == target.value and source_id == target_id:
        raise ValidationError("Cannot link a content item to itself")


class ContentLinkService:
    """Ordered related-content links from posts and regions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_source(self, source_type: str, source_id: str) -> list[ContentLink]:
        source = _parse_link_kind(LinkSource, source_type, "source_type")
        result = await self.db.execute(
            select(ContentLink)
            .where(ContentLink.source_type == source.value, ContentLink.source_id == source_id)
            .order_by(ContentLink.display_order, ContentLink.created_at)
        )
        return list(result.scalars().all())

    async def list_for_target(self, target_type: str, target_id: str) -> list[ContentLink]:
        target = _parse_link_kind(LinkTarget, target_type, "target_type")
        result = await self.db.execute(
            select(ContentLink)
            .where(ContentLink.target_type == target.value, ContentLink.target_id == target_id)
            .order_by(ContentLink.display_order, ContentLink.created_at)
        )
        return list(result.scalars().all())

    async def count_for_source(self, source_type: str, source_id: str) -> int:
        source = _parse_link_kind(LinkSource, source_type, "source_type")
        result = await self.db.execute(
            select(func.count())
            .select_from(ContentLink)
            .where(ContentLink.source_type == source.value, ContentLink.source_id == source_id)
        )
        return result.scalar() or 0

    async def get_by_id(self, link_id: str) -> ContentLink:
        result = await self.db.execute(
            select(ContentLink)
            .where(ContentLink.id == link_id)
            .execution_options(populate_existing=True)
        )
        link = result.scalar_one_or_none()
        if link is None:
            raise NotFoundError("Content link", link_id)
        return link

    async def create(self, data: ContentLinkCreate) -> ContentLink:
        source = _parse_link_kind(LinkSource, data.source_type, "source_type")
        target = _parse_link_kind(LinkTarget, data.target_type, "target_type")
        _reject_self_link(source, data.source_id, target, data.target_id)

        link = ContentLink(
            source_type=source.value,
            source_id=data.source_id,
            target_type=target.value,
            target_id=data.target_id,
            display_order=data.display_order or 0,
        )
        self.db.add(link)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("That content is already linked")

        logger.info(
            "content_link_created",
            link_id=link.id,
            source=f"{source.value}:{data.source_id}",
            target=f"{target.value}:{data.target_id}",
        )
        return await self.get_by_id(link.id)

    async def update_order(self, link_id: str, display_order: int) -> ContentLink:
        result = await self.db.execute(
            update(ContentLink)
            .where(ContentLink.id == link_id)
            .values(display_order=display_order)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError("Content link", link_id)
        await self.db.commit()
        return await self.get_by_id(link_id)

    @transactional
    async def delete(self, link_id: str) -> None:
        result = await self.db.execute(delete(ContentLink).where(ContentLink.id == link_id))
        if result.rowcount == 0:
            raise NotFoundError("Content link", link_id)

    @transactional
    async def set_links(
        self, source_type: str, source_id: str, items: list[ContentLinkItem]
    ) -> list[ContentLink]:
        """Replace every link of the source in one transaction.

        Items without ``display_order`` take their list position.
        """
        source = _parse_link_kind(LinkSource, source_type, "source_type")

        rows: list[dict[str, Any]] = []
        seen: set[tuple[str, str]] = set()
        for index, item in enumerate(items):
            target = _parse_link_kind(LinkTarget, item.target_type, f"links[{index}].target_type")
            _reject_self_link(source, source_id, target, item.target_id)
            if (target.value, item.target_id) in seen:
                raise ValidationError(
                    f"Duplicate link to {target.value} '{item.target_id}'",
                    errors=[{"field": f"links[{index}]", "value": item.target_id}],
                )
            seen.add((target.value, item.target_id))
            rows.append(
                {
                    "source_type": source.value,
                    "source_id": source_id,
                    "target_type": target.value,
                    "target_id": item.target_id,
                    "display_order": index if item.display_order is None else item.display_order,
                }
            )

        await self.db.execute(
            delete(ContentLink).where(
                ContentLink.source_type == source.value, ContentLink.source_id == source_id
            )
        )
        if rows:
            self.db.add_all([ContentLink(**row) for row in rows])
            await self.db.flush()

        logger.info("content_links_set", source=f"{source.value}:{source_id}", count=len(rows))
        return await self.list_for_source(source.value, source_id)

    @transactional
    async def delete_all_for_source(self, source_type: str, source_id: str) -> int:
        source = _parse_link_kind(LinkSource, source_type, "source_type")
        result = await self.db.execute(
            delete(ContentLink).where(
                ContentLink.source_type == source.value, ContentLink.source_id == source_id
            )
        )
        return result.rowcount
