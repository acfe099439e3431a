"""Content module database models."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paayo.core.base_model import (
    Base,
    CreatedAtMixin,
    EngagementCountersMixin,
    FeaturedMixin,
    PublishableMixin,
    SlugMixin,
    SoftDeleteMixin,
    SortOrderMixin,
    StringIDMixin,
    TimestampMixin,
    ViewCountMixin,
)


class ContentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class PostType(str, Enum):
    ARTICLE = "article"
    EVENT = "event"
    ACTIVITY = "activity"
    EXPLORE = "explore"  # shown publicly as "attractions"


class VideoPlatform(str, Enum):
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    TIKTOK = "tiktok"


class PriceRange(str, Enum):
    BUDGET = "budget"
    MID = "mid"
    LUXURY = "luxury"


class HeroContentType(str, Enum):
    POST = "post"
    VIDEO = "video"
    PHOTO = "photo"
    CUSTOM = "custom"


def _live_slug_index(table: str) -> Index:
    """Slug unique among non-deleted rows only."""
    return Index(
        f"uq_{table}_slug_live",
        "slug",
        unique=True,
        postgresql_where=text("deleted_at IS NULL"),
    )


def _status_check(table: str) -> CheckConstraint:
    return CheckConstraint(
        "status IN ('draft', 'published')",
        name=f"ck_{table}_status",
    )


class AuthoredMixin:
    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user.id"),
        nullable=False,
        index=True,
    )


# ============================================================================
# Regions
# ============================================================================


class Region(
    Base, StringIDMixin, TimestampMixin, SoftDeleteMixin, SlugMixin,
    PublishableMixin, FeaturedMixin, AuthoredMixin,
):
    __tablename__ = "regions"
    __table_args__ = (
        _live_slug_index("regions"),
        _status_check("regions"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    map_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    attraction_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    province: Mapped[str | None] = mapped_column(String(255), nullable=True)
    district: Mapped[str | None] = mapped_column(String(255), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<Region {self.slug}>"


# ============================================================================
# Posts (article, event, activity, explore)
# ============================================================================


class Post(
    Base, StringIDMixin, TimestampMixin, SoftDeleteMixin, SlugMixin,
    PublishableMixin, FeaturedMixin, EngagementCountersMixin, AuthoredMixin,
):
    __tablename__ = "posts"
    __table_args__ = (
        _live_slug_index("posts"),
        _status_check("posts"),
        CheckConstraint(
            "type IN ('article', 'event', 'activity', 'explore')",
            name="ck_posts_type",
        ),
        Index(
            "ix_posts_type_status_live",
            "type",
            "status",
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    type: Mapped[str] = mapped_column(
        String(20), default=PostType.ARTICLE.value, server_default="article", nullable=False
    )
    region_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("regions.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    short_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[Any | None] = mapped_column(JSONB, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    event_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    event_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Post {self.type}:{self.slug}>"


# ============================================================================
# Videos
# ============================================================================


class Video(
    Base, StringIDMixin, TimestampMixin, SoftDeleteMixin, SlugMixin,
    PublishableMixin, FeaturedMixin, EngagementCountersMixin, AuthoredMixin,
):
    __tablename__ = "videos"
    __table_args__ = (
        _live_slug_index("videos"),
        _status_check("videos"),
        CheckConstraint(
            "platform IN ('youtube', 'vimeo', 'tiktok')",
            name="ck_videos_platform",
        ),
    )

    region_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("regions.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    platform: Mapped[str] = mapped_column(
        String(20), default=VideoPlatform.YOUTUBE.value, server_default="youtube", nullable=False
    )
    video_url: Mapped[str] = mapped_column(String(500), nullable=False)
    video_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)


# ============================================================================
# Hotels and branches
# ============================================================================


class Hotel(
    Base, StringIDMixin, TimestampMixin, SoftDeleteMixin, SlugMixin,
    PublishableMixin, FeaturedMixin, ViewCountMixin, AuthoredMixin,
):
    """Hotels carry views and comments but no likes."""

    __tablename__ = "hotels"
    __table_args__ = (
        _live_slug_index("hotels"),
        _status_check("hotels"),
        CheckConstraint(
            "price_range IS NULL OR price_range IN ('budget', 'mid', 'luxury')",
            name="ck_hotels_price_range",
        ),
        CheckConstraint(
            "star_rating IS NULL OR star_rating BETWEEN 1 AND 5",
            name="ck_hotels_star_rating",
        ),
    )

    region_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("regions.id"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    star_rating: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    price_range: Mapped[str | None] = mapped_column(String(20), nullable=True)
    amenities: Mapped[Any | None] = mapped_column(JSONB, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    gallery: Mapped[Any | None] = mapped_column(JSONB, nullable=True)

    branches: Mapped[list["HotelBranch"]] = relationship(
        "HotelBranch",
        back_populates="hotel",
        lazy="selectin",
        order_by=lambda: [HotelBranch.is_main.desc(), HotelBranch.created_at],
        passive_deletes=True,
    )


class HotelBranch(Base, StringIDMixin, TimestampMixin):
    __tablename__ = "hotel_branches"

    hotel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hotels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    region_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("regions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    coordinates: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    is_main: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    hotel: Mapped["Hotel"] = relationship("Hotel", back_populates="branches")


# ============================================================================
# Photo features and images
# ============================================================================


class PhotoFeature(
    Base, StringIDMixin, TimestampMixin, SoftDeleteMixin, SlugMixin,
    PublishableMixin, FeaturedMixin, EngagementCountersMixin, AuthoredMixin,
):
    __tablename__ = "photo_features"
    __table_args__ = (
        _live_slug_index("photo_features"),
        _status_check("photo_features"),
    )

    region_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("regions.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    images: Mapped[list["PhotoImage"]] = relationship(
        "PhotoImage",
        back_populates="photo_feature",
        lazy="selectin",
        order_by="PhotoImage.display_order",
        passive_deletes=True,
    )


class PhotoImage(Base, StringIDMixin, CreatedAtMixin):
    __tablename__ = "photo_images"

    photo_feature_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("photo_features.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_order: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    uploaded_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("user.id"), nullable=True, index=True
    )

    photo_feature: Mapped["PhotoFeature"] = relationship(
        "PhotoFeature", back_populates="images"
    )


# ============================================================================
# Hero slides
# ============================================================================


class HeroSlide(Base, StringIDMixin, TimestampMixin, SortOrderMixin):
    """Homepage carousel slide, either pointing at content or fully custom."""

    __tablename__ = "hero_slides"
    __table_args__ = (
        CheckConstraint(
            "content_type IN ('post', 'video', 'photo', 'custom')",
            name="ck_hero_slides_content_type",
        ),
    )

    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    custom_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False, index=True
    )
    starts_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ============================================================================
# Content links
# ============================================================================


class LinkSource(str, Enum):
    POST = "post"
    REGION = "region"


class LinkTarget(str, Enum):
    POST = "post"
    PHOTO = "photo"
    VIDEO = "video"


class ContentLink(Base, StringIDMixin, CreatedAtMixin):
    """Ordered "related content" link from a post or region to another item."""

    __tablename__ = "content_links"
    __table_args__ = (
        CheckConstraint("source_type IN ('post', 'region')", name="ck_content_links_source_type"),
        CheckConstraint(
            "target_type IN ('post', 'photo', 'video')", name="ck_content_links_target_type"
        ),
        UniqueConstraint(
            "source_type", "source_id", "target_type", "target_id",
            name="uq_content_links_source_target",
        ),
        Index("ix_content_links_source", "source_type", "source_id"),
        Index("ix_content_links_target", "target_type", "target_id"),
    )

    source_type: Mapped[str] = mapped_column(String(20), nullable=False)
    source_id: Mapped[str] = mapped_column(String(36), nullable=False)
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    display_order: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
