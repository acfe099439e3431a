"""Pydantic schemas for content module.

Update schemas leave every field optional with a ``None`` default. The
service reads ``model_fields_set`` to tell an absent field (keep) from an
explicit ``null`` (clear).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from paayo.modules.content.models import (
    ContentStatus,
    HeroContentType,
    LinkSource,
    LinkTarget,
    PostType,
    PriceRange,
    VideoPlatform,
)


# ============================================================================
# Shared
# ============================================================================


class StatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: ContentStatus


class DisplayOrderUpdate(BaseModel):
    display_order: int | None = Field(default=None, ge=0)


class ContentBaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    author_id: str
    status: str
    published_at: datetime | None = None
    is_featured: bool
    display_order: int | None = None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None


# ============================================================================
# Region Schemas
# ============================================================================


class RegionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    cover_image: str | None = Field(default=None, max_length=500)
    map_data: dict[str, Any] | None = None
    attraction_rank: int | None = None
    province: str | None = Field(default=None, max_length=255)
    district: str | None = Field(default=None, max_length=255)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    is_featured: bool = False
    display_order: int | None = Field(default=None, ge=0)


class RegionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    cover_image: str | None = Field(default=None, max_length=500)
    map_data: dict[str, Any] | None = None
    attraction_rank: int | None = None
    province: str | None = Field(default=None, max_length=255)
    district: str | None = Field(default=None, max_length=255)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    is_featured: bool | None = None
    display_order: int | None = Field(default=None, ge=0)


class RegionResponse(ContentBaseResponse):
    name: str
    description: str | None = None
    cover_image: str | None = None
    map_data: dict[str, Any] | None = None
    attraction_rank: int | None = None
    province: str | None = None
    district: str | None = None
    latitude: float | None = None
    longitude: float | None = None


# ============================================================================
# Post Schemas
# ============================================================================


class PostCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    type: PostType = PostType.ARTICLE
    title: str = Field(..., min_length=1, max_length=500)
    short_description: str | None = None
    content: Any | None = None
    cover_image: str | None = Field(default=None, max_length=500)
    region_id: str | None = None
    event_date: datetime | None = None
    event_end_date: datetime | None = None
    is_featured: bool = False
    display_order: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_event_dates(self) -> "PostCreate":
        if self.event_date and self.event_end_date and self.event_end_date < self.event_date:
            raise ValueError("event_end_date must not be before event_date")
        return self


class PostUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    type: PostType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=500)
    short_description: str | None = None
    content: Any | None = None
    cover_image: str | None = Field(default=None, max_length=500)
    region_id: str | None = None
    event_date: datetime | None = None
    event_end_date: datetime | None = None
    is_featured: bool | None = None
    display_order: int | None = Field(default=None, ge=0)


class PostResponse(ContentBaseResponse):
    type: str
    title: str
    short_description: str | None = None
    content: Any | None = None
    cover_image: str | None = None
    region_id: str | None = None
    event_date: datetime | None = None
    event_end_date: datetime | None = None
    like_count: int
    view_count: int


# ============================================================================
# Video Schemas
# ============================================================================


class VideoCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    platform: VideoPlatform = VideoPlatform.YOUTUBE
    video_url: str = Field(..., min_length=1, max_length=500)
    video_id: str | None = Field(default=None, max_length=100)
    thumbnail_url: str | None = Field(default=None, max_length=500)
    duration: int | None = Field(default=None, ge=0)
    region_id: str | None = None
    is_featured: bool = False
    display_order: int | None = Field(default=None, ge=0)


class VideoUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    platform: VideoPlatform | None = None
    video_url: str | None = Field(default=None, min_length=1, max_length=500)
    video_id: str | None = Field(default=None, max_length=100)
    thumbnail_url: str | None = Field(default=None, max_length=500)
    duration: int | None = Field(default=None, ge=0)
    region_id: str | None = None
    is_featured: bool | None = None
    display_order: int | None = Field(default=None, ge=0)


class VideoResponse(ContentBaseResponse):
    title: str
    description: str | None = None
    platform: str
    video_url: str
    video_id: str | None = None
    thumbnail_url: str | None = None
    duration: int | None = None
    region_id: str | None = None
    like_count: int
    view_count: int


# ============================================================================
# Hotel Schemas
# ============================================================================


class HotelBranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: str | None = None
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    coordinates: dict[str, Any] | None = None
    is_main: bool = False
    region_id: str | None = None


class HotelBranchUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = None
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    coordinates: dict[str, Any] | None = None
    is_main: bool | None = None
    region_id: str | None = None


class HotelBranchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    hotel_id: str
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    coordinates: dict[str, Any] | None = None
    is_main: bool
    region_id: str | None = None
    created_at: datetime
    updated_at: datetime


class HotelCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=500)
    star_rating: int | None = Field(default=None, ge=1, le=5)
    price_range: PriceRange | None = None
    amenities: list[str] | None = None
    cover_image: str | None = Field(default=None, max_length=500)
    gallery: list[str] | None = None
    region_id: str | None = None
    is_featured: bool = False
    display_order: int | None = Field(default=None, ge=0)
    branches: list[HotelBranchCreate] = Field(default_factory=list)


class HotelUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=500)
    star_rating: int | None = Field(default=None, ge=1, le=5)
    price_range: PriceRange | None = None
    amenities: list[str] | None = None
    cover_image: str | None = Field(default=None, max_length=500)
    gallery: list[str] | None = None
    region_id: str | None = None
    is_featured: bool | None = None
    display_order: int | None = Field(default=None, ge=0)


class HotelResponse(ContentBaseResponse):
    name: str
    description: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    star_rating: int | None = None
    price_range: str | None = None
    amenities: list[str] | None = None
    cover_image: str | None = None
    gallery: list[str] | None = None
    region_id: str | None = None
    view_count: int
    branches: list[HotelBranchResponse] = []


# ============================================================================
# Photo Feature Schemas
# ============================================================================


class PhotoImageCreate(BaseModel):
    image_url: str = Field(..., min_length=1, max_length=500)
    caption: str | None = None
    display_order: int | None = Field(default=None, ge=0)


class PhotoImageUpdate(BaseModel):
    image_url: str | None = Field(default=None, min_length=1, max_length=500)
    caption: str | None = None
    display_order: int | None = Field(default=None, ge=0)


class PhotoImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    photo_feature_id: str
    image_url: str
    caption: str | None = None
    display_order: int
    uploaded_by: str | None = None
    created_at: datetime


class ImageReorder(BaseModel):
    image_ids: list[str] = Field(..., min_length=1)


class PhotoFeatureCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    region_id: str | None = None
    is_featured: bool = False
    display_order: int | None = Field(default=None, ge=0)
    images: list[PhotoImageCreate] = Field(default_factory=list)


class PhotoFeatureUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    region_id: str | None = None
    is_featured: bool | None = None
    display_order: int | None = Field(default=None, ge=0)


class PhotoFeatureResponse(ContentBaseResponse):
    title: str
    description: str | None = None
    region_id: str | None = None
    like_count: int
    view_count: int
    images: list[PhotoImageResponse] = []


# ============================================================================
# Hero Slide Schemas
# ============================================================================


class HeroSlideCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    content_type: HeroContentType
    content_id: str | None = None
    custom_title: str | None = Field(default=None, max_length=500)
    custom_description: str | None = None
    custom_image: str | None = Field(default=None, max_length=500)
    custom_link: str | None = Field(default=None, max_length=500)
    sort_order: int = 0
    is_active: bool = True
    starts_at: datetime | None = None
    ends_at: datetime | None = None

    @model_validator(mode="after")
    def check_reference(self) -> "HeroSlideCreate":
        if self.content_type == HeroContentType.CUSTOM:
            if not self.custom_title or not self.custom_image:
                raise ValueError("custom slides need custom_title and custom_image")
        elif not self.content_id:
            raise ValueError("content_id is required unless content_type is 'custom'")
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class HeroSlideUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    content_type: HeroContentType | None = None
    content_id: str | None = None
    custom_title: str | None = Field(default=None, max_length=500)
    custom_description: str | None = None
    custom_image: str | None = Field(default=None, max_length=500)
    custom_link: str | None = Field(default=None, max_length=500)
    sort_order: int | None = None
    is_active: bool | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None


class HeroSlideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content_type: str
    content_id: str | None = None
    custom_title: str | None = None
    custom_description: str | None = None
    custom_image: str | None = None
    custom_link: str | None = None
    sort_order: int
    is_active: bool
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ResolvedHeroSlide(BaseModel):
    """Public slide with the referenced content already resolved."""

    id: str
    content_type: str
    content_id: str | None = None
    title: str
    description: str | None = None
    image: str | None = None
    link: str | None = None
    sort_order: int


class HeroSlideReorder(BaseModel):
    slide_ids: list[str] = Field(..., min_length=1)


class HeroSlideCounts(BaseModel):
    total: int
    active: int
    inactive: int


# ============================================================================
# Content links
# ============================================================================

MAX_LINKS_PER_SOURCE = 50


class ContentLinkCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    source_type: LinkSource
    source_id: str = Field(..., min_length=1, max_length=36)
    target_type: LinkTarget
    target_id: str = Field(..., min_length=1, max_length=36)
    display_order: int | None = None


class ContentLinkOrderUpdate(BaseModel):
    display_order: int = 0


class ContentLinkItem(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    target_type: LinkTarget
    target_id: str = Field(..., min_length=1, max_length=36)
    display_order: int | None = None


class ContentLinksSet(BaseModel):
    """Replaces every link of the source. An empty list unlinks everything."""

    links: list[ContentLinkItem] = Field(default_factory=list, max_length=MAX_LINKS_PER_SOURCE)


class ContentLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    source_type: str
    source_id: str
    target_type: str
    target_id: str
    display_order: int
    created_at: datetime
