"""Pydantic schemas for tags module."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from paayo.modules.tags.models import TagType


class TagCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=100)
    tag_type: TagType = TagType.GENERAL


class TagUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    tag_type: TagType | None = None


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    tag_type: str
    created_at: datetime
    updated_at: datetime


class TagWithCountResponse(TagResponse):
    usage_count: int = 0


class ContentTagsSetByIds(BaseModel):
    tag_ids: list[str] = Field(default_factory=list, max_length=50)


class ContentTagsSetByNames(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    names: list[str] = Field(default_factory=list, max_length=50)
    tag_type: TagType = TagType.GENERAL
