"""Tag models."""

from enum import Enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from paayo.core.base_model import Base, CreatedAtMixin, StringIDMixin, TimestampMixin


class TagType(str, Enum):
    ACTIVITY = "activity"
    CATEGORY = "category"
    GENERAL = "general"


class Tag(Base, StringIDMixin, TimestampMixin):
    __tablename__ = "tags"
    __table_args__ = (
        CheckConstraint(
            "tag_type IN ('activity', 'category', 'general')",
            name="ck_tags_tag_type",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True, index=True)
    tag_type: Mapped[str] = mapped_column(
        String(20), default=TagType.GENERAL.value, server_default="general", nullable=False
    )

    def __repr__(self) -> str:
        return f"<Tag {self.slug}>"


class ContentTag(Base, StringIDMixin, CreatedAtMixin):
    """Tag attached to one content row, addressed by (target_type, target_id)."""

    __tablename__ = "content_tags"
    __table_args__ = (
        UniqueConstraint("tag_id", "target_type", "target_id", name="uq_content_tags_tag_target"),
        Index("ix_content_tags_target", "target_type", "target_id"),
    )

    tag_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tags.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
