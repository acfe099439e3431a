"""Base SQLAlchemy models with common mixins."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        name = cls.__name__
        return "".join(
            ["_" + c.lower() if c.isupper() else c for c in name]
        ).lstrip("_") + "s"


class StringIDMixin:
    """Primary key stored as a 36-character UUID string."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin that adds created_at and updated_at timestamps."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SoftDeleteMixin:
    """Tombstone column. A non-null value hides the row from every public
    read and frees its slug for new rows."""

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        index=True,
    )


class SlugMixin:
    """URL slug. Uniqueness is a partial index over non-deleted rows,
    declared per table in the migration."""

    slug: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )


class PublishableMixin:
    """Draft/published status. ``published_at`` is stamped on the first
    publish and never cleared."""

    status: Mapped[str] = mapped_column(
        String(20),
        default="draft",
        server_default="draft",
        nullable=False,
        index=True,
    )
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )


class FeaturedMixin:
    """Featured flag plus manual display order among featured rows."""

    is_featured: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False,
    )
    display_order: Mapped[int | None] = mapped_column(Integer, nullable=True)


class ViewCountMixin:
    """Denormalised counter, always rewritten from ``count(*)``."""

    view_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )


class EngagementCountersMixin(ViewCountMixin):
    like_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )


class SortOrderMixin:
    """Mixin for manual ordering of child records."""

    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
