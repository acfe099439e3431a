"""Media module database models."""

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from paayo.core.base_model import Base, CreatedAtMixin, StringIDMixin


class Media(Base, StringIDMixin, CreatedAtMixin):
    """An uploaded image, stored as ``<id>.avif`` plus ``<id>_thumb.avif``.

    Content references media by filename inside URLs and rich text, so there
    is no FK from content to this table. Unreferenced rows are reclaimed by
    the orphan cleanup pass.
    """

    __tablename__ = "media"
    __table_args__ = (
        CheckConstraint("size_bytes > 0", name="ck_media_size_positive"),
    )

    filename: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blur_hash: Mapped[str | None] = mapped_column(String(100), nullable=True)
    thumbnail_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    uploaded_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True, index=True
    )

    def __repr__(self) -> str:
        return f"<Media {self.filename}>"
