"""Pydantic schemas for media module."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, computed_field

from paayo.modules.media.storage import get_storage


class MediaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    filename: str
    original_name: str
    mime_type: str
    size_bytes: int
    width: int | None = None
    height: int | None = None
    blur_hash: str | None = None
    thumbnail_filename: str | None = None
    uploaded_by: str | None = None
    created_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return get_storage().url_for(self.filename)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def thumbnail_url(self) -> str | None:
        if self.thumbnail_filename is None:
            return None
        return get_storage().url_for(self.thumbnail_filename)


class CleanupReport(BaseModel):
    dry_run: bool
    grace_hours: int
    orphans_found: int
    orphans_deleted: int
    files_deleted: int
    file_errors: list[str] = []
