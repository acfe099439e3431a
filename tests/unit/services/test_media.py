"""Unit tests for image processing, storage and orphan cleanup."""

import io
from unittest.mock import AsyncMock, patch

import pytest
from PIL import Image, features
from sqlalchemy.exc import SQLAlchemyError

from paayo.core.exceptions import BadRequestError, ImageProcessingError, InternalServerError
from paayo.modules.media.cleanup import cleanup_orphans
from paayo.modules.media.processing import ProcessedImage, _fit, compute_blur_hash, process_image
from paayo.modules.media.service import MediaService
from paayo.modules.media.storage import LocalStorage, StorageError

requires_avif = pytest.mark.skipif(
    not features.check("avif"), reason="Pillow built without AVIF support"
)


def _image_bytes(width: int, height: int, fmt: str = "PNG", color=(200, 80, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


PROCESSED = ProcessedImage(
    filename="abc.avif",
    thumbnail_filename="abc_thumb.avif",
    main_bytes=b"main",
    thumbnail_bytes=b"thumb",
    width=64,
    height=48,
    blur_hash="L00000fQfQfQfQfQfQfQfQfQfQfQ",
)


class TestImageProcessing:
    """Tests for process_image and its helpers."""

    @pytest.mark.unit
    def test_fit_scales_down_preserving_aspect(self) -> None:
        image = Image.new("RGB", (4000, 2000))

        fitted = _fit(image, 2000)

        assert fitted.size == (2000, 1000)

    @pytest.mark.unit
    def test_fit_never_upscales(self) -> None:
        image = Image.new("RGB", (300, 200))

        assert _fit(image, 2000).size == (300, 200)

    @pytest.mark.unit
    def test_blur_hash_shape(self) -> None:
        """4x3 components give a 28 character hash."""
        blur = compute_blur_hash(Image.new("RGB", (640, 480), (10, 120, 200)))

        assert len(blur) == 28

    @pytest.mark.unit
    def test_undecodable_bytes(self) -> None:
        with pytest.raises(ImageProcessingError):
            process_image(b"definitely not an image")

    @pytest.mark.unit
    def test_unlisted_format_is_rejected(self) -> None:
        """A decodable BMP is still outside the accepted formats."""
        with pytest.raises(ImageProcessingError):
            process_image(_image_bytes(8, 8, fmt="BMP"))

    @pytest.mark.unit
    @requires_avif
    def test_process_image_outputs_avif(self) -> None:
        """Main image and thumbnail should both be AVIF and fit their boxes."""
        processed = process_image(
            _image_bytes(1200, 600), max_dimension=800, thumbnail_dimension=100
        )

        assert (processed.width, processed.height) == (800, 400)
        assert processed.filename.endswith(".avif")
        assert processed.thumbnail_filename == processed.filename.replace(".avif", "_thumb.avif")
        assert processed.mime_type == "image/avif"
        assert processed.size_bytes == len(processed.main_bytes)
        with Image.open(io.BytesIO(processed.thumbnail_bytes)) as thumb:
            assert max(thumb.size) == 100


class TestLocalStorage:
    """Tests for the filesystem backend."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_and_delete(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path)

        await storage.save("a.avif", b"data", "image/avif")
        assert (tmp_path / "a.avif").read_bytes() == b"data"

        await storage.delete("a.avif")
        assert not (tmp_path / "a.avif").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_missing_file_is_not_an_error(self, tmp_path) -> None:
        await LocalStorage(tmp_path).delete("gone.avif")

    @pytest.mark.unit
    def test_path_like_names_are_rejected(self, tmp_path) -> None:
        with pytest.raises(StorageError):
            LocalStorage(tmp_path).path_for("../etc/passwd")


class TestMediaService:
    """Tests for MediaService.upload validation."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unsupported_type(self, mock_db: AsyncMock, editor_user) -> None:
        service = MediaService(mock_db, storage=AsyncMock())

        with pytest.raises(BadRequestError):
            await service.upload(
                b"%PDF-1.7", original_name="a.pdf", content_type="application/pdf", user=editor_user
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    @requires_avif
    async def test_upload_stores_both_files(
        self, mock_db: AsyncMock, result_factory, editor_user
    ) -> None:
        """Upload should save main and thumbnail, then record the row."""
        storage = AsyncMock()
        mock_db.execute.return_value = result_factory(items=[])
        service = MediaService(mock_db, storage=storage)

        media = await service.upload(
            _image_bytes(64, 48), original_name="stupa.png", content_type="image/png", user=editor_user
        )

        saved = [call.args[0] for call in storage.save.await_args_list]
        assert saved == [media.filename, media.thumbnail_filename]
        assert media.uploaded_by == editor_user.id
        assert (media.width, media.height) == (64, 48)
        mock_db.add.assert_called_once_with(media)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_content_type(self, mock_db: AsyncMock, editor_user) -> None:
        service = MediaService(mock_db, storage=AsyncMock())

        with pytest.raises(BadRequestError):
            await service.upload(
                _image_bytes(8, 8, fmt="BMP"), original_name="a.bmp", content_type=None,
                user=editor_user,
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declared_png_carrying_bmp(self, mock_db: AsyncMock, editor_user) -> None:
        storage = AsyncMock()
        service = MediaService(mock_db, storage=storage)

        with pytest.raises(ImageProcessingError):
            await service.upload(
                _image_bytes(8, 8, fmt="BMP"), original_name="a.png", content_type="image/png",
                user=editor_user,
            )

        storage.save.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_commit_removes_stored_files(
        self, mock_db: AsyncMock, editor_user
    ) -> None:
        """Stored files should be removed when the media row cannot be recorded."""
        storage = AsyncMock()
        mock_db.commit.side_effect = SQLAlchemyError("connection lost")
        service = MediaService(mock_db, storage=storage)

        with patch(
            "paayo.modules.media.service.process_image_async", AsyncMock(return_value=PROCESSED)
        ):
            with pytest.raises(SQLAlchemyError):
                await service.upload(
                    b"png", original_name="a.png", content_type="image/png", user=editor_user
                )

        deleted = [call.args[0] for call in storage.delete.await_args_list]
        assert deleted == ["abc.avif", "abc_thumb.avif"]
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_thumbnail_write_removes_main_file(
        self, mock_db: AsyncMock, editor_user
    ) -> None:
        storage = AsyncMock()
        storage.save.side_effect = [None, StorageError("disk full")]
        service = MediaService(mock_db, storage=storage)

        with patch(
            "paayo.modules.media.service.process_image_async", AsyncMock(return_value=PROCESSED)
        ):
            with pytest.raises(InternalServerError):
                await service.upload(
                    b"png", original_name="a.png", content_type="image/png", user=editor_user
                )

        storage.delete.assert_awaited_once_with("abc.avif")
        mock_db.add.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_upload(self, mock_db: AsyncMock, editor_user) -> None:
        service = MediaService(mock_db, storage=AsyncMock())

        with pytest.raises(BadRequestError):
            await service.upload(
                b"", original_name="a.png", content_type="image/png", user=editor_user
            )


class TestOrphanCleanup:
    """Tests for cleanup_orphans."""

    ORPHANS = [
        ("m1", "one.avif", "one_thumb.avif"),
        ("m2", "two.avif", None),
    ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_dry_run_deletes_nothing(self, mock_db: AsyncMock, result_factory) -> None:
        mock_db.execute.return_value = result_factory(rows=self.ORPHANS)
        storage = AsyncMock()

        report = await cleanup_orphans(mock_db, grace_hours=24, dry_run=True, storage=storage)

        assert report.orphans_found == 2
        assert report.orphans_deleted == 0
        assert mock_db.execute.await_count == 1
        storage.delete.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cleanup_collects_file_errors(
        self, mock_db: AsyncMock, result_factory
    ) -> None:
        """A failed file delete should be reported, not abort the pass."""
        mock_db.execute.side_effect = [
            result_factory(rows=self.ORPHANS),
            result_factory(rowcount=2),
        ]
        storage = AsyncMock()
        storage.delete.side_effect = [None, StorageError("permission denied"), None]

        report = await cleanup_orphans(mock_db, grace_hours=24, storage=storage)

        assert report.orphans_deleted == 2
        assert report.files_deleted == 2
        assert len(report.file_errors) == 1
        assert report.file_errors[0].startswith("one_thumb.avif")
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nothing_to_clean(self, mock_db: AsyncMock, result_factory) -> None:
        mock_db.execute.return_value = result_factory(rows=[])

        with patch("paayo.modules.media.cleanup.get_storage") as get_storage:
            report = await cleanup_orphans(mock_db, grace_hours=24)

        assert report.orphans_found == 0
        get_storage.assert_not_called()
        mock_db.commit.assert_not_awaited()
