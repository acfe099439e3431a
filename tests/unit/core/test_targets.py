"""Unit tests for engagement targets and counter sync."""

from unittest.mock import AsyncMock

import pytest

from paayo.core.targets import (
    TargetKind,
    sync_like_count,
    sync_view_count,
    target_exists,
)


class TestTargetKind:
    """Tests for TargetKind parsing."""

    @pytest.mark.unit
    def test_parse_is_case_insensitive(self) -> None:
        assert TargetKind.parse(" Post ") is TargetKind.POST

    @pytest.mark.unit
    def test_parse_unknown_returns_none(self) -> None:
        assert TargetKind.parse("region") is None

    @pytest.mark.unit
    def test_hotels_have_no_like_counter(self) -> None:
        assert not TargetKind.HOTEL.has_like_count
        assert TargetKind.PHOTO.table_name == "photo_features"


class TestTargetQueries:
    """Tests for target_exists and the sync helpers."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_target_exists_true(self, mock_db: AsyncMock, result_factory) -> None:
        mock_db.execute.return_value = result_factory(scalar=True)

        assert await target_exists(mock_db, "post", "p1") is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_target_exists_unknown_kind(self, mock_db: AsyncMock) -> None:
        """Unknown kind should be false without touching the database."""
        assert await target_exists(mock_db, "region", "r1") is False
        mock_db.execute.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sync_view_count_rewrites_counter(
        self, mock_db: AsyncMock, result_factory
    ) -> None:
        """View count should be counted then written back."""
        mock_db.execute.side_effect = [result_factory(scalar=42), result_factory()]

        count = await sync_view_count(mock_db, TargetKind.VIDEO, "v1")

        assert count == 42
        assert mock_db.execute.await_count == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sync_like_count_skips_update_for_hotels(
        self, mock_db: AsyncMock, result_factory
    ) -> None:
        """Kinds without a like_count column should only be counted."""
        mock_db.execute.return_value = result_factory(scalar=3)

        count = await sync_like_count(mock_db, TargetKind.HOTEL, "h1")

        assert count == 3
        assert mock_db.execute.await_count == 1
