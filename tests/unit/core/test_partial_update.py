"""Unit tests for three-state partial updates."""

import pytest
from pydantic import BaseModel

from paayo.core.partial_update import (
    FieldState,
    changed_columns,
    field_state,
    resolve_columns,
)


class RegionPatch(BaseModel):
    name: str | None = None
    description: str | None = None
    province: str | None = None


CURRENT = {"name": "Mustang", "description": "Desert valley", "province": "Gandaki"}


class TestPartialUpdate:
    """Tests for absent / null / value resolution."""

    @pytest.mark.unit
    def test_field_states(self) -> None:
        payload = RegionPatch.model_validate({"description": None, "province": "Koshi"})

        assert field_state(payload, "name") is FieldState.ABSENT
        assert field_state(payload, "description") is FieldState.CLEAR
        assert field_state(payload, "province") is FieldState.SET

    @pytest.mark.unit
    def test_absent_keeps_stored_value(self) -> None:
        """Fields not sent should keep the current value."""
        resolved = resolve_columns(
            RegionPatch.model_validate({}),
            CURRENT,
            nullable=("description", "province"),
            required=("name",),
        )

        assert resolved == CURRENT

    @pytest.mark.unit
    def test_null_clears_nullable_field(self) -> None:
        """Explicit null should clear a nullable column."""
        resolved = resolve_columns(
            RegionPatch.model_validate({"description": None}),
            CURRENT,
            nullable=("description", "province"),
            required=("name",),
        )

        assert resolved["description"] is None
        assert resolved["province"] == "Gandaki"

    @pytest.mark.unit
    def test_null_keeps_required_field(self) -> None:
        """Explicit null on a required column should keep it."""
        resolved = resolve_columns(
            RegionPatch.model_validate({"name": None}),
            CURRENT,
            nullable=("description",),
            required=("name",),
        )

        assert resolved["name"] == "Mustang"

    @pytest.mark.unit
    def test_value_is_written(self) -> None:
        resolved = resolve_columns(
            RegionPatch.model_validate({"name": "Upper Mustang"}),
            CURRENT,
            nullable=("description",),
            required=("name",),
        )

        assert resolved["name"] == "Upper Mustang"
        assert changed_columns(resolved, CURRENT) == {"name"}
