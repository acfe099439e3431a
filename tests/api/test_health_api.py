"""API tests for health endpoints and cross-cutting response headers."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from paayo.config import settings
from paayo.middleware.cache import NO_CACHE


class TestHealthEndpoints:
    """Tests for /api/health."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/api/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_degraded_without_redis(self, client: AsyncClient) -> None:
        """Missing Redis should degrade, not fail, the health report."""
        with (
            patch(
                "paayo.modules.health.router.check_db_connection",
                AsyncMock(return_value=True),
            ),
            patch(
                "paayo.modules.health.router.check_redis_connection",
                AsyncMock(return_value=False),
            ),
        ):
            response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"] == {"database": True, "redis": False}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_readiness_fails_without_database(self, client: AsyncClient) -> None:
        with (
            patch(
                "paayo.modules.health.router.check_db_connection",
                AsyncMock(return_value=False),
            ),
            patch(
                "paayo.modules.health.router.check_redis_connection",
                AsyncMock(return_value=True),
            ),
        ):
            response = await client.get("/api/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"
        assert response.headers["Cache-Control"] == NO_CACHE


class TestRequestId:
    """Tests for X-Request-ID propagation."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_inbound_id_is_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/api/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_id_is_generated(self, client: AsyncClient) -> None:
        response = await client.get("/api/health/live")

        assert len(response.headers["X-Request-ID"]) == 36

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_oversized_id_is_replaced(self, client: AsyncClient) -> None:
        response = await client.get("/api/health/live", headers={"X-Request-ID": "x" * 200})

        assert response.headers["X-Request-ID"] != "x" * 200


class TestRequestLogging:
    """Tests for request completion logging."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_check_logs_at_debug(self, client: AsyncClient) -> None:
        with patch("paayo.middleware.request_logging.logger") as logger:
            response = await client.get("/api/health/live", headers={"X-Request-ID": "req-7"})

        assert float(response.headers["X-Process-Time"]) >= 0
        logger.info.assert_not_called()
        completed = [c for c in logger.debug.call_args_list if c.args[0] == "request_completed"]
        assert completed[0].kwargs["request_id"] == "req-7"
        assert completed[0].kwargs["user_id"] is None

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_slow_request_is_a_warning(self, client: AsyncClient, monkeypatch) -> None:
        monkeypatch.setattr(settings, "slow_request_ms", 0)

        with patch("paayo.middleware.request_logging.logger") as logger:
            await client.get("/api/health/live")

        assert logger.warning.call_args.args[0] == "request_slow"
        assert logger.warning.call_args.kwargs["status_code"] == 200
