"""Unit tests for viewer fingerprints."""

import re

import pytest
from starlette.requests import Request

from paayo.core.fingerprint import (
    ViewerContext,
    get_client_ip,
    request_fingerprint,
    viewer_hash,
)


def _request(headers: dict[str, str] | None = None, client: tuple | None = ("10.0.0.1", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestViewerHash:
    """Tests for viewer_hash."""

    @pytest.mark.unit
    def test_hash_is_32_hex_chars(self) -> None:
        """Hash should be 128 bits of lowercase hex."""
        value = viewer_hash("1.2.3.4", "Mozilla/5.0", ViewerContext.VIEW)

        assert re.fullmatch(r"[0-9a-f]{32}", value)

    @pytest.mark.unit
    def test_hash_is_deterministic(self) -> None:
        """Same inputs should give the same hash."""
        first = viewer_hash("1.2.3.4", "Mozilla/5.0", ViewerContext.LIKE)
        second = viewer_hash("1.2.3.4", "Mozilla/5.0", ViewerContext.LIKE)

        assert first == second

    @pytest.mark.unit
    def test_contexts_do_not_collide(self) -> None:
        """The same browser should get a different hash per context."""
        hashes = {
            viewer_hash("1.2.3.4", "Mozilla/5.0", context) for context in ViewerContext
        }

        assert len(hashes) == len(ViewerContext)

    @pytest.mark.unit
    def test_string_context_matches_enum(self) -> None:
        """Plain string context should hash like the enum member."""
        assert viewer_hash("ip", "ua", "view") == viewer_hash("ip", "ua", ViewerContext.VIEW)


class TestClientIp:
    """Tests for client IP extraction."""

    @pytest.mark.unit
    def test_forwarded_for_first_hop_wins(self) -> None:
        """First X-Forwarded-For address should be used."""
        request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2"})

        assert get_client_ip(request) == "203.0.113.7"

    @pytest.mark.unit
    def test_real_ip_header(self) -> None:
        """X-Real-IP should be used when there is no X-Forwarded-For."""
        request = _request({"X-Real-IP": " 198.51.100.4 "})

        assert get_client_ip(request) == "198.51.100.4"

    @pytest.mark.unit
    def test_falls_back_to_peer(self) -> None:
        """Socket peer address should be used without proxy headers."""
        assert get_client_ip(_request()) == "10.0.0.1"

    @pytest.mark.unit
    def test_unknown_without_client(self) -> None:
        assert get_client_ip(_request(client=None)) == "unknown"

    @pytest.mark.unit
    def test_request_fingerprint_uses_ip_and_agent(self) -> None:
        """Request fingerprint should equal the hash of its IP and user agent."""
        request = _request({"User-Agent": "curl/8.0"})

        assert request_fingerprint(request, ViewerContext.COMMENT) == viewer_hash(
            "10.0.0.1", "curl/8.0", ViewerContext.COMMENT
        )
