"""
Unit tests for the profile liveness probe and its conservative policy.
"""
from __future__ import annotations

import httpx
import pytest

from reconciler.liveness import INACTIVE_STATUS_CODES, LivenessProbe, extract_username

BASE = "https://www.instagram.example"


def _probe_with_status(status: int) -> tuple[list[httpx.Request], object]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status)

    return seen, handler


# ── extract_username ────────────────────────────────────────────────────

class TestExtractUsername:

    def test_full_url(self) -> None:
        assert extract_username("https://www.instagram.com/alfalah.sg/") == "alfalah.sg"

    def test_url_with_query(self) -> None:
        assert extract_username("https://instagram.com/alfalah.sg?hl=en") == "alfalah.sg"

    def test_schemeless(self) -> None:
        assert extract_username("instagram.com/alfalah.sg") == "alfalah.sg"

    def test_handle(self) -> None:
        assert extract_username("@alfalah.sg") == "alfalah.sg"

    def test_empty(self) -> None:
        assert extract_username("") is None
        assert extract_username("https://www.instagram.com/") is None


# ── Status policy ───────────────────────────────────────────────────────

@pytest.mark.asyncio
@pytest.mark.parametrize("status", sorted(INACTIVE_STATUS_CODES))
async def test_gone_statuses_are_inactive(client_factory, status: int) -> None:
    _, handler = _probe_with_status(status)
    async with client_factory("instagram", handler) as client:
        assert await LivenessProbe(client, BASE, "ua").is_active("@gone") is False


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 204, 301, 302, 400, 401, 403, 429, 500, 502, 503])
async def test_every_other_status_is_active(client_factory, status: int) -> None:
    _, handler = _probe_with_status(status)
    async with client_factory("instagram", handler) as client:
        assert await LivenessProbe(client, BASE, "ua").is_active("@someone") is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc_type",
    [httpx.ConnectError, httpx.ReadTimeout, httpx.ConnectTimeout, httpx.RemoteProtocolError],
)
async def test_network_errors_are_active(client_factory, exc_type: type[httpx.TransportError]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("boom", request=request)

    async with client_factory("instagram", handler) as client:
        assert await LivenessProbe(client, BASE, "ua").is_active("@someone") is True


@pytest.mark.asyncio
async def test_missing_username_is_active_without_request(client_factory) -> None:
    seen, handler = _probe_with_status(404)
    async with client_factory("instagram", handler) as client:
        assert await LivenessProbe(client, BASE, "ua").is_active("") is True
    assert seen == []


@pytest.mark.asyncio
async def test_probe_requests_profile_page_with_user_agent(client_factory) -> None:
    seen, handler = _probe_with_status(200)
    async with client_factory("instagram", handler) as client:
        await LivenessProbe(client, BASE + "/", "Benign/1.0").is_active("https://instagram.com/alfalah.sg/")
    assert str(seen[0].url) == "https://www.instagram.example/alfalah.sg/"
    assert seen[0].method == "GET"
    assert seen[0].headers["User-Agent"] == "Benign/1.0"
