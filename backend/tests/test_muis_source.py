"""
Unit tests for the registry search source: request shape and failure mapping.
"""
from __future__ import annotations

import json

import httpx
import pytest

from reconciler.session import Session
from reconciler.sources.muis import MuisCertificationSource
from shared.models.enums import CertificationStatus, MatchTier

SEARCH_URL = "https://halal.example.sg/api/halal/establishments"
SESSION = Session(csrf_token="tok-123", cookies="sid=1; other=2")


def _source(client) -> MuisCertificationSource:
    return MuisCertificationSource(
        client,
        search_url=SEARCH_URL,
        origin="https://halal.example.sg",
        referer="https://halal.example.sg/",
        user_agent="Mozilla/5.0 test",
    )


@pytest.mark.asyncio
async def test_search_request_carries_session_headers_and_body(client_factory) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": []})

    async with client_factory("muis", handler) as client:
        await _source(client).lookup("Al-Falah Restaurant", "123456", SESSION)

    req = seen[0]
    assert req.method == "POST"
    assert str(req.url) == SEARCH_URL
    assert json.loads(req.content) == {"text": "Al-Falah Restaurant"}
    assert req.headers["X-CSRF-TOKEN"] == "tok-123"
    assert req.headers["Cookie"] == "sid=1; other=2"
    assert req.headers["Origin"] == "https://halal.example.sg"
    assert req.headers["Referer"] == "https://halal.example.sg/"
    assert req.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_partial_match_scenario_is_certified(client_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"name": "AL-FALAH RESTAURANT PTE LTD", "postal": "123456"}]})

    async with client_factory("muis", handler) as client:
        result = await _source(client).lookup("Al-Falah Restaurant", "1 Jalan Besar 123456", SESSION)

    assert result.status == CertificationStatus.CERTIFIED
    assert result.tier == MatchTier.PARTIAL


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"data": []}, {"data": None}, {}, {"data": "nope"}, []])
async def test_empty_or_malformed_data_is_definitive_negative(client_factory, payload: object) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    async with client_factory("muis", handler) as client:
        result = await _source(client).lookup("Anything", "", SESSION)

    assert result.status == CertificationStatus.NOT_CERTIFIED


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 403, 419, 429, 500, 503])
async def test_http_error_status_maps_to_unknown(client_factory, status: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"message": "error"})

    async with client_factory("muis", handler) as client:
        result = await _source(client).lookup("Anything", "", SESSION)

    assert result.status == CertificationStatus.UNKNOWN


@pytest.mark.asyncio
async def test_timeout_maps_to_unknown(client_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with client_factory("muis", handler) as client:
        result = await _source(client).lookup("Anything", "", SESSION)

    assert result.status == CertificationStatus.UNKNOWN


@pytest.mark.asyncio
async def test_invalid_json_maps_to_unknown(client_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    async with client_factory("muis", handler) as client:
        result = await _source(client).lookup("Anything", "", SESSION)

    assert result.status == CertificationStatus.UNKNOWN
