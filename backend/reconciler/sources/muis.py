"""
MUIS halal-establishment registry search.
JSON search endpoint guarded by the CSRF token and cookies from the landing page.
"""
from __future__ import annotations

from typing import Any

import httpx

from shared.models.enums import CertificationStatus
from shared.utils.http_client import ExternalHTTPClient
from shared.utils.logging import get_logger

from reconciler.matching import Candidate, ExternalMatcher, MatchResult
from reconciler.session import Session
from reconciler.sources.base import CertificationSource

logger = get_logger(__name__)


class MuisCertificationSource(CertificationSource):
    """POSTs ``{"text": name}`` to the registry search and matches the ``data`` array."""

    def __init__(
        self,
        client: ExternalHTTPClient,
        search_url: str,
        origin: str,
        referer: str,
        user_agent: str,
        matcher: ExternalMatcher | None = None,
    ) -> None:
        self._client = client
        self._search_url = search_url
        self._origin = origin
        self._referer = referer
        self._user_agent = user_agent
        self._matcher = matcher or ExternalMatcher()

    @property
    def source_name(self) -> str:
        return "muis"

    def _headers(self, session: Session) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
            "X-CSRF-TOKEN": session.csrf_token or "",
            "Cookie": session.cookies,
            "Origin": self._origin,
            "Referer": self._referer,
        }

    async def search(self, text: str, session: Session) -> list[dict[str, Any]]:
        """Raw search; raises httpx.HTTPError or ValueError on failure."""
        resp = await self._client.post(self._search_url, json={"text": text}, headers=self._headers(session))
        resp.raise_for_status()
        payload = resp.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def lookup(self, name: str, address: str, session: Session) -> MatchResult:
        try:
            records = await self.search(name, session)
        except (httpx.HTTPError, ValueError) as exc:
            status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
            logger.error("muis_search_failed", entity_name=name, status=status, error=str(exc))
            return MatchResult(status=CertificationStatus.UNKNOWN)

        result = self._matcher.match((Candidate.from_payload(r) for r in records), name, address)
        if result.matched is not None:
            logger.debug(
                "muis_match",
                entity_name=name,
                tier=result.tier.value if result.tier else None,
                matched_name=result.matched.name,
            )
        return result
