"""
Profile liveness probe for the social-presence pipeline.
Only the HTTP status code of the public profile page is inspected.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

import httpx

from shared.utils.http_client import ExternalHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# Statuses that confirm the profile is gone.
INACTIVE_STATUS_CODES = frozenset({404, 410})

# Rate limits, blocks, server errors and network failures say nothing about
# the profile; treat them as active so they never queue a deactivation.
ASSUME_ACTIVE_ON_AMBIGUOUS = True


def extract_username(profile: str) -> Optional[str]:
    """Username from a profile URL, ``instagram.com/name`` or a bare ``@name`` handle."""
    value = (profile or "").strip()
    if not value:
        return None
    path = urlsplit(value).path if "://" in value else value.split("?", 1)[0].split("#", 1)[0]
    segments = [s for s in path.split("/") if s]
    if not segments:
        return None
    username = segments[-1].lstrip("@")
    return username or None


class LivenessProbe:
    """Answers "is this profile still considered active?"."""

    def __init__(self, client: ExternalHTTPClient, base_url: str, user_agent: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent

    def profile_url(self, username: str) -> str:
        return f"{self._base_url}/{username}/"

    async def is_active(self, profile: str) -> bool:
        username = extract_username(profile)
        if not username:
            logger.debug("liveness_no_username", profile=profile)
            return ASSUME_ACTIVE_ON_AMBIGUOUS

        url = self.profile_url(username)
        try:
            resp = await self._client.get(url, headers={"User-Agent": self._user_agent})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("liveness_probe_failed", url=url, error=str(exc))
            return ASSUME_ACTIVE_ON_AMBIGUOUS

        if resp.status_code in INACTIVE_STATUS_CODES:
            return False
        if 200 <= resp.status_code < 400:
            return True
        logger.info("liveness_ambiguous_status", url=url, status=resp.status_code)
        return ASSUME_ACTIVE_ON_AMBIGUOUS
