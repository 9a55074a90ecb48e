"""
Session bootstrap against the certification authority's website.
Loads the public landing page once per run and pulls the anti-forgery token
out of the markup with an ordered chain of extractors, plus the session cookies.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import httpx
from bs4 import BeautifulSoup

from shared.utils.http_client import ExternalHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)

TokenExtractor = Callable[[str], Optional[str]]

_SCRIPT_TOKEN_RE = re.compile(r"""csrfToken["\s]*[:=]["\s]*["']([^"']+)["']""", re.IGNORECASE)


@dataclass(frozen=True)
class Session:
    """Ephemeral per-run credentials. Never persisted."""
    csrf_token: Optional[str]
    cookies: str = ""

    @property
    def is_ready(self) -> bool:
        return bool(self.csrf_token)


UNAVAILABLE = Session(csrf_token=None, cookies="")


def _attr(tag: object, name: str) -> Optional[str]:
    if tag is None:
        return None
    value = tag.get(name)  # type: ignore[attr-defined]
    if isinstance(value, list):
        value = " ".join(value)
    value = (value or "").strip()
    return value or None


def extract_hidden_input(html: str) -> Optional[str]:
    """Token from ``<input name="__RequestVerificationToken" value="...">``."""
    soup = BeautifulSoup(html, "html.parser")
    tag = soup.find("input", attrs={"name": re.compile(r"^__RequestVerificationToken$", re.I)})
    return _attr(tag, "value")


def extract_meta_tag(html: str) -> Optional[str]:
    """Token from ``<meta name="csrf-token" content="...">``."""
    soup = BeautifulSoup(html, "html.parser")
    tag = soup.find("meta", attrs={"name": re.compile(r"^csrf-token$", re.I)})
    return _attr(tag, "content")


def extract_script_variable(html: str) -> Optional[str]:
    """Token from an inline assignment such as ``csrfToken = "..."`` or ``csrfToken: '...'``."""
    match = _SCRIPT_TOKEN_RE.search(html)
    return match.group(1) if match else None


DEFAULT_EXTRACTORS: tuple[TokenExtractor, ...] = (
    extract_hidden_input,
    extract_meta_tag,
    extract_script_variable,
)


def extract_token(html: str, extractors: Sequence[TokenExtractor] = DEFAULT_EXTRACTORS) -> Optional[str]:
    """Run extractors in order; first non-empty result wins."""
    for extractor in extractors:
        token = extractor(html)
        if token:
            return token
    return None


def join_set_cookies(response: httpx.Response) -> str:
    """Collapse every Set-Cookie header into one Cookie request header value."""
    pairs = []
    for raw in response.headers.get_list("set-cookie"):
        pair = raw.split(";", 1)[0].strip()
        if pair:
            pairs.append(pair)
    return "; ".join(pairs)


class SessionAcquirer:
    """Fetches the base page and returns a Session; never raises on network failure."""

    def __init__(
        self,
        client: ExternalHTTPClient,
        base_url: str,
        user_agent: str,
        extractors: Sequence[TokenExtractor] = DEFAULT_EXTRACTORS,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._user_agent = user_agent
        self._extractors = tuple(extractors)

    async def acquire(self) -> Session:
        try:
            resp = await self._client.get(self._base_url, headers={"User-Agent": self._user_agent})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("session_fetch_failed", url=self._base_url, error=str(exc))
            return UNAVAILABLE

        cookies = join_set_cookies(resp)
        token = extract_token(resp.text, self._extractors)
        logger.info(
            "session_acquired",
            csrf_token_found=token is not None,
            csrf_token_length=len(token or ""),
            cookies_count=len(resp.headers.get_list("set-cookie")),
        )
        return Session(csrf_token=token, cookies=cookies)
