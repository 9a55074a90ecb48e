"""
Tiered matching of a local entity against candidates from an external search.
Exact name, then partial name, then postal code; first hit wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from shared.models.enums import CertificationStatus, MatchTier


@dataclass(frozen=True)
class Candidate:
    """One record returned by the external search."""
    name: str
    postal: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Candidate":
        postal = payload.get("postal")
        return cls(
            name=str(payload.get("name") or ""),
            postal="" if postal is None else str(postal).strip(),
            raw=payload,
        )


@dataclass(frozen=True)
class MatchResult:
    status: CertificationStatus
    matched: Optional[Candidate] = None
    tier: Optional[MatchTier] = None


def _norm(value: str) -> str:
    return (value or "").strip().lower()


def _exact(candidates: Sequence[Candidate], name: str, address: str) -> Optional[Candidate]:
    if not name:
        return None
    return next((c for c in candidates if _norm(c.name) and _norm(c.name) == name), None)


def _partial(candidates: Sequence[Candidate], name: str, address: str) -> Optional[Candidate]:
    if not name:
        return None
    for c in candidates:
        other = _norm(c.name)
        if other and (name in other or other in name):
            return c
    return None


def _postal(candidates: Sequence[Candidate], name: str, address: str) -> Optional[Candidate]:
    if not address:
        return None
    return next((c for c in candidates if c.postal and c.postal in address), None)


_TIERS = (
    (MatchTier.EXACT, _exact),
    (MatchTier.PARTIAL, _partial),
    (MatchTier.POSTAL, _postal),
)


class ExternalMatcher:
    """
    Decides whether a local entity appears among external candidates.

    A miss is a definitive ``NOT_CERTIFIED``: the search answered and the
    entity was not in it. ``UNKNOWN`` is reserved for failed queries and is
    never produced here.
    """

    def match(self, candidates: Iterable[Candidate], name: str, address: str) -> MatchResult:
        pool = list(candidates)
        local_name = _norm(name)
        if not pool:
            return MatchResult(status=CertificationStatus.NOT_CERTIFIED)
        for tier, finder in _TIERS:
            hit = finder(pool, local_name, address or "")
            if hit is not None:
                return MatchResult(status=CertificationStatus.CERTIFIED, matched=hit, tier=tier)
        return MatchResult(status=CertificationStatus.NOT_CERTIFIED)
