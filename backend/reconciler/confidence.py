"""
Confidence policy per source and the proposal decision rule.
Confidence is a fixed trust weight attached to the source, not a per-match statistic:
1.0 for the official registry lookup, 0.6 for the profile-liveness heuristic.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from shared.models.domain import UpdateProposal, utcnow
from shared.models.enums import CertificationStatus


@dataclass(frozen=True)
class SourcePolicy:
    """
    How much a source is trusted and what it reports when it cannot tell.

    ``ambiguous_result`` is the value the source returns for an unclear
    signal. It is chosen so that an ambiguous answer never turns into a
    proposal: ``Unknown`` is excluded outright, and "still active" equals
    the stored value of every entity the liveness scan looks at.
    """
    source: str
    field: str
    confidence: float
    ambiguous_result: Any


CERTIFICATION_POLICY = SourcePolicy(
    source="MUIS API",
    field="status",
    confidence=1.0,
    ambiguous_result=CertificationStatus.UNKNOWN,
)

# Needs manual review: an unreachable profile is never proof the business closed.
SOCIAL_LIVENESS_POLICY = SourcePolicy(
    source="Instagram Activity Check",
    field="isActive",
    confidence=0.6,
    ambiguous_result=True,
)


def should_propose(observed: Any, stored: Any) -> bool:
    """Only a definitive observation that differs from the stored value is worth reviewing."""
    if isinstance(observed, CertificationStatus) and not observed.is_definitive:
        return False
    return observed != stored


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, CertificationStatus) else value


def build_proposal(
    policy: SourcePolicy,
    entity_id: str,
    stored: Any,
    observed: Any,
    now: Optional[datetime] = None,
) -> Optional[UpdateProposal]:
    """Return a pending proposal for ``observed``, or None when the rule says no."""
    if not should_propose(observed, stored):
        return None
    return UpdateProposal(
        entity_id=entity_id,
        field=policy.field,
        old_value=_plain(stored),
        new_value=_plain(observed),
        source=policy.source,
        confidence=policy.confidence,
        timestamp=now or utcnow(),
    )
