"""
Pydantic v2 domain models shared across the reconciliation services.
These are the canonical internal representations — NOT ORM models.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.models.enums import CertificationStatus, ProposalStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ── Catalog ─────────────────────────────────────────────────────────────
class Entity(DomainModel):
    """A catalog entry as read at the start of a run. Never written by the pipelines."""
    id: str
    name: str
    address: str = ""
    status: CertificationStatus = CertificationStatus.UNKNOWN
    is_active: bool = True
    # Catalog rows may carry explicit nulls for unset networks.
    socials: dict[str, Optional[str]] = Field(default_factory=dict)

    @property
    def instagram(self) -> Optional[str]:
        return self.socials.get("instagram") or None


# ── Proposals ───────────────────────────────────────────────────────────
class UpdateProposal(DomainModel):
    """A staged, unapplied change to one entity field awaiting review."""
    entity_id: str
    field: str
    old_value: Any = None
    new_value: Any = None
    source: str
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=utcnow)
    status: ProposalStatus = ProposalStatus.PENDING

    @model_validator(mode="after")
    def reject_noop_and_unknown(self) -> "UpdateProposal":
        if self.new_value == self.old_value:
            raise ValueError("proposal new_value equals old_value")
        if self.new_value == CertificationStatus.UNKNOWN:
            raise ValueError("proposal new_value is the Unknown sentinel")
        return self


# ── Audit ───────────────────────────────────────────────────────────────
class RunLog(DomainModel):
    """
    One record per pipeline invocation.

    ``entities_checked`` and ``updates_found`` are None when the run failed
    before producing metrics.
    """
    scraper_name: str
    timestamp: datetime = Field(default_factory=utcnow)
    entities_checked: Optional[int] = None
    updates_found: Optional[int] = None
    errors: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.entities_checked is not None
