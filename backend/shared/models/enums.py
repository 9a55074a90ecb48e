"""Domain enumerations for the catalog reconciliation pipelines."""
from __future__ import annotations

from enum import Enum


class CertificationStatus(str, Enum):
    """Halal-certification status stored on a catalog entity."""
    CERTIFIED = "MUIS Halal-Certified"
    NOT_CERTIFIED = "Not Certified"
    # Sentinel: the source could not answer. Never written as a new value.
    UNKNOWN = "Unknown"

    @property
    def is_definitive(self) -> bool:
        return self is not CertificationStatus.UNKNOWN


class ProposalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PipelineName(str, Enum):
    """Scraper names as recorded on run logs."""
    CERTIFICATION = "MUIS_API"
    SOCIAL_LIVENESS = "INSTAGRAM_ACTIVITY"


class RunState(str, Enum):
    """Lifecycle of one pipeline invocation."""
    IDLE = "idle"
    SESSION_READY = "session_ready"
    SCANNING = "scanning"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


class MatchTier(str, Enum):
    """Which matching strategy identified an external record."""
    EXACT = "exact"
    PARTIAL = "partial"
    POSTAL = "postal"
