"""
Unit tests for the proposal decision rule and per-source confidence policy.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from reconciler.confidence import (
    CERTIFICATION_POLICY,
    SOCIAL_LIVENESS_POLICY,
    build_proposal,
    should_propose,
)
from shared.models.domain import UpdateProposal
from shared.models.enums import CertificationStatus, ProposalStatus

C = CertificationStatus


# ── should_propose ──────────────────────────────────────────────────────

@pytest.mark.parametrize("stored", list(C))
def test_unknown_observation_never_proposes(stored: C) -> None:
    assert should_propose(C.UNKNOWN, stored) is False


@pytest.mark.parametrize("status", [C.CERTIFIED, C.NOT_CERTIFIED])
def test_unchanged_observation_never_proposes(status: C) -> None:
    assert should_propose(status, status) is False


def test_changed_definitive_observation_proposes() -> None:
    assert should_propose(C.CERTIFIED, C.NOT_CERTIFIED) is True
    assert should_propose(C.NOT_CERTIFIED, C.UNKNOWN) is True
    assert should_propose(False, True) is True
    assert should_propose(True, True) is False


# ── build_proposal ──────────────────────────────────────────────────────

def test_certification_proposal_has_full_confidence() -> None:
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    p = build_proposal(CERTIFICATION_POLICY, "r1", C.NOT_CERTIFIED, C.CERTIFIED, now=now)
    assert p is not None
    assert p.field == "status"
    assert p.old_value == "Not Certified"
    assert p.new_value == "MUIS Halal-Certified"
    assert p.source == "MUIS API"
    assert p.confidence == 1.0
    assert p.status == ProposalStatus.PENDING
    assert p.timestamp == now


def test_liveness_proposal_needs_review() -> None:
    p = build_proposal(SOCIAL_LIVENESS_POLICY, "r1", True, False)
    assert p is not None
    assert p.field == "isActive"
    assert (p.old_value, p.new_value) == (True, False)
    assert p.confidence == 0.6
    assert p.confidence < CERTIFICATION_POLICY.confidence


def test_build_proposal_returns_none_when_rule_declines() -> None:
    assert build_proposal(CERTIFICATION_POLICY, "r1", C.CERTIFIED, C.UNKNOWN) is None
    assert build_proposal(CERTIFICATION_POLICY, "r1", C.CERTIFIED, C.CERTIFIED) is None
    assert build_proposal(SOCIAL_LIVENESS_POLICY, "r1", True, SOCIAL_LIVENESS_POLICY.ambiguous_result) is None


# ── UpdateProposal invariants ───────────────────────────────────────────

def _proposal(**overrides: object) -> UpdateProposal:
    fields: dict[str, object] = dict(
        entity_id="r1", field="status", old_value="Not Certified",
        new_value="MUIS Halal-Certified", source="MUIS API", confidence=1.0,
    )
    fields.update(overrides)
    return UpdateProposal(**fields)


def test_proposal_rejects_noop() -> None:
    with pytest.raises(ValidationError):
        _proposal(new_value="Not Certified")


def test_proposal_rejects_unknown_new_value() -> None:
    with pytest.raises(ValidationError):
        _proposal(new_value="Unknown")


@pytest.mark.parametrize("confidence", [-0.1, 1.5])
def test_proposal_confidence_bounds(confidence: float) -> None:
    with pytest.raises(ValidationError):
        _proposal(confidence=confidence)
