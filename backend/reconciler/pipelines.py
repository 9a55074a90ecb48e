"""
Reconciliation pipelines: what to scan, how to check one entity, which policy scores it.
The orchestrator drives them; a pipeline instance lives for exactly one run.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from shared.models.domain import Entity, UpdateProposal
from shared.models.enums import PipelineName
from shared.utils.logging import get_logger

from reconciler.confidence import (
    CERTIFICATION_POLICY,
    SOCIAL_LIVENESS_POLICY,
    SourcePolicy,
    build_proposal,
)
from reconciler.errors import SessionUnavailableError
from reconciler.liveness import LivenessProbe
from reconciler.session import Session, SessionAcquirer
from reconciler.sources.base import CertificationSource

logger = get_logger(__name__)


class ReconciliationPipeline(ABC):
    """Base for the scheduled pipelines."""

    name: PipelineName
    policy: SourcePolicy
    requires_session: bool = False
    active_only: bool = False

    def __init__(self, request_delay_s: float) -> None:
        self.request_delay_s = request_delay_s

    @property
    def scraper_name(self) -> str:
        return self.name.value

    async def prepare(self) -> None:
        """Per-run setup before the scan. Raise to abort the run."""

    def select(self, entities: Sequence[Entity]) -> list[Entity]:
        return list(entities)

    @abstractmethod
    async def check(self, entity: Entity) -> Optional[UpdateProposal]:
        """Query the external source for one entity; None when nothing should be proposed."""


class CertificationPipeline(ReconciliationPipeline):
    """Re-verifies every entity's certification status against the registry."""

    name = PipelineName.CERTIFICATION
    policy = CERTIFICATION_POLICY
    requires_session = True

    def __init__(
        self,
        acquirer: SessionAcquirer,
        source: CertificationSource,
        request_delay_s: float = 0.5,
    ) -> None:
        super().__init__(request_delay_s)
        self._acquirer = acquirer
        self._source = source
        self._session: Optional[Session] = None

    async def prepare(self) -> None:
        session = await self._acquirer.acquire()
        if not session.is_ready:
            raise SessionUnavailableError("Failed to get CSRF token from certification authority website")
        self._session = session

    async def check(self, entity: Entity) -> Optional[UpdateProposal]:
        if self._session is None:
            raise SessionUnavailableError("check() called before prepare()")
        result = await self._source.lookup(entity.name, entity.address, self._session)
        proposal = build_proposal(self.policy, entity.id, entity.status, result.status)
        if proposal is not None:
            logger.info(
                "certification_status_change",
                source=self._source.source_name,
                entity_id=entity.id,
                entity_name=entity.name,
                old_status=entity.status.value,
                new_status=result.status.value,
                tier=result.tier.value if result.tier else None,
            )
        return proposal


class SocialLivenessPipeline(ReconciliationPipeline):
    """Flags active entities whose Instagram profile is confirmed gone."""

    name = PipelineName.SOCIAL_LIVENESS
    policy = SOCIAL_LIVENESS_POLICY
    active_only = True

    def __init__(self, probe: LivenessProbe, request_delay_s: float = 0.15) -> None:
        super().__init__(request_delay_s)
        self._probe = probe

    def select(self, entities: Sequence[Entity]) -> list[Entity]:
        return [e for e in entities if e.is_active and e.instagram]

    async def check(self, entity: Entity) -> Optional[UpdateProposal]:
        active = await self._probe.is_active(entity.instagram or "")
        proposal = build_proposal(self.policy, entity.id, entity.is_active, active)
        if proposal is not None:
            logger.info("profile_flagged_inactive", entity_id=entity.id, entity_name=entity.name)
        return proposal
