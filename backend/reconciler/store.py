"""
Catalog datastore access for the pipelines.
Entities are read once at the start of a run; proposals and run logs are append-only.
"""
from __future__ import annotations

from typing import Protocol, Sequence

from pydantic import ValidationError
from sqlalchemy import select

from shared.models.domain import Entity, RunLog, UpdateProposal
from shared.models.orm import EntityORM, RunLogORM, UpdateProposalORM
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger

from reconciler.errors import ProposalCommitError

logger = get_logger(__name__)


class CatalogStore(Protocol):
    async def load_entities(self, active_only: bool = False) -> list[Entity]:
        ...

    async def add_proposals(self, proposals: Sequence[UpdateProposal]) -> None:
        """Write all proposals or none of them."""
        ...

    async def add_run_log(self, run_log: RunLog) -> None:
        ...


class SqlCatalogStore:
    """CatalogStore over the Postgres tables."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def load_entities(self, active_only: bool = False) -> list[Entity]:
        async with self._db.read_session() as session:
            stmt = select(EntityORM).order_by(EntityORM.id)
            if active_only:
                stmt = stmt.where(EntityORM.is_active.is_(True))
            rows = (await session.execute(stmt)).scalars().all()

        entities: list[Entity] = []
        for row in rows:
            try:
                entities.append(Entity.model_validate(row))
            except ValidationError as exc:
                logger.warning(
                    "entity_row_skipped",
                    entity_id=getattr(row, "id", None),
                    errors=exc.error_count(),
                    error=str(exc),
                )
        return entities

    async def add_proposals(self, proposals: Sequence[UpdateProposal]) -> None:
        if not proposals:
            return
        try:
            async with self._db.write_session() as session:
                session.add_all([
                    UpdateProposalORM(**p.model_dump(mode="json", exclude={"timestamp"}), timestamp=p.timestamp)
                    for p in proposals
                ])
        except Exception as exc:
            raise ProposalCommitError(f"batch of {len(proposals)} proposals rolled back: {exc}") from exc
        logger.info("proposals_committed", count=len(proposals))

    async def add_run_log(self, run_log: RunLog) -> None:
        async with self._db.write_session() as session:
            session.add(RunLogORM(**run_log.model_dump(mode="json", exclude={"timestamp"}), timestamp=run_log.timestamp))
