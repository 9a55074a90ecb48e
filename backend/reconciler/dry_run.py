"""
Dry-run reporting: summarise the proposals a run would have staged instead of writing them.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from shared.models.domain import UpdateProposal
from shared.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DryRunSummary:
    total_updates: int = 0
    by_field: dict[str, int] = field(default_factory=dict)
    by_source: dict[str, int] = field(default_factory=dict)
    by_entity: dict[str, int] = field(default_factory=dict)


def summarize(proposals: Sequence[UpdateProposal]) -> DryRunSummary:
    return DryRunSummary(
        total_updates=len(proposals),
        by_field=dict(Counter(p.field for p in proposals)),
        by_source=dict(Counter(p.source for p in proposals)),
        by_entity=dict(Counter(p.entity_id for p in proposals)),
    )


def report(scraper_name: str, proposals: Sequence[UpdateProposal]) -> DryRunSummary:
    """Log every would-be proposal and the summary; writes nothing."""
    for p in proposals:
        logger.info(
            "dry_run_would_propose",
            scraper=scraper_name,
            entity_id=p.entity_id,
            field=p.field,
            old_value=p.old_value,
            new_value=p.new_value,
            source=p.source,
            confidence=p.confidence,
        )
    summary = summarize(proposals)
    logger.info(
        "dry_run_summary",
        scraper=scraper_name,
        total_updates=summary.total_updates,
        by_field=summary.by_field,
        by_source=summary.by_source,
    )
    return summary
