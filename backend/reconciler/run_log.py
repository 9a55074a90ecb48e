"""
Run audit log: exactly one RunLog record per pipeline invocation.
"""
from __future__ import annotations

import time
from datetime import datetime
from typing import Optional, Sequence

from shared.models.domain import RunLog, utcnow
from shared.utils.logging import get_logger

from reconciler.store import CatalogStore

logger = get_logger(__name__)


class RunClock:
    """Wall-clock start stamp plus a monotonic timer for duration_ms."""

    def __init__(self) -> None:
        self.started_at: datetime = utcnow()
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._start) * 1000)


def success_log(
    scraper_name: str,
    clock: RunClock,
    entities_checked: int,
    updates_found: int,
    errors: Sequence[str],
) -> RunLog:
    return RunLog(
        scraper_name=scraper_name,
        timestamp=clock.started_at,
        entities_checked=entities_checked,
        updates_found=updates_found,
        errors=list(errors),
        duration_ms=clock.elapsed_ms,
    )


def failure_log(scraper_name: str, clock: RunClock, errors: Sequence[str]) -> RunLog:
    """Metrics are unknown after a fatal error, so both counters are None."""
    return RunLog(
        scraper_name=scraper_name,
        timestamp=clock.started_at,
        entities_checked=None,
        updates_found=None,
        errors=list(errors),
        duration_ms=clock.elapsed_ms,
    )


class RunLogger:
    """Appends run logs; a failed write is logged and never raised."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    async def write(self, run_log: Optional[RunLog]) -> bool:
        if run_log is None:
            return False
        try:
            await self._store.add_run_log(run_log)
        except Exception as exc:
            logger.exception("run_log_write_failed", scraper=run_log.scraper_name, error=str(exc))
            return False
        logger.info(
            "run_log_written",
            scraper=run_log.scraper_name,
            succeeded=run_log.succeeded,
            entities_checked=run_log.entities_checked,
            updates_found=run_log.updates_found,
            errors=len(run_log.errors),
            duration_ms=run_log.duration_ms,
        )
        return True
