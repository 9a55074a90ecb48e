"""
Run orchestrator.
Loads the entity snapshot, scans entities one at a time behind the throttle,
isolates per-entity failures, commits proposals in one batch and always leaves a run log.
"""
from __future__ import annotations

import asyncio
import uuid
from typing import Optional

import structlog

from shared.models.domain import RunLog, UpdateProposal
from shared.models.enums import RunState
from shared.utils.logging import get_logger
from shared.utils.metrics import (
    ENTITIES_CHECKED,
    ENTITY_ERRORS,
    PIPELINE_RUNS,
    PROPOSALS_STAGED,
    RUN_DURATION,
)

from reconciler import dry_run
from reconciler.pipelines import ReconciliationPipeline
from reconciler.rate_limiter import FixedDelayThrottle, Sleeper
from reconciler.run_log import RunClock, RunLogger, failure_log, success_log
from reconciler.store import CatalogStore

logger = get_logger(__name__)


class RunOrchestrator:
    """
    Drives one invocation of a pipeline.

    States: idle -> session_ready (session pipelines only) -> scanning ->
    committing (only when proposals were buffered) -> done; any fatal error
    ends in failed. Nothing is committed before the scan has finished.
    """

    def __init__(
        self,
        store: CatalogStore,
        dry_run: bool = False,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._store = store
        self._run_logger = RunLogger(store)
        self._dry_run = dry_run
        self._sleep = sleep
        self.state = RunState.IDLE

    def _transition(self, new_state: RunState) -> None:
        logger.debug("run_state_changed", old=self.state.value, new=new_state.value)
        self.state = new_state

    async def run(self, pipeline: ReconciliationPipeline) -> RunLog:
        """Execute the pipeline; re-raises a fatal error after its run log is written."""
        name = pipeline.scraper_name
        clock = RunClock()
        throttle = FixedDelayThrottle(pipeline.request_delay_s, sleep=self._sleep)
        errors: list[str] = []
        proposals: list[UpdateProposal] = []
        checked = 0
        run_log: Optional[RunLog] = None
        self.state = RunState.IDLE

        structlog.contextvars.bind_contextvars(pipeline=name, run_id=uuid.uuid4().hex[:12])
        logger.info("run_started", dry_run=self._dry_run)
        try:
            await pipeline.prepare()
            if pipeline.requires_session:
                self._transition(RunState.SESSION_READY)

            entities = pipeline.select(await self._store.load_entities(active_only=pipeline.active_only))
            self._transition(RunState.SCANNING)
            logger.info("scan_started", entities=len(entities))

            for entity in entities:
                await throttle.wait()
                try:
                    proposal = await pipeline.check(entity)
                except Exception as exc:
                    message = f"Error checking {entity.name}: {exc}"
                    logger.error("entity_check_failed", entity_id=entity.id, error=str(exc))
                    ENTITY_ERRORS.labels(pipeline=name).inc()
                    errors.append(message)
                    continue
                checked += 1
                if proposal is not None:
                    proposals.append(proposal)
            ENTITIES_CHECKED.labels(pipeline=name).inc(checked)

            if proposals:
                self._transition(RunState.COMMITTING)
                if self._dry_run:
                    dry_run.report(name, proposals)
                else:
                    await self._store.add_proposals(proposals)
                    for p in proposals:
                        PROPOSALS_STAGED.labels(pipeline=name, field=p.field).inc()
            else:
                logger.info("no_changes_found")

            self._transition(RunState.DONE)
            run_log = success_log(name, clock, checked, len(proposals), errors)
            PIPELINE_RUNS.labels(pipeline=name, outcome="success").inc()
            logger.info(
                "run_complete",
                checked=checked,
                updates=len(proposals),
                errors=len(errors),
                duration_s=round(clock.elapsed_ms / 1000, 2),
            )
            return run_log
        except asyncio.CancelledError:
            self._transition(RunState.FAILED)
            run_log = failure_log(name, clock, [*errors, "run cancelled before completion"])
            PIPELINE_RUNS.labels(pipeline=name, outcome="cancelled").inc()
            logger.error("run_cancelled", checked=checked, buffered_proposals=len(proposals))
            raise
        except Exception as exc:
            self._transition(RunState.FAILED)
            run_log = failure_log(name, clock, [*errors, f"{type(exc).__name__}: {exc}"])
            PIPELINE_RUNS.labels(pipeline=name, outcome="failure").inc()
            logger.exception("run_failed", error=str(exc))
            raise
        finally:
            if run_log is None:
                # KeyboardInterrupt, SystemExit and other BaseExceptions
                self._transition(RunState.FAILED)
                run_log = failure_log(name, clock, [*errors, "run interrupted before completion"])
                PIPELINE_RUNS.labels(pipeline=name, outcome="interrupted").inc()
            RUN_DURATION.labels(pipeline=name).observe(clock.elapsed_ms / 1000)
            await self._run_logger.write(run_log)
            structlog.contextvars.unbind_contextvars("pipeline", "run_id")
