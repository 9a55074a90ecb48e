"""
Reconciler service entrypoint.
Schedules the certification and social-liveness pipelines on cron triggers,
or runs one pipeline immediately when HR_RECONCILER_RUN_ONCE is set.
"""
from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
import uuid
from pathlib import Path
from typing import AsyncIterator, Optional

# Ensure backend root is on path when run as python -m reconciler.main
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from shared.config import get_settings
from shared.models.domain import RunLog
from shared.models.enums import PipelineName
from shared.utils.database import DatabaseManager
from shared.utils.http_client import ExternalHTTPClient
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server
from shared.utils.redis_manager import RedisManager

from reconciler.config import ReconcilerSettings, get_reconciler_settings
from reconciler.engine import RunOrchestrator
from reconciler.liveness import LivenessProbe
from reconciler.pipelines import CertificationPipeline, ReconciliationPipeline, SocialLivenessPipeline
from reconciler.session import SessionAcquirer
from reconciler.sources.muis import MuisCertificationSource
from reconciler.store import CatalogStore, SqlCatalogStore

logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def build_pipeline(
    name: PipelineName,
    settings: ReconcilerSettings,
) -> AsyncIterator[ReconciliationPipeline]:
    """Fresh pipeline and HTTP client for one run; the client closes with the block."""
    if name == PipelineName.CERTIFICATION:
        async with ExternalHTTPClient(
            "muis",
            timeout_s=max(settings.session_timeout_s, settings.search_timeout_s),
            verify=settings.verify_tls,
            follow_redirects=True,
        ) as client:
            yield CertificationPipeline(
                acquirer=SessionAcquirer(client, settings.muis_base_url, settings.browser_user_agent),
                source=MuisCertificationSource(
                    client,
                    search_url=settings.muis_search_url,
                    origin=settings.muis_origin,
                    referer=settings.muis_base_url,
                    user_agent=settings.browser_user_agent,
                ),
                request_delay_s=settings.certification_delay_s,
            )
    else:
        # 3xx must reach the probe as a status, so redirects stay off here.
        async with ExternalHTTPClient("instagram", timeout_s=settings.probe_timeout_s) as client:
            yield SocialLivenessPipeline(
                probe=LivenessProbe(client, settings.instagram_base_url, settings.probe_user_agent),
                request_delay_s=settings.liveness_delay_s,
            )


def _budget_s(name: PipelineName, settings: ReconcilerSettings) -> float:
    if name == PipelineName.CERTIFICATION:
        return settings.certification_budget_s
    return settings.liveness_budget_s


async def run_pipeline(
    name: PipelineName,
    store: CatalogStore,
    settings: ReconcilerSettings,
    redis: Optional[RedisManager] = None,
    owner: str = "",
) -> Optional[RunLog]:
    """
    One scheduled invocation under the run lock and the host time budget.

    Returns None when another instance already holds the lock.
    """
    lock = (
        redis.run_lock(name.value, owner or uuid.uuid4().hex, settings.run_lock_ttl_s)
        if redis is not None
        else contextlib.nullcontext(True)
    )
    async with lock as acquired:
        if not acquired:
            logger.warning("run_skipped_locked", pipeline=name.value)
            return None
        async with build_pipeline(name, settings) as pipeline:
            orchestrator = RunOrchestrator(store, dry_run=settings.dry_run)
            return await asyncio.wait_for(orchestrator.run(pipeline), timeout=_budget_s(name, settings))


def register_jobs(
    scheduler: AsyncIOScheduler,
    store: CatalogStore,
    settings: ReconcilerSettings,
    redis: Optional[RedisManager],
    owner: str,
) -> None:
    schedules = {
        PipelineName.CERTIFICATION: settings.certification_cron,
        PipelineName.SOCIAL_LIVENESS: settings.liveness_cron,
    }
    for name, cron in schedules.items():
        scheduler.add_job(
            run_pipeline,
            CronTrigger.from_crontab(cron, timezone=settings.timezone),
            args=[name, store, settings, redis, owner],
            id=name.value,
            name=name.value,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
            replace_existing=True,
        )
        logger.info("pipeline_scheduled", pipeline=name.value, cron=cron, timezone=settings.timezone)


async def main() -> None:
    setup_logging("reconciler")
    settings = get_settings()
    reconciler_settings = get_reconciler_settings()
    owner = settings.instance_id or uuid.uuid4().hex[:8]

    db = DatabaseManager(settings)
    redis = RedisManager(settings) if settings.redis_url else None
    try:
        await db.connect()
        if redis is not None:
            await redis.connect()
    except Exception as e:
        logger.exception("startup_connect_failed", error=str(e))
        raise

    store = SqlCatalogStore(db)
    try:
        if reconciler_settings.run_once is not None:
            await run_pipeline(reconciler_settings.run_once, store, reconciler_settings, redis, owner)
            return

        start_metrics_server()
        scheduler = AsyncIOScheduler(timezone=reconciler_settings.timezone)
        register_jobs(scheduler, store, reconciler_settings, redis, owner)
        scheduler.start()

        shutdown = asyncio.Event()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                asyncio.get_running_loop().add_signal_handler(sig, shutdown.set)
            except NotImplementedError:
                pass

        logger.info("reconciler_started", dry_run=reconciler_settings.dry_run)
        await shutdown.wait()
        scheduler.shutdown(wait=False)
    finally:
        if redis is not None:
            await redis.disconnect()
        await db.disconnect()
        logger.info("reconciler_stopped")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
