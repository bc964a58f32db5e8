"""Cron-driven reconciliation runs."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.config import Settings
from commerce_recon.platforms import PlatformAdapter, build_adapters
from commerce_recon.reconciliation_engine.service import ReconciliationEngine

logger = logging.getLogger("recon.scheduler")

JOB_ID = "scheduled-reconciliation"


class ReconciliationScheduler:
    """Runs a reconciliation over the lookback window on a crontab schedule.

    Failures are logged, never raised; the next tick is the retry.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: Callable[[], AsyncSession],
        run_lock: asyncio.Lock,
        adapter_factory: Callable[[Settings], list[PlatformAdapter]] = build_adapters,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.run_lock = run_lock
        self.adapter_factory = adapter_factory
        self._scheduler: AsyncIOScheduler | None = None

    def start(self) -> None:
        if self._scheduler is not None:
            return
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self.run_once,
            CronTrigger.from_crontab(self.settings.reconciliation_cron_schedule, timezone="UTC"),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "Reconciliation scheduled with cron '%s', looking back %d days",
            self.settings.reconciliation_cron_schedule,
            self.settings.reconciliation_lookback_days,
        )

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")

    def get_status(self) -> dict:
        jobs = self._scheduler.get_jobs() if self._scheduler is not None else []
        return {
            "running": self._scheduler is not None and self._scheduler.running,
            "jobs": len(jobs),
            "schedule": self.settings.reconciliation_cron_schedule,
            "lookback_days": self.settings.reconciliation_lookback_days,
        }

    async def run_once(self) -> str | None:
        """One scheduled pass. Returns the run id, or None if skipped or failed."""
        if self.run_lock.locked():
            logger.warning("Skipping scheduled reconciliation: a run is already in progress")
            return None

        end = datetime.now(timezone.utc)
        start = end - timedelta(days=self.settings.reconciliation_lookback_days)
        engine = ReconciliationEngine(self.settings, self.adapter_factory(self.settings))

        async with self.run_lock:
            async with self.session_factory() as db:
                try:
                    run_id = await engine.reconcile(db, start, end, run_by="scheduler")
                except Exception as e:
                    logger.error("Scheduled reconciliation failed: %s", e)
                    return None

        logger.info("Scheduled reconciliation completed: %s", run_id)
        return run_id
