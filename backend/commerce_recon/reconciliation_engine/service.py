"""ReconciliationEngine — reconciles Shopify orders against Razorpay and Easyecom.

Flow:
1. Validate the window and open a RUNNING run log
2. Sync all three platforms (concurrent fetches) for the same window
3. Load normalized records per platform, newest first
4. Match, claim, and classify (RunAggregator)
5. Persist outcomes and finalize the run log as COMPLETED
6. On any failure roll back, finalize as FAILED, and re-raise
"""

import dataclasses
import logging
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.audit_generator.service import (
    RUN_COMPLETED,
    RUN_ENTITY,
    RUN_FAILED,
    AuditService,
)
from commerce_recon.config import Settings
from commerce_recon.models.reconciliation import ReconciliationOutcome, RunStatus
from commerce_recon.platforms.base import PlatformAdapter
from commerce_recon.platforms.sync import sync_all
from commerce_recon.reconciliation_engine.aggregator import RunAggregator
from commerce_recon.reconciliation_engine.errors import InvalidRangeError
from commerce_recon.reconciliation_engine.matchers import (
    EASYECOM_PROFILE,
    RAZORPAY_PROFILE,
    MatchProfile,
)
from commerce_recon.reconciliation_engine.normalizer import SourceKind, ensure_utc
from commerce_recon.reconciliation_engine.store import ReconciliationStore

logger = logging.getLogger("recon.engine")


def profiles_from_settings(settings: Settings) -> tuple[MatchProfile, MatchProfile]:
    tolerance = Decimal(str(settings.amount_tolerance_pct))
    return (
        dataclasses.replace(
            RAZORPAY_PROFILE,
            amount_tolerance_pct=tolerance,
            window_hours=settings.razorpay_window_hours,
        ),
        dataclasses.replace(
            EASYECOM_PROFILE,
            amount_tolerance_pct=tolerance,
            window_hours=settings.easyecom_window_hours,
        ),
    )


def new_run_id() -> str:
    return f"RUN_{datetime.now(timezone.utc):%Y%m%d%H%M%S}_{uuid.uuid4().hex[:8]}"


class ReconciliationEngine:
    """Runs reconciliation passes over an explicit set of platform adapters.

    The engine does not serialize concurrent runs; callers must.
    """

    def __init__(self, settings: Settings, adapters: list[PlatformAdapter]):
        self.settings = settings
        self.adapters = adapters
        self.razorpay_profile, self.easyecom_profile = profiles_from_settings(settings)

    async def reconcile(
        self,
        db: AsyncSession,
        start: datetime,
        end: datetime,
        run_by: str = "system",
    ) -> str:
        """Run a full reconciliation over [start, end]. Returns the run id."""
        start, end = ensure_utc(start), ensure_utc(end)
        if start >= end:
            raise InvalidRangeError(
                f"start ({start.isoformat()}) must be before end ({end.isoformat()})"
            )

        store = ReconciliationStore(db)
        run_id = new_run_id()
        started = time.perf_counter()
        logger.info("Starting reconciliation run %s from %s to %s", run_id, start.isoformat(), end.isoformat())

        await store.create_run_log(run_id, start, end, run_by)
        await db.commit()

        try:
            counts = await sync_all(db, self.adapters, start, end)
            await db.commit()
            logger.info("Run %s synced %s", run_id, counts)

            shopify_orders = await store.load_records(SourceKind.SHOPIFY, start, end)
            razorpay_payments = await store.load_records(SourceKind.RAZORPAY, start, end)
            easyecom_orders = await store.load_records(SourceKind.EASYECOM, start, end)
            logger.info(
                "Run %s loaded %d Shopify orders, %d Razorpay payments, %d Easyecom orders",
                run_id, len(shopify_orders), len(razorpay_payments), len(easyecom_orders),
            )

            aggregator = RunAggregator(
                razorpay_profile=self.razorpay_profile,
                easyecom_profile=self.easyecom_profile,
            )
            outcomes = aggregator.reconcile(shopify_orders, razorpay_payments, easyecom_orders)
            totals = aggregator.totals()

            await store.append_outcomes(run_id, outcomes)
            await store.finalize_run_log(
                run_id,
                RunStatus.COMPLETED,
                totals=totals,
                processing_time_ms=int((time.perf_counter() - started) * 1000),
            )
            await AuditService.log_event(
                db,
                event_type=RUN_COMPLETED,
                entity_type=RUN_ENTITY,
                entity_id=run_id,
                actor=run_by,
                event_data={"window_start": start.isoformat(), "window_end": end.isoformat(), **totals.as_dict()},
            )
            await db.commit()
        except Exception as e:
            logger.exception("Reconciliation run %s failed: %s", run_id, e)
            await self._record_failure(db, store, run_id, run_by, e, started)
            raise

        logger.info(
            "Reconciliation run %s completed: %d matched, %d partial, %d discrepancies, %d unmatched",
            run_id, totals.matched, totals.partial_match, totals.discrepancy, totals.unmatched,
        )
        return run_id

    async def _record_failure(
        self,
        db: AsyncSession,
        store: ReconciliationStore,
        run_id: str,
        run_by: str,
        error: Exception,
        started: float,
    ) -> None:
        """Finalize the run as FAILED. Never raises; the caller re-raises the run error."""
        try:
            await db.rollback()
            await store.finalize_run_log(
                run_id,
                RunStatus.FAILED,
                error=error,
                processing_time_ms=int((time.perf_counter() - started) * 1000),
            )
            await db.commit()
        except Exception:
            logger.exception("Could not mark run %s as failed", run_id)
            return

        try:
            await AuditService.log_event(
                db,
                event_type=RUN_FAILED,
                entity_type=RUN_ENTITY,
                entity_id=run_id,
                actor=run_by,
                event_data={"error": str(error), "error_type": type(error).__name__},
            )
            await db.commit()
        except Exception:
            logger.exception("Could not audit failure of run %s", run_id)

    async def get_report(self, db: AsyncSession, run_id: str | None = None) -> dict:
        """Summary counts and outcomes for a run (default: latest completed run).

        Raises RunNotFoundError for an unknown run id. Failed runs have no outcomes.
        """
        store = ReconciliationStore(db)
        if run_id is None:
            log = await store.latest_completed_run()
            if log is None:
                return {"run": None, "summary": _summary({}), "outcomes": []}
        else:
            log = await store.get_run_log(run_id)

        outcomes: list[ReconciliationOutcome] = []
        counts: dict[str, int] = {}
        if log.status == RunStatus.COMPLETED:
            outcomes = await store.get_outcomes(log.run_id)
            counts = await store.count_by_status(log.run_id)

        return {"run": log, "summary": _summary(counts), "outcomes": outcomes}

    async def get_logs(self, db: AsyncSession, limit: int = 50):
        return await ReconciliationStore(db).list_run_logs(limit)


def _summary(counts: dict[str, int]) -> dict[str, int]:
    return {
        "total": sum(counts.values()),
        "matched": counts.get("MATCHED", 0),
        "partial_match": counts.get("PARTIAL_MATCH", 0),
        "discrepancy": counts.get("DISCREPANCY", 0),
        "unmatched": counts.get("UNMATCHED", 0),
        "under_review": counts.get("UNDER_REVIEW", 0),
        "resolved": counts.get("RESOLVED", 0),
    }
