"""Persistence for run logs, outcomes, and platform records."""

import traceback
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.models.platform import PLATFORM_MODELS
from commerce_recon.models.reconciliation import (
    ReconciliationLog,
    ReconciliationOutcome,
    ReconciliationStatus,
    RunStatus,
)
from commerce_recon.reconciliation_engine.aggregator import OutcomeDraft, RunTotals
from commerce_recon.reconciliation_engine.errors import RunNotFoundError
from commerce_recon.reconciliation_engine.normalizer import PlatformRecord, SourceKind


class ReconciliationStore:
    """Thin data-access layer over one AsyncSession. Never commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_records(
        self, source: SourceKind, start: datetime, end: datetime
    ) -> list[PlatformRecord]:
        """Normalized records inside [start, end], newest first (ties by platform id)."""
        model = PLATFORM_MODELS[source]
        key = getattr(model, model.source_key)
        result = await self.db.execute(
            select(model)
            .where(model.occurred_at >= start, model.occurred_at <= end)
            .order_by(model.occurred_at.desc(), key)
        )
        return [row.to_record() for row in result.scalars().all()]

    async def count_records(self, source: SourceKind) -> int:
        model = PLATFORM_MODELS[source]
        return (await self.db.execute(select(func.count(model.id)))).scalar() or 0

    async def upsert_record(self, source: SourceKind, values: dict) -> None:
        model = PLATFORM_MODELS[source]
        key = model.source_key
        existing = (await self.db.execute(
            select(model).where(getattr(model, key) == values[key])
        )).scalar_one_or_none()

        if existing is None:
            self.db.add(model(**values))
        else:
            for name, value in values.items():
                setattr(existing, name, value)

    async def create_run_log(
        self, run_id: str, start: datetime, end: datetime, run_by: str
    ) -> ReconciliationLog:
        log = ReconciliationLog(
            run_id=run_id,
            status=RunStatus.RUNNING,
            run_by=run_by,
            window_start=start,
            window_end=end,
            start_time=datetime.now(timezone.utc),
        )
        self.db.add(log)
        await self.db.flush()
        return log

    async def append_outcomes(self, run_id: str, outcomes: list[OutcomeDraft]) -> None:
        self.db.add_all([
            ReconciliationOutcome(
                run_id=run_id,
                shopify_order_id=o.shopify_order_id,
                razorpay_payment_id=o.razorpay_payment_id,
                easyecom_order_id=o.easyecom_order_id,
                status=o.status,
                match_confidence=round(o.match_confidence, 2),
                amount_difference=o.amount_difference,
                notes=o.notes,
            )
            for o in outcomes
        ])
        await self.db.flush()

    async def finalize_run_log(
        self,
        run_id: str,
        status: RunStatus,
        *,
        totals: RunTotals | None = None,
        error: BaseException | None = None,
        processing_time_ms: int | None = None,
    ) -> ReconciliationLog:
        log = await self.get_run_log(run_id)
        log.status = status
        log.end_time = datetime.now(timezone.utc)
        log.processing_time_ms = processing_time_ms
        if totals is not None:
            log.records_processed = totals.processed
            log.records_matched = totals.matched
            log.records_partial = totals.partial_match
            log.records_discrepancy = totals.discrepancy
            log.records_unmatched = totals.unmatched
        if error is not None:
            log.errors = {
                "type": type(error).__name__,
                "message": str(error),
                "traceback": "".join(traceback.format_exception(error)),
            }
        await self.db.flush()
        return log

    async def get_run_log(self, run_id: str) -> ReconciliationLog:
        log = (await self.db.execute(
            select(ReconciliationLog).where(ReconciliationLog.run_id == run_id)
        )).scalar_one_or_none()
        if log is None:
            raise RunNotFoundError(f"Reconciliation run {run_id} not found")
        return log

    async def latest_completed_run(self) -> ReconciliationLog | None:
        return (await self.db.execute(
            select(ReconciliationLog)
            .where(ReconciliationLog.status == RunStatus.COMPLETED)
            .order_by(ReconciliationLog.start_time.desc())
            .limit(1)
        )).scalar_one_or_none()

    async def get_outcomes(self, run_id: str) -> list[ReconciliationOutcome]:
        result = await self.db.execute(
            select(ReconciliationOutcome)
            .where(ReconciliationOutcome.run_id == run_id)
            .order_by(ReconciliationOutcome.reconciled_at.desc(), ReconciliationOutcome.id)
        )
        return list(result.scalars().all())

    async def count_by_status(self, run_id: str) -> dict[str, int]:
        rows = (await self.db.execute(
            select(ReconciliationOutcome.status, func.count(ReconciliationOutcome.id))
            .where(ReconciliationOutcome.run_id == run_id)
            .group_by(ReconciliationOutcome.status)
        )).all()
        counts = {status.value: 0 for status in ReconciliationStatus}
        for status, count in rows:
            counts[status.value if isinstance(status, ReconciliationStatus) else status] = count
        return counts

    async def list_run_logs(self, limit: int = 50) -> list[ReconciliationLog]:
        result = await self.db.execute(
            select(ReconciliationLog).order_by(ReconciliationLog.start_time.desc()).limit(limit)
        )
        return list(result.scalars().all())
