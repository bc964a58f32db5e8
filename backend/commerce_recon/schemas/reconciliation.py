"""Pydantic schemas for reconciliation runs, reports, and sync requests."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from commerce_recon.models.reconciliation import ReconciliationStatus, RunStatus
from commerce_recon.reconciliation_engine.normalizer import ensure_utc


class WindowRequest(BaseModel):
    """Time window for a run or sync; defaults to the configured lookback."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    lookback_days: int | None = Field(default=None, ge=1)

    def resolve(self, default_lookback_days: int) -> tuple[datetime, datetime]:
        """Explicit dates win; a missing end is now, a missing start is end minus the lookback."""
        end = self.end_date or datetime.now(timezone.utc)
        if self.start_date:
            return ensure_utc(self.start_date), ensure_utc(end)
        days = self.lookback_days or default_lookback_days
        end = ensure_utc(end)
        return end - timedelta(days=days), end


class ReconciliationTriggerRequest(WindowRequest):
    run_by: str = "user"


class RunTotalsResponse(BaseModel):
    processed: int = 0
    matched: int = 0
    partial_match: int = 0
    discrepancy: int = 0
    unmatched: int = 0


class ReconciliationRunResponse(BaseModel):
    run_id: str
    status: RunStatus
    message: str
    totals: RunTotalsResponse


class ReconciliationLogResponse(BaseModel):
    id: uuid.UUID
    run_id: str
    status: RunStatus
    run_by: str | None = None
    window_start: datetime
    window_end: datetime
    start_time: datetime
    end_time: datetime | None = None
    records_processed: int = 0
    records_matched: int = 0
    records_partial: int = 0
    records_discrepancy: int = 0
    records_unmatched: int = 0
    processing_time_ms: int | None = None
    errors: dict | None = None

    model_config = {"from_attributes": True}


class ReconciliationOutcomeResponse(BaseModel):
    id: uuid.UUID
    run_id: str
    shopify_order_id: str | None = None
    razorpay_payment_id: str | None = None
    easyecom_order_id: str | None = None
    status: ReconciliationStatus
    match_confidence: float
    amount_difference: Decimal | None = None
    notes: str | None = None
    reconciled_at: datetime | None = None

    model_config = {"from_attributes": True}


class ReportSummary(BaseModel):
    total: int = 0
    matched: int = 0
    partial_match: int = 0
    discrepancy: int = 0
    unmatched: int = 0
    under_review: int = 0
    resolved: int = 0


class ReconciliationReportResponse(BaseModel):
    run: ReconciliationLogResponse | None = None
    summary: ReportSummary
    outcomes: list[ReconciliationOutcomeResponse] = Field(default_factory=list)


class SyncResponse(BaseModel):
    counts: dict[str, int]
    message: str
