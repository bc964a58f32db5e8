"""Reconciliation endpoints — run, report, logs."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.config import Settings
from commerce_recon.dependencies import (
    get_db,
    get_reconciliation_engine,
    get_reconciliation_lock,
    get_settings,
)
from commerce_recon.reconciliation_engine.errors import (
    InvalidRangeError,
    RunNotFoundError,
    SyncFailure,
)
from commerce_recon.reconciliation_engine.service import ReconciliationEngine
from commerce_recon.reconciliation_engine.store import ReconciliationStore
from commerce_recon.schemas.reconciliation import (
    ReconciliationLogResponse,
    ReconciliationOutcomeResponse,
    ReconciliationReportResponse,
    ReconciliationRunResponse,
    ReconciliationTriggerRequest,
    ReportSummary,
    RunTotalsResponse,
)

logger = logging.getLogger("recon.api")

router = APIRouter()


@router.post("/run", response_model=ReconciliationRunResponse)
async def run_reconciliation(
    request: ReconciliationTriggerRequest,
    db: AsyncSession = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
    lock: asyncio.Lock = Depends(get_reconciliation_lock),
    settings: Settings = Depends(get_settings),
) -> ReconciliationRunResponse:
    """Trigger a reconciliation run over the requested window."""
    start, end = request.resolve(settings.reconciliation_lookback_days)
    logger.info("Manual reconciliation triggered from %s to %s", start.isoformat(), end.isoformat())

    if lock.locked():
        raise HTTPException(status_code=409, detail="A reconciliation run is already in progress")

    async with lock:
        try:
            run_id = await engine.reconcile(db, start, end, run_by=request.run_by)
        except InvalidRangeError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except SyncFailure as e:
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Reconciliation failed: {e}")

    log = await ReconciliationStore(db).get_run_log(run_id)
    return ReconciliationRunResponse(
        run_id=run_id,
        status=log.status,
        message="Reconciliation completed successfully",
        totals=RunTotalsResponse(
            processed=log.records_processed,
            matched=log.records_matched,
            partial_match=log.records_partial,
            discrepancy=log.records_discrepancy,
            unmatched=log.records_unmatched,
        ),
    )


@router.get("/report", response_model=ReconciliationReportResponse)
async def get_report(
    run_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
) -> ReconciliationReportResponse:
    """Summary and outcomes for a run; defaults to the latest completed run."""
    try:
        report = await engine.get_report(db, run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    run = report["run"]
    return ReconciliationReportResponse(
        run=ReconciliationLogResponse.model_validate(run) if run is not None else None,
        summary=ReportSummary(**report["summary"]),
        outcomes=[ReconciliationOutcomeResponse.model_validate(o) for o in report["outcomes"]],
    )


@router.get("/logs", response_model=list[ReconciliationLogResponse])
async def get_logs(
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
) -> list[ReconciliationLogResponse]:
    """Reconciliation run logs, newest first."""
    logs = await engine.get_logs(db, limit)
    return [ReconciliationLogResponse.model_validate(log) for log in logs]


@router.get("/logs/{run_id}", response_model=ReconciliationLogResponse)
async def get_log(
    run_id: str,
    db: AsyncSession = Depends(get_db),
) -> ReconciliationLogResponse:
    """A single run log, including error detail for FAILED runs."""
    try:
        log = await ReconciliationStore(db).get_run_log(run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ReconciliationLogResponse.model_validate(log)
