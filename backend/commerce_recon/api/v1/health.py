from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.config import settings
from commerce_recon.dependencies import get_db, get_scheduler
from commerce_recon.models.platform import EasyecomOrder, RazorpayPayment, ShopifyOrder
from commerce_recon.models.reconciliation import ReconciliationOutcome
from commerce_recon.reconciliation_engine.store import ReconciliationStore
from commerce_recon.scheduler import ReconciliationScheduler
from commerce_recon.schemas.health import (
    HealthResponse,
    PlatformRecordCounts,
    SchedulerStatus,
    StatusResponse,
)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    scheduler: ReconciliationScheduler = Depends(get_scheduler),
) -> HealthResponse:
    # Check database
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        db_status = "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
        scheduler=SchedulerStatus(**scheduler.get_status()),
        timestamp=datetime.now(timezone.utc),
        environment=settings.environment,
        version="0.1.0",
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(
    db: AsyncSession = Depends(get_db),
    scheduler: ReconciliationScheduler = Depends(get_scheduler),
) -> StatusResponse:
    """Local record counts per platform plus the most recent run."""

    async def count(model) -> int:
        return (await db.execute(select(func.count(model.id)))).scalar() or 0

    records = PlatformRecordCounts(
        shopify_orders=await count(ShopifyOrder),
        razorpay_payments=await count(RazorpayPayment),
        easyecom_orders=await count(EasyecomOrder),
        reconciliations=await count(ReconciliationOutcome),
    )

    latest = await ReconciliationStore(db).list_run_logs(limit=1)
    run = latest[0] if latest else None

    return StatusResponse(
        records=records,
        scheduler=SchedulerStatus(**scheduler.get_status()),
        latest_run_id=run.run_id if run else None,
        latest_run_status=run.status.value if run else None,
        latest_run_at=run.start_time if run else None,
    )
