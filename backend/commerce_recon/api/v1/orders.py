"""Order correlation endpoints over locally synced Shopify and Easyecom orders."""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.config import Settings
from commerce_recon.dependencies import get_db, get_settings
from commerce_recon.reconciliation_engine.correlation import (
    CorrelationStatus,
    correlate,
    filter_orders,
)
from commerce_recon.reconciliation_engine.normalizer import SourceKind, ensure_utc
from commerce_recon.reconciliation_engine.store import ReconciliationStore
from commerce_recon.schemas.orders import (
    CorrelatedOrderResponse,
    CorrelatedOrdersResponse,
    CorrelationSummaryResponse,
    DateRange,
    OrderCountsResponse,
    OrderRecordResponse,
)

logger = logging.getLogger("recon.api")

router = APIRouter()


@router.get("/correlated", response_model=CorrelatedOrdersResponse)
async def get_correlated_orders(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    match_status: CorrelationStatus | None = None,
    min_amount_diff: Decimal | None = Query(default=None, ge=0),
    max_amount_diff: Decimal | None = Query(default=None, ge=0),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CorrelatedOrdersResponse:
    """Pair Shopify orders with Easyecom orders by id, order number, or CPO reference.

    Filters narrow the order list only; the summary and unmatched Easyecom
    orders always cover the whole window.
    """
    end = ensure_utc(end_date) if end_date else datetime.now(timezone.utc)
    start = ensure_utc(start_date) if start_date else end - timedelta(days=settings.correlation_lookback_days)
    if start >= end:
        raise HTTPException(status_code=400, detail="start_date must be before end_date")

    logger.info("Correlating orders from %s to %s", start.isoformat(), end.isoformat())
    store = ReconciliationStore(db)
    correlation = correlate(
        await store.load_records(SourceKind.SHOPIFY, start, end),
        await store.load_records(SourceKind.EASYECOM, start, end),
    )
    orders = filter_orders(correlation.orders, match_status, min_amount_diff, max_amount_diff)

    return CorrelatedOrdersResponse(
        orders=[CorrelatedOrderResponse.from_correlated(o) for o in orders],
        unmatched_easyecom=[OrderRecordResponse.from_record(r) for r in correlation.unmatched_easyecom],
        summary=CorrelationSummaryResponse.from_summary(correlation.summary),
        date_range=DateRange(start=start, end=end),
    )


@router.get("/summary", response_model=OrderCountsResponse)
async def get_order_summary(db: AsyncSession = Depends(get_db)) -> OrderCountsResponse:
    store = ReconciliationStore(db)
    return OrderCountsResponse(
        shopify_orders=await store.count_records(SourceKind.SHOPIFY),
        easyecom_orders=await store.count_records(SourceKind.EASYECOM),
        razorpay_payments=await store.count_records(SourceKind.RAZORPAY),
    )
