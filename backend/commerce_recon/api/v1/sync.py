"""Platform sync endpoints. Refresh local records without reconciling."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.config import Settings
from commerce_recon.dependencies import get_db, get_platform_adapters, get_settings
from commerce_recon.platforms import PlatformAdapter
from commerce_recon.platforms.sync import sync_all, sync_platform
from commerce_recon.reconciliation_engine.errors import SyncFailure
from commerce_recon.reconciliation_engine.normalizer import SourceKind
from commerce_recon.schemas.reconciliation import SyncResponse, WindowRequest

logger = logging.getLogger("recon.api")

router = APIRouter()


@router.post("/all", response_model=SyncResponse)
async def sync_all_platforms(
    request: WindowRequest,
    db: AsyncSession = Depends(get_db),
    adapters: list[PlatformAdapter] = Depends(get_platform_adapters),
    settings: Settings = Depends(get_settings),
) -> SyncResponse:
    """Sync every platform for the window; nothing is saved if any fetch fails."""
    start, end = request.resolve(settings.reconciliation_lookback_days)
    if start >= end:
        raise HTTPException(status_code=400, detail="start_date must be before end_date")
    try:
        counts = await sync_all(db, adapters, start, end)
    except SyncFailure as e:
        await db.rollback()
        raise HTTPException(status_code=502, detail=str(e))
    await db.commit()
    return SyncResponse(counts=counts, message="All platforms synced successfully")


@router.post("/{platform}", response_model=SyncResponse)
async def sync_one_platform(
    platform: SourceKind,
    request: WindowRequest,
    db: AsyncSession = Depends(get_db),
    adapters: list[PlatformAdapter] = Depends(get_platform_adapters),
    settings: Settings = Depends(get_settings),
) -> SyncResponse:
    """Sync a single platform (shopify, razorpay, or easyecom)."""
    adapter = next(a for a in adapters if a.source == platform)
    start, end = request.resolve(settings.reconciliation_lookback_days)
    if start >= end:
        raise HTTPException(status_code=400, detail="start_date must be before end_date")

    try:
        count = await sync_platform(db, adapter, start, end)
    except SyncFailure as e:
        await db.rollback()
        logger.error("%s sync failed: %s", platform.value, e)
        raise HTTPException(status_code=502, detail=str(e))
    await db.commit()
    return SyncResponse(counts={platform.value: count}, message=f"Synced {count} {platform.value} records")
