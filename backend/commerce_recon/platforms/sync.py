"""Fetch raw platform records, normalize them, and upsert them locally."""

import asyncio
import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.models.platform import PLATFORM_MODELS
from commerce_recon.platforms.base import PlatformAdapter
from commerce_recon.reconciliation_engine.errors import NormalizationError
from commerce_recon.reconciliation_engine.normalizer import normalize
from commerce_recon.reconciliation_engine.store import ReconciliationStore

logger = logging.getLogger("recon.platforms.sync")


async def save_payloads(
    db: AsyncSession, adapter: PlatformAdapter, payloads: list[dict[str, Any]]
) -> int:
    """Normalize and upsert payloads. Records failing normalization are skipped."""
    store = ReconciliationStore(db)
    model = PLATFORM_MODELS[adapter.source]
    saved = 0
    skipped = 0

    for payload in payloads:
        try:
            record = normalize(payload, adapter.source)
        except NormalizationError as e:
            logger.warning("Skipping record: %s", e)
            skipped += 1
            continue
        await store.upsert_record(adapter.source, model.row_values(record, payload))
        saved += 1

    await db.flush()
    logger.info("Synced %d %s records (%d skipped)", saved, adapter.source.value, skipped)
    return saved


async def sync_platform(
    db: AsyncSession, adapter: PlatformAdapter, start: datetime, end: datetime
) -> int:
    """Refresh one platform's local records for [start, end]. Returns the count saved."""
    payloads = await adapter.fetch_records(start, end)
    return await save_payloads(db, adapter, payloads)


async def sync_all(
    db: AsyncSession, adapters: list[PlatformAdapter], start: datetime, end: datetime
) -> dict[str, int]:
    """Fetch every platform concurrently, then save each batch on the shared session.

    Any SyncFailure propagates; nothing is saved unless every fetch succeeded.
    """
    batches = await asyncio.gather(
        *(a.fetch_records(start, end) for a in adapters), return_exceptions=True
    )
    for batch in batches:
        if isinstance(batch, BaseException):
            raise batch

    counts: dict[str, int] = {}
    for adapter, payloads in zip(adapters, batches):
        counts[adapter.source.value] = await save_payloads(db, adapter, payloads)
    return counts
