import asyncio

from fastapi import Depends

from commerce_recon.config import Settings, settings
from commerce_recon.database import async_session_factory, get_db
from commerce_recon.platforms import PlatformAdapter, build_adapters
from commerce_recon.reconciliation_engine.service import ReconciliationEngine
from commerce_recon.scheduler import ReconciliationScheduler

# Re-export get_db for use in Depends()
get_db = get_db

# One reconciliation at a time per process, shared by the API and the scheduler
reconciliation_lock = asyncio.Lock()

scheduler = ReconciliationScheduler(settings, async_session_factory, reconciliation_lock)


def get_settings() -> Settings:
    return settings


def get_platform_adapters() -> list[PlatformAdapter]:
    return build_adapters(settings)


def get_reconciliation_lock() -> asyncio.Lock:
    return reconciliation_lock


def get_scheduler() -> ReconciliationScheduler:
    return scheduler


def get_reconciliation_engine(
    adapters: list[PlatformAdapter] = Depends(get_platform_adapters),
) -> ReconciliationEngine:
    return ReconciliationEngine(settings, adapters)
