from fastapi import APIRouter

from commerce_recon.api.v1 import audit, health, orders, reconciliation, sync

api_router = APIRouter()

api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(reconciliation.router, prefix="/v1/reconciliation", tags=["reconciliation"])
api_router.include_router(sync.router, prefix="/v1/sync", tags=["sync"])
api_router.include_router(audit.router, prefix="/v1/audit", tags=["audit"])
api_router.include_router(orders.router, prefix="/v1/orders", tags=["orders"])
