from commerce_recon.models.base import Base, TimestampMixin
from commerce_recon.models.audit import AuditEvent
from commerce_recon.models.platform import (
    PLATFORM_MODELS,
    EasyecomOrder,
    RazorpayPayment,
    ShopifyOrder,
)
from commerce_recon.models.reconciliation import (
    ReconciliationLog,
    ReconciliationOutcome,
    ReconciliationStatus,
    RunStatus,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "AuditEvent",
    "PLATFORM_MODELS",
    "ShopifyOrder",
    "RazorpayPayment",
    "EasyecomOrder",
    "ReconciliationLog",
    "ReconciliationOutcome",
    "ReconciliationStatus",
    "RunStatus",
]
