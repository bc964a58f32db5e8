"""ORM models for records synced from each commerce platform.

Each table keeps the normalized comparison fields as columns and the full
platform payload in raw_data.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar

from sqlalchemy import DateTime, JSON, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from commerce_recon.models.base import Base, TimestampMixin
from commerce_recon.reconciliation_engine.normalizer import (
    PlatformRecord,
    SourceKind,
    ensure_utc,
)


class ShopifyOrder(TimestampMixin, Base):
    __tablename__ = "shopify_orders"

    source_key: ClassVar[str] = "shopify_order_id"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shopify_order_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    order_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str | None] = mapped_column(String(10), nullable=True)
    financial_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    fulfillment_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    raw_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    @staticmethod
    def row_values(record: PlatformRecord, payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "shopify_order_id": record.source_id,
            "order_number": record.display_reference,
            "email": record.counterparty,
            "total_price": record.amount,
            "currency": record.currency,
            "financial_status": payload.get("financial_status"),
            "fulfillment_status": payload.get("fulfillment_status"),
            "occurred_at": record.occurred_at,
            "raw_data": payload,
        }

    def to_record(self) -> PlatformRecord:
        return PlatformRecord(
            source=SourceKind.SHOPIFY,
            source_id=self.shopify_order_id,
            amount=Decimal(self.total_price),
            occurred_at=ensure_utc(self.occurred_at),
            counterparty=self.email,
            display_reference=self.order_number,
            currency=self.currency,
        )


class RazorpayPayment(TimestampMixin, Base):
    __tablename__ = "razorpay_payments"

    source_key: ClassVar[str] = "razorpay_id"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    razorpay_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    order_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str | None] = mapped_column(String(10), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    contact: Mapped[str | None] = mapped_column(String(50), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    raw_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    @staticmethod
    def row_values(record: PlatformRecord, payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "razorpay_id": record.source_id,
            "order_id": record.external_reference,
            "amount": record.amount,
            "currency": record.currency,
            "status": payload.get("status"),
            "method": payload.get("method"),
            "email": record.counterparty,
            "contact": payload.get("contact"),
            "occurred_at": record.occurred_at,
            "raw_data": payload,
        }

    def to_record(self) -> PlatformRecord:
        return PlatformRecord(
            source=SourceKind.RAZORPAY,
            source_id=self.razorpay_id,
            amount=Decimal(self.amount),
            occurred_at=ensure_utc(self.occurred_at),
            counterparty=self.email,
            external_reference=self.order_id,
            currency=self.currency,
        )


class EasyecomOrder(TimestampMixin, Base):
    __tablename__ = "easyecom_orders"

    source_key: ClassVar[str] = "easyecom_order_id"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    easyecom_order_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    marketplace_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str | None] = mapped_column(String(10), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    raw_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    @staticmethod
    def row_values(record: PlatformRecord, payload: dict[str, Any]) -> dict[str, Any]:
        queue_status = payload.get("queue_status")
        return {
            "easyecom_order_id": record.source_id,
            "reference_number": record.display_reference,
            "marketplace_order_id": record.external_reference,
            "email": record.counterparty,
            "total_amount": record.amount,
            "currency": record.currency,
            "status": payload.get("status") or (f"Queue {queue_status}" if queue_status else None),
            "payment_status": payload.get("payment_status"),
            "occurred_at": record.occurred_at,
            "raw_data": payload,
        }

    def to_record(self) -> PlatformRecord:
        return PlatformRecord(
            source=SourceKind.EASYECOM,
            source_id=self.easyecom_order_id,
            amount=Decimal(self.total_amount),
            occurred_at=ensure_utc(self.occurred_at),
            counterparty=self.email,
            external_reference=self.marketplace_order_id,
            display_reference=self.reference_number,
            currency=self.currency,
        )


PLATFORM_MODELS: dict[SourceKind, type[ShopifyOrder | RazorpayPayment | EasyecomOrder]] = {
    SourceKind.SHOPIFY: ShopifyOrder,
    SourceKind.RAZORPAY: RazorpayPayment,
    SourceKind.EASYECOM: EasyecomOrder,
}
