"""Pydantic schemas for the Shopify to Easyecom order correlation view."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from commerce_recon.reconciliation_engine.correlation import (
    CorrelatedOrder,
    CorrelationStatus,
    CorrelationSummary,
)
from commerce_recon.reconciliation_engine.normalizer import PlatformRecord


class OrderRecordResponse(BaseModel):
    source_id: str
    reference: str | None = None
    external_reference: str | None = None
    email: str | None = None
    amount: Decimal
    currency: str | None = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: PlatformRecord) -> "OrderRecordResponse":
        return cls(
            source_id=record.source_id,
            reference=record.display_reference,
            external_reference=record.external_reference,
            email=record.counterparty,
            amount=record.amount,
            currency=record.currency,
            created_at=record.occurred_at,
        )


class CorrelatedOrderResponse(BaseModel):
    shopify_order: OrderRecordResponse
    easyecom_order: OrderRecordResponse | None = None
    match_status: CorrelationStatus
    amount_difference: Decimal

    @classmethod
    def from_correlated(cls, order: CorrelatedOrder) -> "CorrelatedOrderResponse":
        return cls(
            shopify_order=OrderRecordResponse.from_record(order.shopify),
            easyecom_order=OrderRecordResponse.from_record(order.easyecom) if order.easyecom else None,
            match_status=order.status,
            amount_difference=order.amount_difference,
        )


class CorrelationSummaryResponse(BaseModel):
    total_shopify_orders: int = 0
    total_easyecom_orders: int = 0
    matched_orders: int = 0
    unmatched_shopify_orders: int = 0
    unmatched_easyecom_orders: int = 0
    total_shopify_amount: Decimal = Decimal("0")
    total_easyecom_amount: Decimal = Decimal("0")
    amount_difference: Decimal = Decimal("0")

    @classmethod
    def from_summary(cls, summary: CorrelationSummary) -> "CorrelationSummaryResponse":
        return cls(
            total_shopify_orders=summary.total_shopify_orders,
            total_easyecom_orders=summary.total_easyecom_orders,
            matched_orders=summary.matched_orders,
            unmatched_shopify_orders=summary.unmatched_shopify_orders,
            unmatched_easyecom_orders=summary.unmatched_easyecom_orders,
            total_shopify_amount=summary.total_shopify_amount,
            total_easyecom_amount=summary.total_easyecom_amount,
            amount_difference=summary.amount_difference,
        )


class DateRange(BaseModel):
    start: datetime
    end: datetime


class CorrelatedOrdersResponse(BaseModel):
    orders: list[CorrelatedOrderResponse] = Field(default_factory=list)
    unmatched_easyecom: list[OrderRecordResponse] = Field(default_factory=list)
    summary: CorrelationSummaryResponse
    date_range: DateRange


class OrderCountsResponse(BaseModel):
    shopify_orders: int = 0
    easyecom_orders: int = 0
    razorpay_payments: int = 0
