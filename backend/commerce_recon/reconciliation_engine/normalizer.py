"""Record normalizer — maps each platform's payload shape onto PlatformRecord.

Pure functions, no DB or HTTP dependency. A missing id, amount or timestamp,
or a negative amount, is an error; every other field degrades to None.
"""

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from commerce_recon.reconciliation_engine.errors import NormalizationError


class SourceKind(str, enum.Enum):
    SHOPIFY = "shopify"
    RAZORPAY = "razorpay"
    EASYECOM = "easyecom"


@dataclass(frozen=True)
class PlatformRecord:
    """Comparison-ready record from one platform."""

    source: SourceKind
    source_id: str
    amount: Decimal
    occurred_at: datetime
    counterparty: str | None = None
    external_reference: str | None = None
    display_reference: str | None = None
    currency: str | None = None


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 string, unix seconds, or datetime into a UTC datetime.

    Returns None when the value is missing or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def parse_amount(value: Any) -> Decimal | None:
    """Parse a numeric or string amount into a Decimal. None if missing or invalid."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _build(
    source: SourceKind,
    source_id: str | None,
    amount: Decimal | None,
    occurred_at: datetime | None,
    **optional: str | None,
) -> PlatformRecord:
    if source_id is None:
        raise NormalizationError(source.value, None, "missing record id")
    if amount is None:
        raise NormalizationError(source.value, source_id, "missing or invalid amount")
    if amount < 0:
        raise NormalizationError(source.value, source_id, f"negative amount {amount}")
    if occurred_at is None:
        raise NormalizationError(source.value, source_id, "missing or invalid timestamp")
    return PlatformRecord(
        source=source,
        source_id=source_id,
        amount=amount,
        occurred_at=occurred_at,
        **optional,
    )


def normalize_shopify_order(raw: Mapping[str, Any]) -> PlatformRecord:
    return _build(
        SourceKind.SHOPIFY,
        _text(raw.get("id")),
        parse_amount(raw.get("total_price")),
        parse_timestamp(raw.get("created_at")),
        counterparty=_text(raw.get("email")),
        display_reference=_text(raw.get("order_number")),
        currency=_text(raw.get("currency")),
    )


def normalize_razorpay_payment(raw: Mapping[str, Any]) -> PlatformRecord:
    # Razorpay reports amounts in paise
    paise = parse_amount(raw.get("amount"))
    return _build(
        SourceKind.RAZORPAY,
        _text(raw.get("id")),
        paise / 100 if paise is not None else None,
        parse_timestamp(raw.get("created_at")),
        counterparty=_text(raw.get("email")),
        external_reference=_text(raw.get("order_id")),
        currency=_text(raw.get("currency")),
    )


def normalize_easyecom_order(raw: Mapping[str, Any]) -> PlatformRecord:
    return _build(
        SourceKind.EASYECOM,
        _text(raw.get("order_id")),
        parse_amount(_first(raw, "total", "total_amount")),
        parse_timestamp(_first(raw, "order_date", "created_at")),
        counterparty=_text(_first(raw, "email", "customer_email")),
        external_reference=_text(
            _first(raw, "marketplace_order_id", "reference_code", "reference_number")
        ),
        display_reference=_text(_first(raw, "reference_code", "reference_number")),
        currency=_text(_first(raw, "invoice_currency_code", "currency")),
    )


_NORMALIZERS = {
    SourceKind.SHOPIFY: normalize_shopify_order,
    SourceKind.RAZORPAY: normalize_razorpay_payment,
    SourceKind.EASYECOM: normalize_easyecom_order,
}


def normalize(raw: Mapping[str, Any], source: SourceKind | str) -> PlatformRecord:
    """Convert a raw platform payload into a PlatformRecord.

    Raises NormalizationError for payloads that cannot be compared.
    """
    return _NORMALIZERS[SourceKind(source)](raw)
