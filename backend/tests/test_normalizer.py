"""Tests for platform payload normalization."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from commerce_recon.reconciliation_engine.errors import NormalizationError
from commerce_recon.reconciliation_engine.normalizer import (
    SourceKind,
    ensure_utc,
    normalize,
    parse_amount,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_iso_with_z_suffix(self):
        parsed = parse_timestamp("2025-10-15T12:00:00Z")
        assert parsed == datetime(2025, 10, 15, 12, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        parsed = parse_timestamp("2025-10-15T17:30:00+05:30")
        assert parsed == datetime(2025, 10, 15, 12, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_string_is_treated_as_utc(self):
        parsed = parse_timestamp("2025-10-15 12:00:00")
        assert parsed.tzinfo is not None
        assert parsed == datetime(2025, 10, 15, 12, tzinfo=timezone.utc)

    def test_unix_seconds(self):
        ts = int(datetime(2025, 10, 15, 12, tzinfo=timezone.utc).timestamp())
        assert parse_timestamp(ts) == datetime(2025, 10, 15, 12, tzinfo=timezone.utc)

    def test_invalid_values(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(True) is None

    def test_ensure_utc_keeps_instant(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        value = datetime(2025, 10, 15, 17, 30, tzinfo=ist)
        assert ensure_utc(value) == value
        assert ensure_utc(value).tzinfo == timezone.utc


class TestParseAmount:
    def test_string_and_number(self):
        assert parse_amount("1000.50") == Decimal("1000.50")
        assert parse_amount(42) == Decimal("42")

    def test_invalid(self):
        assert parse_amount(None) is None
        assert parse_amount("") is None
        assert parse_amount("abc") is None
        assert parse_amount("NaN") is None
        assert parse_amount(False) is None


class TestNormalizeShopify:
    def test_fields(self):
        record = normalize(
            {
                "id": 450789469,
                "order_number": 1001,
                "email": "bob@example.com",
                "total_price": "598.94",
                "currency": "INR",
                "created_at": "2025-10-15T12:00:00-04:00",
            },
            SourceKind.SHOPIFY,
        )
        assert record.source == SourceKind.SHOPIFY
        assert record.source_id == "450789469"
        assert record.amount == Decimal("598.94")
        assert record.counterparty == "bob@example.com"
        assert record.display_reference == "1001"
        assert record.occurred_at == datetime(2025, 10, 15, 16, tzinfo=timezone.utc)
        assert record.external_reference is None

    def test_missing_email_degrades_to_none(self):
        record = normalize(
            {"id": 1, "total_price": "10.00", "created_at": "2025-10-15T12:00:00Z"}, "shopify"
        )
        assert record.counterparty is None


class TestNormalizeRazorpay:
    def test_paise_are_converted_to_rupees(self):
        record = normalize(
            {
                "id": "pay_29QQoUBi66xm2f",
                "amount": 50000,
                "currency": "INR",
                "email": "gaurav.kumar@example.com",
                "order_id": "order_9A33XWu170gUtm",
                "created_at": 1760529600,
            },
            SourceKind.RAZORPAY,
        )
        assert record.amount == Decimal("500")
        assert record.external_reference == "order_9A33XWu170gUtm"
        assert record.occurred_at == datetime(2025, 10, 15, 12, tzinfo=timezone.utc)


class TestNormalizeEasyecom:
    def test_primary_field_names(self):
        record = normalize(
            {
                "order_id": 8812,
                "reference_code": "1001",
                "total_amount": "1000.00",
                "order_date": "2025-10-15 12:00:00",
                "customer_email": "a@x.com",
                "invoice_currency_code": "INR",
            },
            SourceKind.EASYECOM,
        )
        assert record.source_id == "8812"
        assert record.external_reference == "1001"
        assert record.display_reference == "1001"
        assert record.counterparty == "a@x.com"
        assert record.currency == "INR"

    def test_fallback_field_names(self):
        record = normalize(
            {
                "order_id": "E-2",
                "marketplace_order_id": "5551234",
                "reference_number": "REF-9",
                "total": 250,
                "created_at": "2025-10-15T12:00:00Z",
            },
            SourceKind.EASYECOM,
        )
        assert record.amount == Decimal("250")
        # Marketplace id outranks the internal reference
        assert record.external_reference == "5551234"
        assert record.display_reference == "REF-9"


class TestNormalizationErrors:
    def test_missing_amount(self):
        with pytest.raises(NormalizationError, match="amount"):
            normalize({"id": 1, "created_at": "2025-10-15T12:00:00Z"}, SourceKind.SHOPIFY)

    def test_negative_amount(self):
        with pytest.raises(NormalizationError, match="negative"):
            normalize(
                {"id": 1, "total_price": "-5.00", "created_at": "2025-10-15T12:00:00Z"},
                SourceKind.SHOPIFY,
            )

    def test_unparseable_timestamp(self):
        with pytest.raises(NormalizationError, match="timestamp") as exc:
            normalize({"id": "pay_1", "amount": 100, "created_at": "yesterday"}, SourceKind.RAZORPAY)
        assert exc.value.source == "razorpay"
        assert exc.value.record_id == "pay_1"

    def test_missing_id(self):
        with pytest.raises(NormalizationError, match="id"):
            normalize({"total": 10, "order_date": "2025-10-15 12:00:00"}, SourceKind.EASYECOM)

    def test_unknown_source(self):
        with pytest.raises(ValueError):
            normalize({}, "amazon")
