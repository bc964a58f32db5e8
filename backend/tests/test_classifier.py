"""Tests for the outcome classification cascade."""

from decimal import Decimal

import pytest

from commerce_recon.models.reconciliation import ReconciliationStatus
from commerce_recon.reconciliation_engine.classifier import (
    amount_spread,
    average_confidence,
    classify,
)


def amounts(*values: str) -> list[Decimal]:
    return [Decimal(v) for v in values]


class TestAverageConfidence:
    def test_ignores_absent_sources(self):
        assert average_confidence([90.0, None]) == 90.0

    def test_mean_of_present(self):
        assert average_confidence([100.0, 70.0]) == 85.0

    def test_full_precision(self):
        assert average_confidence([100.0, 33.33, 0.01]) == pytest.approx(133.34 / 3)

    def test_nothing_matched(self):
        assert average_confidence([None, None]) == 0.0
        assert average_confidence([]) == 0.0


class TestAmountSpread:
    def test_max_minus_min(self):
        assert amount_spread(amounts("1000", "1015", "990")) == Decimal("25")

    def test_single_amount(self):
        assert amount_spread(amounts("500")) == Decimal("0")


class TestClassify:
    def test_matched(self):
        result = classify([100.0, 100.0], amounts("1000", "1000", "1000"))
        assert result.status == ReconciliationStatus.MATCHED
        assert result.match_confidence == 100.0
        assert result.amount_difference == Decimal("0")
        assert result.notes is None

    def test_matched_boundary(self):
        result = classify([80.0, None], amounts("1000", "1000.99"))
        assert result.status == ReconciliationStatus.MATCHED

    def test_difference_of_one_is_not_matched(self):
        result = classify([80.0, None], amounts("1000", "1001"))
        assert result.status == ReconciliationStatus.PARTIAL_MATCH
        assert result.notes == "Partial match with 1.00 amount difference"

    def test_confidence_just_below_matched(self):
        result = classify([79.99, None], amounts("1000", "1000"))
        assert result.status == ReconciliationStatus.PARTIAL_MATCH

    def test_mean_just_below_matched_is_not_rounded_up(self):
        # mean is 79.995
        result = classify([89.99, 70.0], amounts("1000", "1000", "1000"))
        assert result.status == ReconciliationStatus.PARTIAL_MATCH
        assert result.match_confidence < 80

    def test_partial_boundary(self):
        assert classify([50.0], amounts("100", "109.99")).status == ReconciliationStatus.PARTIAL_MATCH
        assert classify([49.99], amounts("100", "100")).status == ReconciliationStatus.UNMATCHED

    def test_large_difference_overrides_confidence(self):
        result = classify([100.0, 100.0], amounts("500", "500", "515"))
        assert result.status == ReconciliationStatus.DISCREPANCY
        assert result.amount_difference == Decimal("15")
        assert result.notes == "Significant amount difference: 15.00"

    def test_difference_of_ten_is_discrepancy(self):
        result = classify([10.0], amounts("100", "110"))
        assert result.status == ReconciliationStatus.DISCREPANCY

    def test_nothing_matched(self):
        result = classify([None, None], amounts("1000"))
        assert result.status == ReconciliationStatus.UNMATCHED
        assert result.match_confidence == 0.0
        assert result.amount_difference == Decimal("0")
        assert result.notes == "Could not find confident matches"

    def test_low_confidence_small_difference(self):
        result = classify([20.0, None], amounts("1000", "1005"))
        assert result.status == ReconciliationStatus.UNMATCHED

    def test_raising_confidence_never_worsens_status(self):
        rank = {
            ReconciliationStatus.UNMATCHED: 0,
            ReconciliationStatus.DISCREPANCY: 0,
            ReconciliationStatus.PARTIAL_MATCH: 1,
            ReconciliationStatus.MATCHED: 2,
        }
        for spread in ("0", "0.5", "5", "12"):
            previous = -1
            for confidence in (0.0, 25.0, 50.0, 65.0, 80.0, 100.0):
                status = classify([confidence], amounts("100", str(100 + Decimal(spread)))).status
                assert rank[status] >= previous
                previous = rank[status]

    def test_growing_spread_never_improves_status(self):
        rank = {
            ReconciliationStatus.UNMATCHED: 0,
            ReconciliationStatus.DISCREPANCY: 0,
            ReconciliationStatus.PARTIAL_MATCH: 1,
            ReconciliationStatus.MATCHED: 2,
        }
        for confidence in (0.0, 49.99, 50.0, 65.0, 79.99, 80.0, 100.0):
            previous = None
            for spread in ("0", "0.5", "0.99", "1", "5", "9.99", "10", "50"):
                status = classify([confidence, confidence], amounts("100", str(100 + Decimal(spread)))).status
                if previous is not None:
                    assert rank[status] <= previous, (confidence, spread, status)
                previous = rank[status]
