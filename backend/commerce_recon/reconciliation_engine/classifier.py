"""Pure threshold cascade over match confidence and amount spread."""

from dataclasses import dataclass
from decimal import Decimal

from commerce_recon.models.reconciliation import ReconciliationStatus

MATCHED_MIN_CONFIDENCE = 80
MATCHED_MAX_DIFFERENCE = Decimal("1")
PARTIAL_MIN_CONFIDENCE = 50
PARTIAL_MAX_DIFFERENCE = Decimal("10")


@dataclass(frozen=True)
class Classification:
    status: ReconciliationStatus
    match_confidence: float
    amount_difference: Decimal
    notes: str | None = None


def average_confidence(confidences: list[float | None]) -> float:
    """Arithmetic mean of the present confidences, 0.0 if none are present."""
    present = [c for c in confidences if c is not None]
    if not present:
        return 0.0
    return sum(present) / len(present)


def amount_spread(amounts: list[Decimal]) -> Decimal:
    """Largest minus smallest amount, 0 for an empty list."""
    if not amounts:
        return Decimal("0")
    return max(amounts) - min(amounts)


def classify(confidences: list[float | None], amounts: list[Decimal]) -> Classification:
    """Classify one primary record's correspondence.

    confidences holds one entry per secondary source (None when unmatched);
    amounts holds the primary amount plus every matched secondary amount.
    Rules are checked in order and the first hit wins, so a large amount
    spread yields DISCREPANCY even at high confidence.
    """
    confidence = average_confidence(confidences)
    difference = amount_spread(amounts)

    if confidence >= MATCHED_MIN_CONFIDENCE and difference < MATCHED_MAX_DIFFERENCE:
        return Classification(ReconciliationStatus.MATCHED, confidence, difference)

    if confidence >= PARTIAL_MIN_CONFIDENCE and difference < PARTIAL_MAX_DIFFERENCE:
        return Classification(
            ReconciliationStatus.PARTIAL_MATCH,
            confidence,
            difference,
            f"Partial match with {difference:.2f} amount difference",
        )

    if difference >= PARTIAL_MAX_DIFFERENCE:
        return Classification(
            ReconciliationStatus.DISCREPANCY,
            confidence,
            difference,
            f"Significant amount difference: {difference:.2f}",
        )

    return Classification(
        ReconciliationStatus.UNMATCHED,
        confidence,
        difference,
        "Could not find confident matches",
    )
