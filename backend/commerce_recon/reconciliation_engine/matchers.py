"""Pure matching functions for reconciliation — no DB or HTTP dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from commerce_recon.reconciliation_engine.normalizer import PlatformRecord


@dataclass(frozen=True)
class MatchProfile:
    """Signal weights and parameters for scoring one secondary source.

    The four weights must sum to 100.
    """

    name: str
    identity_weight: float = 0.0
    reference_weight: float = 0.0
    amount_weight: float = 0.0
    temporal_weight: float = 0.0
    amount_tolerance_pct: Decimal = Decimal("0.01")
    window_hours: float = 24.0

    def __post_init__(self):
        total = self.identity_weight + self.reference_weight + self.amount_weight + self.temporal_weight
        if abs(total - 100) > 1e-9:
            raise ValueError(f"Profile {self.name!r} weights sum to {total}, expected 100")
        if self.window_hours <= 0:
            raise ValueError(f"Profile {self.name!r} window_hours must be positive")


# Payment gateways carry the buyer's email but no order reference.
RAZORPAY_PROFILE = MatchProfile(
    name="razorpay",
    identity_weight=40,
    amount_weight=40,
    temporal_weight=20,
    window_hours=24,
)

# Order management stores the originating storefront order id; it syncs slower.
EASYECOM_PROFILE = MatchProfile(
    name="easyecom",
    reference_weight=60,
    amount_weight=30,
    temporal_weight=10,
    window_hours=48,
)


def match_identity(email_a: str | None, email_b: str | None) -> bool:
    """Case-insensitive email equality; False when either side is missing."""
    if not email_a or not email_b:
        return False
    return email_a.strip().lower() == email_b.strip().lower()


def match_reference(anchor: PlatformRecord, candidate: PlatformRecord) -> bool:
    """True if the candidate's external reference names the anchor record."""
    ref = candidate.external_reference
    if not ref:
        return False
    return ref == anchor.source_id or (
        anchor.display_reference is not None and ref == anchor.display_reference
    )


def match_amount(anchor_amount: Decimal, candidate_amount: Decimal, tolerance_pct: Decimal) -> bool:
    """Amounts agree within tolerance_pct of the anchor amount (inclusive)."""
    return abs(anchor_amount - candidate_amount) <= tolerance_pct * anchor_amount


def temporal_proximity(time_a: datetime, time_b: datetime, window_hours: float) -> float:
    """Linear decay from 1.0 (same instant) to 0.0 at window_hours apart."""
    hours_apart = abs((time_a - time_b).total_seconds()) / 3600
    return max(0.0, 1.0 - hours_apart / window_hours)


def score(anchor: PlatformRecord, candidate: PlatformRecord, profile: MatchProfile) -> float:
    """Weighted confidence (0-100) that candidate corresponds to anchor."""
    confidence = 0.0

    if profile.identity_weight and match_identity(anchor.counterparty, candidate.counterparty):
        confidence += profile.identity_weight

    if profile.reference_weight and match_reference(anchor, candidate):
        confidence += profile.reference_weight

    if profile.amount_weight and match_amount(
        anchor.amount, candidate.amount, profile.amount_tolerance_pct
    ):
        confidence += profile.amount_weight

    if profile.temporal_weight:
        confidence += profile.temporal_weight * temporal_proximity(
            anchor.occurred_at, candidate.occurred_at, profile.window_hours
        )

    return min(max(confidence, 0.0), 100.0)


def select_best(
    anchor: PlatformRecord,
    candidates: list[PlatformRecord],
    profile: MatchProfile,
) -> tuple[PlatformRecord | None, float]:
    """Pick the highest-scoring candidate for anchor.

    Ties keep the earliest candidate in input order. A score of 0 is never a
    match. Returns (candidate, confidence) or (None, 0.0).
    """
    best: PlatformRecord | None = None
    best_score = 0.0

    for candidate in candidates:
        candidate_score = score(anchor, candidate, profile)
        if candidate_score > best_score:
            best = candidate
            best_score = candidate_score

    return best, best_score
