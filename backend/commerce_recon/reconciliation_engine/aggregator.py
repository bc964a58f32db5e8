"""RunAggregator — matches every Shopify order against Razorpay and Easyecom.

Flow for one run:
1. For each Shopify order, in loader order, pick the best Razorpay payment and
   the best Easyecom order independently
2. A pick already claimed by an earlier order counts as no match (first claim wins)
3. Classify and record the outcome, then claim the picks
4. Emit an UNMATCHED orphan outcome for every secondary record left unclaimed

No I/O; the service loads records and persists the outcomes.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from commerce_recon.models.reconciliation import ReconciliationStatus
from commerce_recon.reconciliation_engine.classifier import classify
from commerce_recon.reconciliation_engine.matchers import (
    EASYECOM_PROFILE,
    RAZORPAY_PROFILE,
    MatchProfile,
    select_best,
)
from commerce_recon.reconciliation_engine.normalizer import PlatformRecord


@dataclass(frozen=True)
class OutcomeDraft:
    """One reconciliation outcome before persistence."""

    status: ReconciliationStatus
    match_confidence: float
    shopify_order_id: str | None = None
    razorpay_payment_id: str | None = None
    easyecom_order_id: str | None = None
    amount_difference: Decimal | None = None
    notes: str | None = None


@dataclass
class RunTotals:
    processed: int = 0
    matched: int = 0
    partial_match: int = 0
    discrepancy: int = 0
    unmatched: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "matched": self.matched,
            "partial_match": self.partial_match,
            "discrepancy": self.discrepancy,
            "unmatched": self.unmatched,
        }


_TOTAL_FIELDS = {
    ReconciliationStatus.MATCHED: "matched",
    ReconciliationStatus.PARTIAL_MATCH: "partial_match",
    ReconciliationStatus.DISCREPANCY: "discrepancy",
    ReconciliationStatus.UNMATCHED: "unmatched",
}


@dataclass
class RunAggregator:
    """Owns the outcome list and claimed-id sets for a single run."""

    razorpay_profile: MatchProfile = RAZORPAY_PROFILE
    easyecom_profile: MatchProfile = EASYECOM_PROFILE
    outcomes: list[OutcomeDraft] = field(default_factory=list)
    claimed_payments: set[str] = field(default_factory=set)
    claimed_easyecom: set[str] = field(default_factory=set)

    def reconcile(
        self,
        shopify_orders: list[PlatformRecord],
        razorpay_payments: list[PlatformRecord],
        easyecom_orders: list[PlatformRecord],
    ) -> list[OutcomeDraft]:
        for order in shopify_orders:
            self.outcomes.append(self._match_order(order, razorpay_payments, easyecom_orders))

        for payment in razorpay_payments:
            if payment.source_id not in self.claimed_payments:
                self.outcomes.append(OutcomeDraft(
                    status=ReconciliationStatus.UNMATCHED,
                    match_confidence=0.0,
                    razorpay_payment_id=payment.source_id,
                    notes="Razorpay payment has no matching Shopify order",
                ))

        for easyecom_order in easyecom_orders:
            if easyecom_order.source_id not in self.claimed_easyecom:
                self.outcomes.append(OutcomeDraft(
                    status=ReconciliationStatus.UNMATCHED,
                    match_confidence=0.0,
                    easyecom_order_id=easyecom_order.source_id,
                    notes="Easyecom order has no matching Shopify order",
                ))

        return self.outcomes

    def totals(self) -> RunTotals:
        totals = RunTotals(processed=len(self.outcomes))
        for outcome in self.outcomes:
            name = _TOTAL_FIELDS.get(outcome.status)
            if name:
                setattr(totals, name, getattr(totals, name) + 1)
        return totals

    def _match_order(
        self,
        order: PlatformRecord,
        razorpay_payments: list[PlatformRecord],
        easyecom_orders: list[PlatformRecord],
    ) -> OutcomeDraft:
        payment, payment_conf = self._claimable(
            select_best(order, razorpay_payments, self.razorpay_profile), self.claimed_payments
        )
        easyecom_order, easyecom_conf = self._claimable(
            select_best(order, easyecom_orders, self.easyecom_profile), self.claimed_easyecom
        )

        amounts = [order.amount]
        if payment is not None:
            amounts.append(payment.amount)
            self.claimed_payments.add(payment.source_id)
        if easyecom_order is not None:
            amounts.append(easyecom_order.amount)
            self.claimed_easyecom.add(easyecom_order.source_id)

        result = classify([payment_conf, easyecom_conf], amounts)

        return OutcomeDraft(
            status=result.status,
            match_confidence=result.match_confidence,
            shopify_order_id=order.source_id,
            razorpay_payment_id=payment.source_id if payment else None,
            easyecom_order_id=easyecom_order.source_id if easyecom_order else None,
            amount_difference=result.amount_difference,
            notes=result.notes,
        )

    @staticmethod
    def _claimable(
        selection: tuple[PlatformRecord | None, float],
        claimed: set[str],
    ) -> tuple[PlatformRecord | None, float | None]:
        record, confidence = selection
        if record is None or record.source_id in claimed:
            return None, None
        return record, confidence
