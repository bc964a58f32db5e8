"""Order correlation: pairs each Shopify order with the Easyecom order that fulfils it.

This is a key lookup over locally synced records, not a scored match. An
Easyecom order is indexed under its marketplace order id, its reference code,
and the order number embedded in a ``CPO/<number>/<fy>`` reference code. A
Shopify order is looked up by its id, then ``#<order_number>``, then the bare
order number. Keys compare case-insensitively.
"""

import enum
import re
from dataclasses import dataclass, field
from decimal import Decimal

from commerce_recon.reconciliation_engine.normalizer import PlatformRecord

CPO_REFERENCE = re.compile(r"CPO/(\d+)/")


class CorrelationStatus(str, enum.Enum):
    MATCHED = "matched"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class CorrelatedOrder:
    shopify: PlatformRecord
    easyecom: PlatformRecord | None
    amount_difference: Decimal

    @property
    def status(self) -> CorrelationStatus:
        return CorrelationStatus.MATCHED if self.easyecom else CorrelationStatus.UNMATCHED


@dataclass(frozen=True)
class CorrelationSummary:
    total_shopify_orders: int
    total_easyecom_orders: int
    matched_orders: int
    unmatched_shopify_orders: int
    unmatched_easyecom_orders: int
    total_shopify_amount: Decimal
    total_easyecom_amount: Decimal

    @property
    def amount_difference(self) -> Decimal:
        return abs(self.total_shopify_amount - self.total_easyecom_amount)


@dataclass
class Correlation:
    orders: list[CorrelatedOrder] = field(default_factory=list)
    unmatched_easyecom: list[PlatformRecord] = field(default_factory=list)
    summary: CorrelationSummary | None = None


def easyecom_keys(record: PlatformRecord) -> list[str]:
    """Lookup keys an Easyecom order is reachable under."""
    keys = []
    if record.external_reference:
        keys.append(record.external_reference.lower())
    if record.display_reference:
        keys.append(record.display_reference.lower())
        cpo = CPO_REFERENCE.search(record.display_reference)
        if cpo:
            keys.append(cpo.group(1))
    return keys


def shopify_keys(record: PlatformRecord) -> list[str]:
    """Keys tried for a Shopify order, in priority order."""
    keys = [record.source_id.lower()]
    if record.display_reference:
        keys.append(f"#{record.display_reference}".lower())
        keys.append(record.display_reference.lower())
    return keys


def build_index(easyecom_orders: list[PlatformRecord]) -> dict[str, PlatformRecord]:
    # Later records overwrite earlier ones sharing a key
    index: dict[str, PlatformRecord] = {}
    for record in easyecom_orders:
        for key in easyecom_keys(record):
            index[key] = record
    return index


def correlate(
    shopify_orders: list[PlatformRecord],
    easyecom_orders: list[PlatformRecord],
) -> Correlation:
    """Correlate every Shopify order; one Easyecom order may serve several Shopify orders."""
    index = build_index(easyecom_orders)
    correlation = Correlation()
    matched_ids: set[str] = set()

    for order in shopify_orders:
        fulfilment = next((index[k] for k in shopify_keys(order) if k in index), None)
        difference = abs(order.amount - fulfilment.amount) if fulfilment else Decimal("0")
        if fulfilment:
            matched_ids.add(fulfilment.source_id)
        correlation.orders.append(CorrelatedOrder(order, fulfilment, difference))

    correlation.unmatched_easyecom = [
        record for record in easyecom_orders if record.source_id not in matched_ids
    ]
    matched = sum(1 for o in correlation.orders if o.status == CorrelationStatus.MATCHED)
    correlation.summary = CorrelationSummary(
        total_shopify_orders=len(shopify_orders),
        total_easyecom_orders=len(easyecom_orders),
        matched_orders=matched,
        unmatched_shopify_orders=len(shopify_orders) - matched,
        unmatched_easyecom_orders=len(correlation.unmatched_easyecom),
        total_shopify_amount=sum((o.amount for o in shopify_orders), Decimal("0")),
        total_easyecom_amount=sum((o.amount for o in easyecom_orders), Decimal("0")),
    )
    return correlation


def filter_orders(
    orders: list[CorrelatedOrder],
    status: CorrelationStatus | None = None,
    min_amount_diff: Decimal | None = None,
    max_amount_diff: Decimal | None = None,
) -> list[CorrelatedOrder]:
    """Narrow correlated orders by match status and an inclusive amount-difference range."""
    if status is not None:
        orders = [o for o in orders if o.status == status]
    if min_amount_diff is not None:
        orders = [o for o in orders if o.amount_difference >= min_amount_diff]
    if max_amount_diff is not None:
        orders = [o for o in orders if o.amount_difference <= max_amount_diff]
    return orders
