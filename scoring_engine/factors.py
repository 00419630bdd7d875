"""
scoring_engine/factors.py
=========================
Factor Extractor — derives the normalized signals every scorer reads.

Pure and total: a CaseRecord is already fully defaulted at ingestion, so
extraction never fails and never sees a missing value.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal

from scoring_engine.case import CaseRecord, Category, Flag


@dataclass(frozen=True)
class FactorSet:
    category: Category
    amount: Decimal
    merchant_category: str
    dispute_reason: str
    evidence_count: int
    credit_score: int
    previous_disputes: int
    disputes_won: int
    dispute_percentage: float
    linked_dispute_rate: float
    same_card_orders: int
    same_address_orders: int
    same_ip_orders: int
    same_device_orders: int
    item_shipped: Flag
    item_delivered: Flag
    digital_goods: Flag

    @property
    def total_linked_orders(self) -> int:
        return (
            self.same_card_orders
            + self.same_address_orders
            + self.same_ip_orders
            + self.same_device_orders
        )

    @property
    def has_any_links(self) -> bool:
        return self.total_linked_orders > 0

    @property
    def dispute_win_rate(self) -> float:
        if self.previous_disputes <= 0:
            return 0.0
        return self.disputes_won / self.previous_disputes


def extract_factors(case: CaseRecord) -> FactorSet:
    txn = case.transaction
    cust = case.customer
    return FactorSet(
        category=case.category,
        amount=txn.amount,
        merchant_category=txn.merchant_category,
        dispute_reason=case.dispute_reason,
        evidence_count=len(case.evidence),
        credit_score=cust.credit_score,
        previous_disputes=cust.previous_disputes,
        disputes_won=cust.disputes_won,
        dispute_percentage=cust.dispute_percentage,
        linked_dispute_rate=cust.linked_dispute_rate,
        same_card_orders=txn.same_card_orders,
        same_address_orders=txn.same_address_orders,
        same_ip_orders=txn.same_ip_orders,
        same_device_orders=txn.same_device_orders,
        item_shipped=txn.item_shipped,
        item_delivered=txn.item_delivered,
        digital_goods=txn.digital_goods,
    )
