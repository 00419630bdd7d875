"""
scoring_engine/legitimacy.py
============================
Category-Aware Legitimacy Scorer — the PRIMARY factor (weight 0.40).

The same linked-order history means opposite things depending on what the
cardholder claims:

  FRAUD_UNAUTHORIZED      history on a "that wasn't me" claim points at the
                          cardholder (abusive chargeback) → HIGHER score
  MERCHANT_MERCHANDISE /  history marks a repeat customer with a track
  PROCESSING_ISSUES       record → LOWER score
  anything else           neutral 50

Each category is a named strategy with the same `score(factors) -> int`
contract; `strategy_for()` is the only dispatch point.

Fraud table (links present):
  base 80, +15 if total ≥ 20 / +10 if ≥ 10 / +5 if ≥ 5
  context (first match only): digital goods +5 → delivered +10 → shipped +5
  capped at 100
"""

from __future__ import annotations

from scoring_engine.case import Category, Flag
from scoring_engine.factors import FactorSet


class LegitimacyStrategy:
    category: Category = Category.UNKNOWN

    def score(self, factors: FactorSet) -> int:
        raise NotImplementedError

    def assessment(self, factors: FactorSet) -> str:
        """Short qualitative label for the explanation narrative."""
        return ""


class FraudStrategy(LegitimacyStrategy):
    category = Category.FRAUD_UNAUTHORIZED

    NO_LINK_SCORE = 10
    LINKED_BASE = 80
    # (minimum total linked orders, bonus) — first match wins
    VOLUME_BONUS = [(20, 15), (10, 10), (5, 5)]

    @classmethod
    def volume_bonus(cls, total: int) -> int:
        return next((bonus for floor, bonus in cls.VOLUME_BONUS if total >= floor), 0)

    @staticmethod
    def context_bonus(factors: FactorSet) -> int:
        if factors.digital_goods is Flag.YES:
            return 5
        if factors.item_delivered is Flag.YES:
            return 10
        if factors.item_shipped is Flag.YES:
            return 5
        return 0

    def score(self, factors: FactorSet) -> int:
        if not factors.has_any_links:
            return self.NO_LINK_SCORE
        total = factors.total_linked_orders
        value = self.LINKED_BASE + self.volume_bonus(total) + self.context_bonus(factors)
        return min(100, value)

    def assessment(self, factors: FactorSet) -> str:
        if factors.has_any_links:
            return "LIKELY ABUSIVE CHARGEBACK - Previous transaction history found"
        return "LIKELY REAL FRAUD - No transaction history (stolen card/identity theft)"

    @staticmethod
    def confidence_label(total: int) -> str:
        if total >= 20:
            return "Very high confidence"
        if total >= 10:
            return "High confidence"
        if total >= 5:
            return "Moderate confidence"
        return "Base confidence"


class RepeatCustomerStrategy(LegitimacyStrategy):
    """Linked history lowers risk: a track record vouches for the customer."""

    NEW_CUSTOMER = 60
    RETURNING_CUSTOMER = 30
    LOYAL_CUSTOMER = 0

    def score(self, factors: FactorSet) -> int:
        total = factors.total_linked_orders
        if total == 0:
            return self.NEW_CUSTOMER
        if total <= 2:
            return self.RETURNING_CUSTOMER
        return self.LOYAL_CUSTOMER

    def assessment(self, factors: FactorSet) -> str:
        total = factors.total_linked_orders
        if total == 0:
            return "NEW CUSTOMER - No transaction history"
        if total <= 2:
            return "RETURNING CUSTOMER - Limited transaction history"
        return "LOYAL CUSTOMER - Extensive transaction history"


class MerchandiseStrategy(RepeatCustomerStrategy):
    category = Category.MERCHANT_MERCHANDISE


class ProcessingStrategy(RepeatCustomerStrategy):
    category = Category.PROCESSING_ISSUES


class UnknownStrategy(LegitimacyStrategy):
    category = Category.UNKNOWN
    NEUTRAL_SCORE = 50

    def score(self, factors: FactorSet) -> int:
        return self.NEUTRAL_SCORE

    def assessment(self, factors: FactorSet) -> str:
        return "UNCATEGORIZED - Neutral legitimacy score applied"


_STRATEGIES: dict[Category, LegitimacyStrategy] = {
    Category.FRAUD_UNAUTHORIZED: FraudStrategy(),
    Category.MERCHANT_MERCHANDISE: MerchandiseStrategy(),
    Category.PROCESSING_ISSUES: ProcessingStrategy(),
    Category.UNKNOWN: UnknownStrategy(),
}


def strategy_for(category: Category) -> LegitimacyStrategy:
    return _STRATEGIES.get(Category.parse(category), _STRATEGIES[Category.UNKNOWN])


def legitimacy_score(factors: FactorSet) -> int:
    return strategy_for(factors.category).score(factors)
