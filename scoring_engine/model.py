"""
scoring_engine/model.py
=======================
Weighted Risk Aggregator — seven fixed-threshold sub-scores combined into
one 0–100 risk score with a per-factor breakdown.

  risk = round( 0.10 × amount
              + 0.10 × customer_history
              + 0.05 × merchant_category
              + 0.05 × dispute_reason
              + 0.10 × evidence
              + 0.40 × legitimacy
              + 0.20 × abuse_pattern )

Each factor's weighted impact is round(sub_score × weight). Rounding is
half-up everywhere (`round_half_up`); weights are Decimals so the products
are exact and the half-way cases do not depend on binary float error.

The aggregate is advisory. The persisted `risk_score` on the case is set by
ingestion or by the feedback engine; this module recomputes the breakdown so
the reviewer can compare the two.

Risk tiers (applied to the persisted score):
  HIGH   : ≥ 70
  MEDIUM : 30–69
  LOW    :  < 30
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from scoring_engine.case import CaseRecord
from scoring_engine.factors import FactorSet, extract_factors
from scoring_engine.legitimacy import legitimacy_score, strategy_for


# ── Factor Weights (must sum to 1.00) ─────────────────────────────────────────
WEIGHTS = {
    "transaction_amount":    Decimal("0.10"),
    "customer_history":      Decimal("0.10"),
    "merchant_category":     Decimal("0.05"),
    "dispute_reason":        Decimal("0.05"),
    "evidence_completeness": Decimal("0.10"),
    "legitimacy":            Decimal("0.40"),   # primary factor
    "abuse_pattern":         Decimal("0.20"),   # secondary factor
}

FACTOR_LABELS = {
    "transaction_amount":    "Transaction Amount",
    "customer_history":      "Customer History",
    "merchant_category":     "Merchant Risk",
    "dispute_reason":        "Dispute Reason",
    "evidence_completeness": "Evidence Completeness",
    "legitimacy":            "Transaction Legitimacy",
    "abuse_pattern":         "Abuse Patterns",
}

# ── Threshold Tables ──────────────────────────────────────────────────────────
# (exclusive upper bound, score); the last entry catches everything above.
AMOUNT_TABLE = [(100, 10), (500, 25), (2000, 50)]
AMOUNT_CEILING_SCORE = 80

HIGH_RISK_MERCHANTS = {"Luxury Goods", "Online Services", "Travel Services"}
MEDIUM_RISK_MERCHANTS = {"Electronics", "Subscription Service"}

HIGH_RISK_REASONS = ["Fraudulent Transaction", "Identity Theft"]
MEDIUM_RISK_REASONS = ["Unauthorized transaction", "Duplicate Charge"]

# (minimum dispute percentage, raw score), first match wins
ABUSE_TABLE = [(10, 80), (5, 60), (2, 35)]
ABUSE_FLOOR_SCORE = 5
# Raw abuse scores are compressed by this divisor before weighting.
ABUSE_DIVISOR = 5

# ── Score Tier Thresholds ─────────────────────────────────────────────────────
TIERS = [
    (70, "HIGH"),
    (30, "MEDIUM"),
    (0,  "LOW"),
]


def round_half_up(value: Union[Decimal, float, int]) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def risk_tier(score: float) -> str:
    return next(t for threshold, t in TIERS if score >= threshold)


# ── Sub-scores ────────────────────────────────────────────────────────────────

def amount_score(amount: Decimal) -> int:
    for upper, score in AMOUNT_TABLE:
        if amount < upper:
            return score
    return AMOUNT_CEILING_SCORE


def credit_component(credit_score: int) -> int:
    if credit_score > 750:
        return 10
    if credit_score > 650:
        return 30
    return 70


def customer_history_score(credit_score: int, previous_disputes: int) -> int:
    return credit_component(credit_score) + min(30, previous_disputes * 10)


def merchant_score(merchant_category: str) -> int:
    if merchant_category in HIGH_RISK_MERCHANTS:
        return 60
    if merchant_category in MEDIUM_RISK_MERCHANTS:
        return 35
    return 20


def reason_score(dispute_reason: str) -> int:
    if any(phrase in dispute_reason for phrase in HIGH_RISK_REASONS):
        return 80
    if any(phrase in dispute_reason for phrase in MEDIUM_RISK_REASONS):
        return 50
    return 30


def evidence_score(evidence_count: int) -> int:
    if evidence_count <= 0:
        return 80
    if evidence_count == 1:
        return 50
    return 20


def raw_abuse_score(dispute_percentage: float) -> int:
    return next(
        (score for floor, score in ABUSE_TABLE if dispute_percentage >= floor),
        ABUSE_FLOOR_SCORE,
    )


def abuse_score(dispute_percentage: float) -> int:
    return round_half_up(Decimal(raw_abuse_score(dispute_percentage)) / ABUSE_DIVISOR)


@dataclass
class ScoringResult:
    computed_score: int     # weighted aggregate, 0–100
    persisted_score: int    # riskScore currently on the case
    tier: str               # LOW / MEDIUM / HIGH, from persisted_score
    breakdown: dict         # per-factor detail for explainability
    factors: FactorSet

    @property
    def impact_total(self) -> int:
        return sum(d["weighted_impact"] for d in self.breakdown.values())


def sub_scores(factors: FactorSet) -> dict[str, int]:
    """The seven sub-scores, keyed like WEIGHTS and in WEIGHTS order."""
    return {
        "transaction_amount":    amount_score(factors.amount),
        "customer_history":      customer_history_score(factors.credit_score, factors.previous_disputes),
        "merchant_category":     merchant_score(factors.merchant_category),
        "dispute_reason":        reason_score(factors.dispute_reason),
        "evidence_completeness": evidence_score(factors.evidence_count),
        "legitimacy":            legitimacy_score(factors),
        "abuse_pattern":         abuse_score(factors.dispute_percentage),
    }


def _raw_inputs(factors: FactorSet) -> dict[str, dict]:
    return {
        "transaction_amount": {"amount": factors.amount},
        "customer_history": {
            "credit_score": factors.credit_score,
            "previous_disputes": factors.previous_disputes,
        },
        "merchant_category": {"merchant_category": factors.merchant_category},
        "dispute_reason": {"dispute_reason": factors.dispute_reason},
        "evidence_completeness": {"evidence_files": factors.evidence_count},
        "legitimacy": {
            "category": factors.category.value,
            "same_card_orders": factors.same_card_orders,
            "same_address_orders": factors.same_address_orders,
            "same_ip_orders": factors.same_ip_orders,
            "same_device_orders": factors.same_device_orders,
            "total_linked_orders": factors.total_linked_orders,
            "item_delivered": factors.item_delivered.value,
            "assessment": strategy_for(factors.category).assessment(factors),
        },
        "abuse_pattern": {
            "dispute_percentage": factors.dispute_percentage,
            "raw_score": raw_abuse_score(factors.dispute_percentage),
            "disputes_won": factors.disputes_won,
            "previous_disputes": factors.previous_disputes,
            "linked_dispute_rate": factors.linked_dispute_rate,
        },
    }


def aggregate(scores: dict[str, int]) -> int:
    """round(Σ sub_score × weight). Depends only on the sub-scores and WEIGHTS."""
    total = sum(Decimal(scores[key]) * weight for key, weight in WEIGHTS.items())
    return round_half_up(total)


def compute_score(case: CaseRecord) -> ScoringResult:
    """
    Recompute the seven-factor breakdown for a case.

    Returns
    -------
    ScoringResult with the computed aggregate, the persisted score it is
    displayed against, the persisted score's tier, and a per-factor breakdown
    (label, weight, raw inputs, score, weighted impact).
    """
    factors = extract_factors(case)
    scores = sub_scores(factors)
    raw_inputs = _raw_inputs(factors)

    breakdown = {}
    for key, weight in WEIGHTS.items():
        breakdown[key] = {
            "label":           FACTOR_LABELS[key],
            "raw_inputs":      raw_inputs[key],
            "score":           scores[key],
            "weight":          weight,
            "weighted_impact": round_half_up(Decimal(scores[key]) * weight),
        }

    return ScoringResult(
        computed_score=aggregate(scores),
        persisted_score=case.risk_score,
        tier=risk_tier(case.risk_score),
        breakdown=breakdown,
        factors=factors,
    )
