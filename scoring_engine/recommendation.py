"""
scoring_engine/recommendation.py
================================
Recommendation Resolver — maps a clamped 0–100 score to an action.

  score < 30                                   → approve
  MERCHANT_MERCHANDISE and 36 ≤ score ≤ 74     → merchant_investigation
  score > 70                                   → reject
  otherwise                                    → review

The merchandise band is checked before the reject band, so 71–74 on a
merchandise dispute goes to the merchant rather than straight to rejection.
"""

from __future__ import annotations

from scoring_engine.case import CaseRecord, Category, Recommendation

APPROVE_BELOW = 30
REJECT_ABOVE = 70
MERCHANT_BAND = (36, 74)

RECOMMENDATION_LABELS = {
    "approve": "Approve",
    "reject": "Reject",
    "review": "Review",
    "merchant_investigation": "Send for Merchant Investigation",
}


def resolve_recommendation(score: int, category: Category | str | None = None) -> Recommendation:
    if score < APPROVE_BELOW:
        return "approve"
    low, high = MERCHANT_BAND
    if Category.parse(category) is Category.MERCHANT_MERCHANDISE and low <= score <= high:
        return "merchant_investigation"
    if score > REJECT_ABOVE:
        return "reject"
    return "review"


def displayed_recommendation(case: CaseRecord) -> Recommendation:
    """
    Recommendation as shown in the detail panel. A persisted `review` on a
    merchandise case inside the merchant band is shown as
    `merchant_investigation`; anything else is shown as stored.
    """
    low, high = MERCHANT_BAND
    if (
        case.category is Category.MERCHANT_MERCHANDISE
        and low <= case.risk_score <= high
        and case.ai_recommendation == "review"
    ):
        return "merchant_investigation"
    return case.ai_recommendation
