"""Tests for the weighted risk aggregator."""

from decimal import Decimal

import pytest

from conftest import evidence_items, make_case
from scoring_engine.model import (
    WEIGHTS,
    abuse_score,
    aggregate,
    amount_score,
    compute_score,
    customer_history_score,
    evidence_score,
    merchant_score,
    reason_score,
    risk_tier,
    round_half_up,
)


class TestWeights:
    def test_weights_sum_to_one(self):
        assert sum(WEIGHTS.values()) == Decimal("1.00")

    def test_legitimacy_is_primary(self):
        assert max(WEIGHTS, key=WEIGHTS.get) == "legitimacy"


class TestSubScores:
    """Fixed-threshold tables"""

    @pytest.mark.parametrize("amount,expected", [
        ("0", 10), ("99.99", 10), ("100", 25), ("499.99", 25),
        ("500", 50), ("1999.99", 50), ("2000", 80), ("10000", 80),
    ])
    def test_amount(self, amount, expected):
        assert amount_score(Decimal(amount)) == expected

    @pytest.mark.parametrize("credit,disputes,expected", [
        (800, 0, 10), (751, 1, 20), (750, 0, 30), (651, 2, 50),
        (650, 0, 70), (500, 3, 100), (500, 9, 100),
    ])
    def test_customer_history(self, credit, disputes, expected):
        assert customer_history_score(credit, disputes) == expected

    def test_merchant(self):
        assert merchant_score("Luxury Goods") == 60
        assert merchant_score("Electronics") == 35
        assert merchant_score("Groceries") == 20

    def test_reason_substring_match(self):
        assert reason_score("Suspected Identity Theft") == 80
        assert reason_score("Duplicate Charge") == 50
        assert reason_score("Product Quality Issue") == 30

    @pytest.mark.parametrize("count,expected", [(0, 80), (1, 50), (2, 20), (3, 20)])
    def test_evidence_boundaries(self, count, expected):
        assert evidence_score(count) == expected

    @pytest.mark.parametrize("pct,expected", [(12, 16), (10, 16), (7, 12), (5, 12), (3, 7), (2, 7), (1.9, 1), (0, 1)])
    def test_abuse_is_compressed(self, pct, expected):
        assert abuse_score(pct) == expected


class TestRounding:
    @pytest.mark.parametrize("value,expected", [
        (Decimal("2.5"), 3), (Decimal("1.5"), 2), (Decimal("0.5"), 1),
        (Decimal("36.2"), 36), (Decimal("36.5"), 37), (4, 4),
    ])
    def test_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("score,tier", [(0, "LOW"), (29, "LOW"), (30, "MEDIUM"), (69, "MEDIUM"), (70, "HIGH"), (100, "HIGH")])
    def test_tiers(self, score, tier):
        assert risk_tier(score) == tier


class TestComputeScore:
    """End-to-end aggregation on a case"""

    def test_baseline_case(self):
        result = compute_score(make_case())

        scores = {key: d["score"] for key, d in result.breakdown.items()}
        assert scores == {
            "transaction_amount": 25,
            "customer_history": 30,
            "merchant_category": 20,
            "dispute_reason": 30,
            "evidence_completeness": 80,
            "legitimacy": 50,
            "abuse_pattern": 1,
        }
        assert result.computed_score == 36
        assert result.impact_total == 37
        assert result.persisted_score == 50
        assert result.tier == "MEDIUM"

    def test_breakdown_in_weight_order(self):
        result = compute_score(make_case())
        assert list(result.breakdown) == list(WEIGHTS)

    def test_breakdown_entries_are_complete(self):
        entry = compute_score(make_case()).breakdown["legitimacy"]
        assert set(entry) == {"label", "raw_inputs", "score", "weight", "weighted_impact"}
        assert entry["raw_inputs"]["assessment"].startswith("UNCATEGORIZED")

    @pytest.mark.parametrize("overrides", [
        {},
        {"category": "FRAUD_UNAUTHORIZED", "transaction": {"sameCardSuccessOrders": 25, "itemDelivered": "Y", "amount": 5000}},
        {"category": "MERCHANT_MERCHANDISE", "evidence": evidence_items(3), "customer": {"creditScore": 820}},
        {"category": "PROCESSING_ISSUES", "customer": {"disputePercentage": 11, "previousDisputes": 5}},
    ])
    def test_impacts_track_total(self, overrides):
        result = compute_score(make_case(**overrides))
        assert abs(result.impact_total - result.computed_score) <= len(WEIGHTS) / 2
        assert 0 <= result.computed_score <= 100

    def test_aggregate_depends_only_on_sub_scores(self):
        scores = {key: 100 for key in WEIGHTS}
        assert aggregate(scores) == 100
        assert aggregate({key: 0 for key in WEIGHTS}) == 0

    def test_deterministic(self):
        case = make_case(category="FRAUD_UNAUTHORIZED", transaction={"sameIpSuccessOrders": 6})
        assert compute_score(case) == compute_score(case)
