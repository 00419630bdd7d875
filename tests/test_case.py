"""Tests for case ingestion and copy-on-write updates."""

from decimal import Decimal

import pytest

from conftest import make_case, make_payload
from scoring_engine.case import CaseRecord, Category, Flag


class TestIngestion:
    """Payload normalization into CaseRecord"""

    def test_missing_optional_fields_default(self):
        case = make_case()

        assert case.transaction.same_card_orders == 0
        assert case.transaction.same_device_orders == 0
        assert case.transaction.item_delivered is Flag.UNKNOWN
        assert case.transaction.digital_goods is Flag.UNKNOWN
        assert case.customer.dispute_percentage == 0.0
        assert case.customer.linked_dispute_rate == 0.0
        assert case.evidence == ()

    def test_amount_is_decimal(self):
        case = make_case(transaction={"amount": 1250.5})
        assert case.transaction.amount == Decimal("1250.5")

    def test_negative_and_garbage_amounts_become_zero(self):
        assert make_case(transaction={"amount": -20}).transaction.amount == Decimal("0")
        assert make_case(transaction={"amount": "abc"}).transaction.amount == Decimal("0")
        assert make_case(transaction={"amount": None}).transaction.amount == Decimal("0")

    @pytest.mark.parametrize("bad", [float("inf"), float("-inf"), float("nan"), "1e400"])
    def test_non_finite_numbers_become_defaults(self, bad):
        case = make_case(
            transaction={"sameCardSuccessOrders": bad},
            customer={"creditScore": bad, "disputePercentage": bad},
        )
        assert case.transaction.same_card_orders == 0
        assert case.customer.credit_score == 0
        assert case.customer.dispute_percentage == 0.0

    def test_scores_are_clamped(self):
        case = make_case(riskScore=140, aiConfidence=-3)
        assert case.risk_score == 100
        assert case.ai_confidence == 0

    def test_linkage_counts_read_from_top_level(self):
        payload = make_payload(sameCardSuccessOrders=4, sameIpSuccessOrders="2")
        case = CaseRecord.from_payload(payload)
        assert case.transaction.same_card_orders == 4
        assert case.transaction.same_ip_orders == 2

    def test_transaction_linkage_wins_over_top_level(self):
        payload = make_payload(transaction={"sameCardSuccessOrders": 7}, sameCardSuccessOrders=3)
        assert CaseRecord.from_payload(payload).transaction.same_card_orders == 7

    @pytest.mark.parametrize("raw,expected", [
        ("FRAUD_UNAUTHORIZED", Category.FRAUD_UNAUTHORIZED),
        ("merchant_merchandise", Category.MERCHANT_MERCHANDISE),
        ("PROCESSING_ISSUES", Category.PROCESSING_ISSUES),
        ("SOMETHING_ELSE", Category.UNKNOWN),
        (None, Category.UNKNOWN),
    ])
    def test_category_parsing(self, raw, expected):
        assert make_case(category=raw).category is expected

    def test_flag_parsing(self):
        case = make_case(transaction={"itemShipped": "Y", "itemDelivered": "n", "digitalGoods": "N/A"})
        assert case.transaction.item_shipped is Flag.YES
        assert case.transaction.item_delivered is Flag.NO
        assert case.transaction.digital_goods is Flag.UNKNOWN

    def test_unknown_recommendation_and_decision_dropped(self):
        case = make_case(aiRecommendation="escalate", humanDecision="maybe")
        assert case.ai_recommendation == "review"
        assert case.human_decision is None
        assert not case.is_closed

    def test_payload_keeps_wire_names(self):
        payload = make_case(category="FRAUD_UNAUTHORIZED").to_payload()
        assert payload["caseNumber"] == "CD-TEST-001"
        assert payload["category"] == "FRAUD_UNAUTHORIZED"
        assert payload["transaction"]["sameCardSuccessOrders"] == 0
        assert "humanDecision" not in payload


class TestUpdated:
    """Copy-on-write updates"""

    def test_original_is_untouched(self, case):
        new = case.updated(risk_score=65, now=lambda: "2024-02-01T00:00:00Z")

        assert case.risk_score == 50
        assert new.risk_score == 65
        assert new is not case

    def test_tracked_change_refreshes_timestamp(self, case):
        new = case.updated(ai_recommendation="approve", now=lambda: "2024-02-01T00:00:00Z")
        assert new.updated_at == "2024-02-01T00:00:00Z"

    def test_untracked_change_keeps_timestamp(self, case):
        new = case.updated(ai_analysis="new text", now=lambda: "2024-02-01T00:00:00Z")
        assert new.updated_at == case.updated_at

    def test_unchanged_tracked_value_keeps_timestamp(self, case):
        new = case.updated(risk_score=case.risk_score, now=lambda: "2024-02-01T00:00:00Z")
        assert new.updated_at == case.updated_at

    def test_update_clamps_scores(self, case):
        new = case.updated(risk_score=150, ai_confidence=-1)
        assert new.risk_score == 100
        assert new.ai_confidence == 0

    def test_record_is_frozen(self, case):
        with pytest.raises(AttributeError):
            case.risk_score = 10
