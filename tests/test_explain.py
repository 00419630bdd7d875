"""Tests for the explanation renderer, key factors and warning flags."""

from conftest import evidence_items, make_case
from scoring_engine.explain import (
    acknowledged_groups,
    derive_analysis,
    key_factors,
    render_explanation,
    render_feedback_acknowledgment,
    warning_flags,
)


class TestRenderExplanation:
    def test_byte_identical_across_calls(self):
        case = make_case(category="FRAUD_UNAUTHORIZED", transaction={"sameCardSuccessOrders": 3})
        assert render_explanation(case) == render_explanation(case)

    def test_one_block_per_factor_in_order(self):
        text = render_explanation(make_case())
        headers = [line for line in text.splitlines() if line[:2] in {f"{i}." for i in range(1, 8)}]
        assert len(headers) == 7
        assert headers[0].startswith("1. TRANSACTION AMOUNT FACTOR (10% weight")
        assert headers[5] == "6. TRANSACTION LEGITIMACY FACTOR (40% weight - PRIMARY FACTOR)"
        assert headers[6] == "7. ABUSE PATTERNS FACTOR (20% weight - SECONDARY FACTOR)"

    def test_final_assessment_block(self):
        text = render_explanation(make_case(riskScore=50))
        assert "  Calculated Total Score : 36/100" in text
        assert "  Actual Risk Score      : 50/100" in text
        assert "MEDIUM - Mixed indicators require manual review" in text
        assert "RECOMMENDATION RATIONALE" in text

    def test_no_timestamp_unless_requested(self):
        case = make_case()
        assert "Generated at" not in render_explanation(case)
        stamped = render_explanation(case, generated_at="2024-03-01T10:00:00Z")
        assert stamped.endswith("Generated at: 2024-03-01T10:00:00Z")
        assert stamped.startswith(render_explanation(case))

    def test_fraud_links_explained_per_channel(self):
        case = make_case(
            category="FRAUD_UNAUTHORIZED",
            transaction={"sameCardSuccessOrders": 8, "sameDeviceSuccessOrders": 4},
        )
        text = render_explanation(case)
        assert "Card previously used: Evidence of account takeover or friendly fraud" in text
        assert "Device previously used: Evidence of cardholder involvement" in text
        assert "High confidence: 12 total linked orders" in text

    def test_merchandise_rationale(self):
        case = make_case(category="MERCHANT_MERCHANDISE", riskScore=50)
        assert "MERCHANT INVESTIGATION" in render_explanation(case)


class TestFeedbackAcknowledgment:
    def test_groups_in_checklist_order(self):
        feedback = "Please review: merchant ignored the customer, proof attached, suspicious"
        assert acknowledged_groups(feedback) == [
            "customer_relationship",
            "evidence",
            "merchant_behavior",
            "fraud_pattern",
            "investigation",
        ]

    def test_states_original_score(self):
        text = render_feedback_acknowledgment("  approve this  ", 62)
        assert "  Original Risk Score : 62" in text
        assert '"approve this"' in text
        assert "Approval Consideration" in text
        assert "Rejection Consideration" not in text

    def test_no_groups_matched(self):
        text = render_feedback_acknowledgment("called the bank", 40)
        assert "✓" not in text


class TestKeyFactorsAndFlags:
    def test_positive_factors(self):
        case = make_case(
            category="MERCHANT_MERCHANDISE",
            transaction={"amount": 80, "sameCardSuccessOrders": 2, "sameAddressSuccessOrders": 2, "itemDelivered": "Y"},
            customer={"creditScore": 780},
            evidence=evidence_items(2),
        )
        factors = key_factors(case)
        assert "Excellent customer credit score" in factors
        assert "No dispute history records" in factors
        assert "Multiple evidence provided" in factors
        assert "Small dispute amount" in factors
        assert "Loyal customer with 4 previous successful orders" in factors
        assert "Item was delivered - supports customer claim" in factors
        assert "Low customer dispute rate" in factors

    def test_fraud_without_links_is_supporting(self):
        case = make_case(category="FRAUD_UNAUTHORIZED")
        assert "No transaction history links - consistent with stolen card/identity theft" in key_factors(case)

    def test_warning_flags(self):
        case = make_case(
            category="FRAUD_UNAUTHORIZED",
            riskScore=80,
            transaction={"amount": 2500, "sameIpSuccessOrders": 3, "itemDelivered": "Y"},
            customer={
                "previousDisputes": 4,
                "disputeCustomerWon": 3,
                "disputePercentage": 7,
                "linkedCustomersDisputeRate": 5,
            },
        )
        flags = warning_flags(case)
        assert flags == [
            "Multiple dispute history",
            "High risk score",
            "Lack of supporting evidence",
            "Large transaction amount",
            "High customer dispute rate (>5%)",
            "IP used in 3 previous orders - potential abusive chargeback",
            "Item delivered - disputing received goods",
            "High-risk customer network",
            "High dispute win rate (potential abuse)",
        ]

    def test_new_customer_flag(self):
        case = make_case(category="PROCESSING_ISSUES")
        assert "New customer with no order history - higher risk" in warning_flags(case)


class TestDeriveAnalysis:
    def test_keeps_persisted_score(self):
        case = make_case(riskScore=58, aiConfidence=77, category="MERCHANT_MERCHANDISE")
        result = derive_analysis(case)

        assert result.risk_score == 58
        assert result.confidence == 77
        assert result.recommendation == "merchant_investigation"
        assert result.analysis == render_explanation(case)

    def test_payload_shape(self):
        payload = derive_analysis(make_case()).to_payload()
        assert set(payload) == {"riskScore", "recommendation", "confidence", "analysis", "keyFactors", "warningFlags"}
