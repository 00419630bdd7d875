"""Tests for PII masking, moderation and the call-limit guard."""

import pytest

from conftest import make_case
from graph.state import CaseWorkflowState
from middleware.call_limits import CallLimitExceededError, check_model_call_limit
from middleware.moderation import run_moderation_middleware
from middleware.pii import mask_customer_id, run_pii_middleware, scrub_free_text


class TestPII:
    @pytest.mark.parametrize("raw,masked", [
        ("cust_001", "******01"),
        ("C14", "****14"),
        ("", "UNKNOWN"),
    ])
    def test_mask_customer_id(self, raw, masked):
        assert mask_customer_id(raw) == masked

    def test_scrub_free_text(self):
        text, found = scrub_free_text("Reached jane@example.com on 555-123-4567, card 4111111111111111")
        assert "jane@example.com" not in text
        assert "[REDACTED-EMAIL]" in text
        assert "[REDACTED-CARD_NUMBER]" in text
        assert set(found) >= {"email", "phone", "card_number"}

    def test_node_populates_masked_fields(self):
        state = CaseWorkflowState(case=make_case(), feedback="mail test.customer@example.com")
        state = run_pii_middleware(state)

        assert state.masked_customer_id == mask_customer_id("cust_test_77")
        assert state.scrubbed_feedback == "mail [REDACTED-CUSTOMER_EMAIL]"
        assert "customer_email" in state.pii_fields_redacted
        assert state.feedback == "mail test.customer@example.com"
        assert state.node_path == ["pii_middleware"]


class TestModeration:
    def test_heuristic_pass(self):
        state = run_moderation_middleware(CaseWorkflowState(feedback="strong evidence"))
        assert state.moderation_passed is True

    def test_heuristic_flag(self):
        state = run_moderation_middleware(CaseWorkflowState(feedback="the merchant is an idiot"))
        assert state.moderation_passed is False
        assert "idiot" in state.moderation_reason

    def test_nothing_to_moderate(self):
        state = run_moderation_middleware(CaseWorkflowState(feedback="   "))
        assert state.moderation_passed is True


class TestCallLimits:
    def test_first_call_allowed(self):
        state = check_model_call_limit(CaseWorkflowState())
        assert state.model_call_count == 1
        assert state.errors == []

    def test_second_call_refused(self):
        state = CaseWorkflowState(model_call_count=1)
        with pytest.raises(CallLimitExceededError):
            check_model_call_limit(state)
        assert state.errors


class TestKnownIdentifiers:
    """Identifiers taken from the case record"""

    def test_name_scrubbed_case_insensitively(self):
        case = make_case(customer={"name": "Sarah Johnson"})
        text, found = scrub_free_text("spoke with SARAH JOHNSON, she is a loyal customer", case)
        assert "sarah" not in text.lower()
        assert found == ["customer_name"]

    def test_short_values_ignored(self):
        case = make_case(customer={"name": "Al"})
        text, found = scrub_free_text("Also valid", case)
        assert text == "Also valid"
        assert found == []
