"""
middleware/pii.py
=================
PIIMiddleware — keeps cardholder data out of logs and the audit trail.

Analyst feedback is free text and regularly quotes the cardholder back:
their name, their email, a phone number from a call note, a card number
read off a statement. Two passes run over it:

  1. identifiers known from the case record (name, email, phone, customer
     id) are replaced wherever they appear, case-insensitively;
  2. generic patterns catch anything else that looks like an SSN, email,
     phone or full card number.

The node populates state.masked_customer_id and state.scrubbed_feedback.
The case record and the raw feedback are left as they are: the feedback
the analyst typed is what gets persisted and sent for re-scoring.
"""

from __future__ import annotations
import re
from typing import Optional

from graph.state import CaseWorkflowState
from scoring_engine.case import CaseRecord


_PII_PATTERNS = {
    "ssn":          re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
    "email":        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    "card_number":  re.compile(r"\b(?:\d[ -]?){12,18}\d\b"),
    "phone":        re.compile(r"(?<!\w)(\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
}

# Shorter values match too much ordinary text.
_MIN_IDENTIFIER_LENGTH = 4


def mask_customer_id(customer_id: Optional[str]) -> str:
    """
    Keep the last 2 characters, star the rest (at least 4 stars, so a short
    id never survives unchanged).
      cust_001 → ******01
      C14      → ****14
    """
    if not customer_id:
        return "UNKNOWN"
    visible = customer_id[-2:]
    return f"{'*' * max(4, len(customer_id) - len(visible))}{visible}"


def _known_identifiers(case: CaseRecord) -> dict[str, str]:
    customer = case.customer
    candidates = {
        "customer_name": customer.name,
        "customer_email": customer.email,
        "customer_phone": customer.phone,
        "customer_id": customer.id,
    }
    return {
        kind: value.strip()
        for kind, value in candidates.items()
        if value and len(value.strip()) >= _MIN_IDENTIFIER_LENGTH
    }


def scrub_free_text(text: str, case: Optional[CaseRecord] = None) -> tuple[str, list[str]]:
    """
    Remove PII from analyst feedback.
    Returns (scrubbed_text, redacted_field_types) in the order found.
    """
    redacted = []
    scrubbed = text

    if case is not None:
        for kind, value in _known_identifiers(case).items():
            pattern = re.compile(re.escape(value), re.IGNORECASE)
            if pattern.search(scrubbed):
                scrubbed = pattern.sub(f"[REDACTED-{kind.upper()}]", scrubbed)
                redacted.append(kind)

    for pii_type, pattern in _PII_PATTERNS.items():
        if pattern.search(scrubbed):
            scrubbed = pattern.sub(f"[REDACTED-{pii_type.upper()}]", scrubbed)
            redacted.append(pii_type)
    return scrubbed, redacted


def run_pii_middleware(state: CaseWorkflowState) -> CaseWorkflowState:
    """LangGraph node: mask the customer id and scrub the feedback."""
    state.node_path.append("pii_middleware")

    if state.case is not None:
        state.masked_customer_id = mask_customer_id(state.case.customer.id)
        state.pii_fields_redacted.append("customer_id")

    if state.feedback:
        scrubbed, found_types = scrub_free_text(state.feedback, state.case)
        state.scrubbed_feedback = scrubbed
        state.pii_fields_redacted.extend(t for t in found_types if t not in state.pii_fields_redacted)

    return state
