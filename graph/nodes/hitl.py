"""
graph/nodes/hitl.py
===================
Human-in-the-Loop (HITL) Node — records the reviewer's final decision.

Behavior:
  - Only reached on the `decide` intent, after intake has checked that the
    decision is valid and the case is still open.
  - Prints the review packet (score, tier, recommendation, breakdown) so the
    console audit trail shows what the reviewer saw.
  - Applies the decision copy-on-write and moves the case to its status:

      approve          → admitted_closed        (refund granted)
      reject           → admitted_closed        (dispute closed, no refund)
      investigate      → merchant_investigation
      send_to_merchant → merchant_investigation

A recorded decision closes the case; intake refuses any later automated
re-analysis of it.
"""

from __future__ import annotations
from graph.state import CaseWorkflowState
from middleware.pii import mask_customer_id
from scoring_engine import compute_score
from scoring_engine.recommendation import RECOMMENDATION_LABELS, displayed_recommendation


_SEPARATOR = "─" * 70

DECISION_STATUS = {
    "approve": "admitted_closed",
    "reject": "admitted_closed",
    "investigate": "merchant_investigation",
    "send_to_merchant": "merchant_investigation",
}

DECISION_LABELS = {
    "approve": "Refund Approved",
    "reject": "Refund Rejected - Representment",
    "investigate": "Sent for Merchant Investigation",
    "send_to_merchant": "Sent To Merchant for Processing",
}


def _build_review_packet(state: CaseWorkflowState) -> str:
    case = state.case
    result = compute_score(case)
    recommendation = displayed_recommendation(case)
    lines = [
        "",
        _SEPARATOR,
        "  REVIEWER DECISION — HUMAN IN THE LOOP",
        _SEPARATOR,
        f"  Run ID         : {state.run_id}",
        f"  Case           : {case.case_number}",
        f"  Customer       : {state.masked_customer_id or mask_customer_id(case.customer.id)}  (masked)",
        f"  Category       : {case.category.value}",
        f"  Risk Score     : {case.risk_score} / 100  (computed {result.computed_score})",
        f"  Risk Tier      : {result.tier}",
        f"  Recommendation : {RECOMMENDATION_LABELS[recommendation]}",
        f"  Decision       : {DECISION_LABELS[state.decision]}",
        _SEPARATOR,
        "  SCORE BREAKDOWN:",
    ]
    for d in result.breakdown.values():
        lines.append(
            f"    {d['label']:<24} score={d['score']:<4} impact={d['weighted_impact']}"
        )
    lines.append(_SEPARATOR)
    return "\n".join(lines)


def hitl_node(state: CaseWorkflowState) -> CaseWorkflowState:
    state.node_path.append("hitl")

    if state.terminal_status is not None:
        return state

    print(_build_review_packet(state))

    changes = {"human_decision": state.decision, "status": DECISION_STATUS[state.decision]}
    notes = (state.feedback or "").strip()
    if notes:
        changes["analyst_feedback"] = notes
    state.case = state.case.updated(**changes)
    state.terminal_status = "DECIDED"
    state.route_taken = f"human_{state.decision}"
    state.final_response = (
        f"Case {state.case.case_number}: {DECISION_LABELS[state.decision]}. "
        f"Status: {state.case.status}"
    )
    return state
