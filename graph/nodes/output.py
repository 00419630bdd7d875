"""
graph/nodes/output.py
=====================
Output Node — final node in every execution path.

Responsibilities:
  - Ensure final_response is populated regardless of path taken.
  - Print the execution summary (status, route, node path, scores).
  - Write the per-run JSON audit log to `log_dir`.
  - Keep raw PII out of both: only masked identifiers and scrubbed feedback
    are emitted.
"""

from __future__ import annotations
import os
import json
import logging

from graph.state import CaseWorkflowState
from middleware.pii import mask_customer_id, scrub_free_text
from scoring_engine.recommendation import RECOMMENDATION_LABELS

logger = logging.getLogger(__name__)

_SEP = "═" * 70


def _build_final_response_if_missing(state: CaseWorkflowState) -> str:
    if state.final_response:
        return state.final_response

    case_number = state.case.case_number if state.case else "UNKNOWN"
    status = state.terminal_status
    result = state.result

    if status == "REJECTED":
        errors = " | ".join(state.errors) if state.errors else "request refused"
        return f"Request for case {case_number} was not processed. {errors}"

    if status == "ANALYZED" and result is not None:
        return (
            f"Case {case_number} analysis refreshed. Risk score {result.risk_score} "
            f"({state.risk_tier}), recommendation: {RECOMMENDATION_LABELS[result.recommendation]}."
        )

    if status in ("RESCORED", "DEGRADED") and result is not None:
        source = "re-scoring service" if status == "RESCORED" else "local feedback model"
        return (
            f"Case {case_number} re-analyzed with analyst feedback via {source}. "
            f"Risk score {state.original_score} -> {result.risk_score}, "
            f"recommendation: {RECOMMENDATION_LABELS[result.recommendation]}."
        )

    return f"Request for case {case_number} completed with status: {status}."


def _build_audit_log(state: CaseWorkflowState) -> dict:
    """
    Build the structured audit log.
    CRITICAL: No raw PII — only masked identifiers appear here.
    """
    case = state.case
    feedback = state.scrubbed_feedback
    if feedback is None and state.feedback:
        feedback, _ = scrub_free_text(state.feedback, case)

    return {
        "run_id":              state.run_id,
        "timestamp":           state.timestamp,
        "intent":              state.intent,
        "case_number":         case.case_number if case else None,
        "customer_id_masked":  state.masked_customer_id
                               or (mask_customer_id(case.customer.id) if case else "NOT_SET"),
        "category":            case.category.value if case else None,
        "terminal_status":     state.terminal_status,
        "route_taken":         state.route_taken,
        "node_path":           state.node_path,
        "original_score":      state.original_score,
        "risk_score":          case.risk_score if case else None,
        "computed_score":      state.computed_score,
        "risk_tier":           state.risk_tier,
        "recommendation":      state.result.recommendation if state.result else None,
        "confidence":          state.result.confidence if state.result else None,
        "rescore_source":      state.rescore_source,
        "degraded_reason":     state.degraded_reason,
        "analyst_feedback":    feedback,
        "human_decision":      case.human_decision if case else None,
        "case_status":         case.status if case else None,
        "pii_fields_redacted": state.pii_fields_redacted,
        "moderation_passed":   state.moderation_passed,
        "moderation_reason":   state.moderation_reason,
        "model_call_count":    state.model_call_count,
        "errors":              state.errors,
    }


def output_node(state: CaseWorkflowState, log_dir: str = "logs") -> CaseWorkflowState:
    state.node_path.append("output")

    state.final_response = _build_final_response_if_missing(state)
    audit = _build_audit_log(state)

    print("")
    print(_SEP)
    print("  CHARGEBACK REVIEW WORKFLOW — EXECUTION COMPLETE")
    print(_SEP)
    print(f"  Run ID          : {state.run_id}")
    print(f"  Case            : {audit['case_number']}")
    print(f"  Status          : {state.terminal_status}")
    print(f"  Route Taken     : {state.route_taken}")
    print(f"  Node Path       : {' → '.join(state.node_path)}")
    print(f"  Response        : {state.final_response}")
    if state.case is not None and state.terminal_status != "REJECTED":
        print(f"  Risk Score      : {state.case.risk_score} / 100")
        print(f"  Computed Score  : {state.computed_score}")
        print(f"  Risk Tier       : {state.risk_tier}")
    if state.errors:
        print(f"  Warnings        : {len(state.errors)} warning(s) — see audit log")
    print(_SEP)

    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, f"run_{state.run_id}_{state.timestamp[:10]}.json")
    with open(log_path, "w") as f:
        json.dump(audit, f, indent=2, default=str)
    state.audit_log_path = log_path

    print(f"  Audit log saved : {log_path}")
    print(_SEP)
    print("")
    logger.debug("Audit log for run %s written to %s", state.run_id, log_path)

    return state
