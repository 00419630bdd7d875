"""
graph/nodes/intake.py
=====================
Intake Node — first node in the LangGraph workflow.

Responsibilities:
  - Validate the request intent (analyze / reanalyze / decide).
  - Require a case snapshot.
  - Trim analyst feedback; empty or whitespace-only feedback on a reanalyze
    request is refused here, before any collaborator call.
  - Refuse reanalyze/decide requests on a case already closed by a human
    decision.

A refused request ends with terminal_status REJECTED and the case untouched.
"""

from __future__ import annotations
import logging

from graph.state import CaseWorkflowState
from scoring_engine.case import HUMAN_DECISIONS

logger = logging.getLogger(__name__)

VALID_INTENTS = {"analyze", "reanalyze", "decide"}


def _reject(state: CaseWorkflowState, route: str, message: str) -> CaseWorkflowState:
    state.errors.append(f"Intake: {message}")
    state.terminal_status = "REJECTED"
    state.route_taken = route
    logger.info("Run %s rejected at intake: %s", state.run_id, message)
    return state


def intake_node(state: CaseWorkflowState) -> CaseWorkflowState:
    state.node_path.append("intake")

    intent = (state.intent or "").lower().strip()
    if intent not in VALID_INTENTS:
        return _reject(
            state, "invalid_intent",
            f"Unknown or missing intent '{intent}'. Valid values: {sorted(VALID_INTENTS)}",
        )
    state.intent = intent

    if state.case is None:
        return _reject(state, "missing_case", "a case snapshot is required.")

    if intent == "reanalyze":
        state.feedback = (state.feedback or "").strip()
        if not state.feedback:
            return _reject(state, "empty_feedback", "analyst feedback is empty.")

    if intent == "decide" and state.decision not in HUMAN_DECISIONS:
        return _reject(
            state, "invalid_decision",
            f"Unknown decision '{state.decision}'. Valid values: {list(HUMAN_DECISIONS)}",
        )

    if intent in ("reanalyze", "decide") and state.case.is_closed:
        return _reject(
            state, "case_closed",
            f"case {state.case.case_number} already closed "
            f"(human decision: {state.case.human_decision}).",
        )

    return state
