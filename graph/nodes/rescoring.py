"""
graph/nodes/rescoring.py
========================
Re-scoring Node — applies analyst feedback to the case.

Runs the fallback-wrapped rescorer (remote service first, local keyword
model on any failure) and merges the answer into a NEW case record:
riskScore, aiRecommendation, aiConfidence, aiAnalysis and analystFeedback
are replaced together; `updated_at` is refreshed by CaseRecord.updated().

The remote call is counted against the run's call limit. If the limit is
already spent the remote is skipped and the local model answers.
"""

from __future__ import annotations
import logging

from graph.state import CaseWorkflowState
from middleware.call_limits import CallLimitExceededError, check_model_call_limit
from scoring_engine.rescorer import FallbackRescorer, LocalRescorer, Rescorer

logger = logging.getLogger(__name__)


def rescoring_node(state: CaseWorkflowState, rescorer: Rescorer | None = None) -> CaseWorkflowState:
    state.node_path.append("rescoring")

    rescorer = rescorer or FallbackRescorer(primary=None)
    case = state.case
    state.original_score = case.risk_score

    try:
        check_model_call_limit(state, increment=True)
        outcome = rescorer.rescore(case, state.feedback)
    except CallLimitExceededError as exc:
        outcome = LocalRescorer().rescore(case, state.feedback)
        outcome.degraded_reason = str(exc)

    result = outcome.result
    if state.moderation_passed is False and state.moderation_reason:
        result.warning_flags.append(f"Analyst feedback flagged: {state.moderation_reason}")

    state.case = case.updated(
        risk_score=result.risk_score,
        ai_recommendation=result.recommendation,
        ai_confidence=result.confidence,
        ai_analysis=outcome.persisted_analysis,
        analyst_feedback=state.feedback,
    )
    state.result = result
    state.rescore_source = outcome.source
    state.degraded_reason = outcome.degraded_reason

    logger.info(
        "Case %s re-scored via %s: %s -> %s (%s)",
        case.case_number, outcome.source, state.original_score,
        result.risk_score, result.recommendation,
    )
    return state
