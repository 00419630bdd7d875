"""
graph/nodes/scoring.py
======================
Scoring Node — recomputes the seven-factor breakdown for the current case.

Responsibilities:
  - Run the weighted aggregator against the case (after any re-scoring).
  - Populate state with the computed total, the tier of the persisted score
    and the per-factor breakdown.
  - On the analyze path, build the outbound AnalysisResult from the case
    without touching its score. On the reanalyze path the rescoring node has
    already produced the result; it is left as is.
"""

from __future__ import annotations
from graph.state import CaseWorkflowState
from scoring_engine import compute_score, derive_analysis


def scoring_node(state: CaseWorkflowState) -> CaseWorkflowState:
    state.node_path.append("scoring")

    result = compute_score(state.case)
    state.computed_score = result.computed_score
    state.risk_tier = result.tier
    state.score_breakdown = result.breakdown

    if state.result is None:
        state.result = derive_analysis(state.case)

    return state
