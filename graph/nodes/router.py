"""
graph/nodes/router.py
=====================
Router Node — assigns the terminal status once scoring has run.

┌──────────────────────────────────────────────────────────────────────┐
│  Condition                             │ Terminal Status │ Route       │
├────────────────────────────────────────┼─────────────────┼─────────────│
│  Already terminated (intake)           │ unchanged       │ unchanged   │
│  analyze intent                        │ ANALYZED        │ rederived   │
│  reanalyze answered by remote service  │ RESCORED        │ remote_…    │
│  reanalyze answered by local model     │ DEGRADED        │ local_…     │
└──────────────────────────────────────────────────────────────────────┘

DEGRADED is not a failure: the reviewer still receives a usable score and
narrative, the status only records that the fallback answered.
"""

from __future__ import annotations
from graph.state import CaseWorkflowState


def router_node(state: CaseWorkflowState) -> CaseWorkflowState:
    state.node_path.append("router")

    if state.terminal_status is not None:
        return state

    if state.intent == "analyze":
        state.terminal_status = "ANALYZED"
        state.route_taken = "explanation_rederived"
        return state

    recommendation = state.result.recommendation if state.result else "review"
    if state.rescore_source == "remote":
        state.terminal_status = "RESCORED"
        state.route_taken = f"remote_rescore_{recommendation}"
    else:
        state.terminal_status = "DEGRADED"
        state.route_taken = f"local_fallback_{recommendation}"
    return state
