"""
graph/workflow.py
=================
LangGraph Workflow Assembly.

Builds and compiles the StateGraph that carries a review request through
validation, middleware, re-scoring, scoring and the audit trail.

Architecture:
┌─────────────────────────────────────────────────────────────────────┐
│                    CHARGEBACK REVIEW WORKFLOW                       │
│                                                                     │
│  START → intake ──REJECTED──────────────────────────→ output → END  │
│                                                                     │
│  intake ──analyze────→ scoring → router ─────────────→ output       │
│  intake ──reanalyze──→ pii_mw → moderation_mw → rescoring           │
│                          → scoring → router ──────────→ output      │
│  intake ──decide─────→ hitl ─────────────────────────→ output       │
│                                                                     │
│  Middleware applied as inline nodes on the reanalyze path:          │
│    • pii_middleware        (PIIMiddleware)                          │
│    • moderation_middleware (OpenAIModerationMiddleware +            │
│                             heuristic fallback)                     │
│    • call limit check      (ModelCallLimit, inside rescoring)       │
└─────────────────────────────────────────────────────────────────────┘

LangGraph note: StateGraph with a dataclass state and a functional node
pattern. Each node receives the full state and returns the mutated state.
"""

from __future__ import annotations
from functools import partial
from typing import Callable, Optional

from langgraph.graph import StateGraph, END

from config import Settings
from graph.state import CaseWorkflowState
from graph.nodes.intake import intake_node
from graph.nodes.rescoring import rescoring_node
from graph.nodes.scoring import scoring_node
from graph.nodes.router import router_node
from graph.nodes.hitl import hitl_node
from graph.nodes.output import output_node
from middleware.pii import run_pii_middleware
from middleware.moderation import run_moderation_middleware
from scoring_engine.rescorer import Rescorer, build_rescorer


# ── Routing Functions ─────────────────────────────────────────────────────────

def _route_after_intake(state: CaseWorkflowState) -> str:
    """Refused requests skip straight to output; otherwise branch on intent."""
    if state.terminal_status == "REJECTED":
        return "output"
    if state.intent == "reanalyze":
        return "pii_middleware"
    if state.intent == "decide":
        return "hitl"
    return "scoring"


# ── Graph Builder ─────────────────────────────────────────────────────────────

def build_workflow(
    rescorer: Optional[Rescorer] = None,
    log_dir: Optional[str] = None,
    moderation_api_key: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Callable[[CaseWorkflowState], CaseWorkflowState]:
    """
    Build and return the compiled LangGraph workflow.

    Parameters
    ----------
    rescorer           : rescorer used on the reanalyze path; defaults to the
                         one wired from settings (remote with local fallback)
    log_dir            : directory for audit log output
    moderation_api_key : OpenAI key for moderation; heuristic only when None
    settings           : runtime settings; read from the environment if None

    Returns
    -------
    A callable that accepts CaseWorkflowState and returns CaseWorkflowState.
    """
    settings = settings or Settings.from_env()
    rescorer = rescorer or build_rescorer(settings)
    log_dir = log_dir or settings.audit_log_dir
    if moderation_api_key is None:
        moderation_api_key = settings.openai_api_key

    # Bind parameters to nodes that need them
    rescoring_bound = partial(rescoring_node, rescorer=rescorer)
    moderation_bound = partial(run_moderation_middleware, api_key=moderation_api_key)
    output_bound = partial(output_node, log_dir=log_dir)

    graph = StateGraph(CaseWorkflowState)

    # Register nodes
    graph.add_node("intake",                intake_node)
    graph.add_node("pii_middleware",        run_pii_middleware)
    graph.add_node("moderation_middleware", moderation_bound)
    graph.add_node("rescoring",             rescoring_bound)
    graph.add_node("scoring",               scoring_node)
    graph.add_node("router",                router_node)
    graph.add_node("hitl",                  hitl_node)
    graph.add_node("output",                output_bound)

    # Set entry point
    graph.set_entry_point("intake")

    # Add edges
    graph.add_conditional_edges(
        "intake",
        _route_after_intake,
        {
            "output": "output",
            "pii_middleware": "pii_middleware",
            "scoring": "scoring",
            "hitl": "hitl",
        },
    )
    graph.add_edge("pii_middleware",        "moderation_middleware")
    graph.add_edge("moderation_middleware", "rescoring")
    graph.add_edge("rescoring",             "scoring")
    graph.add_edge("scoring",               "router")
    graph.add_edge("router",                "output")
    graph.add_edge("hitl",                  "output")
    graph.add_edge("output",                END)

    compiled = graph.compile()

    def invoke_wrapper(state: CaseWorkflowState) -> CaseWorkflowState:
        result = compiled.invoke(state)
        if isinstance(result, dict):
            return CaseWorkflowState(**result)
        return result
    return invoke_wrapper


def run_request(
    intent: str,
    case,
    feedback: Optional[str] = None,
    decision: Optional[str] = None,
    workflow: Optional[Callable[[CaseWorkflowState], CaseWorkflowState]] = None,
) -> CaseWorkflowState:
    """Build a fresh state for one request and run it through the workflow."""
    workflow = workflow or build_workflow()
    state = CaseWorkflowState(intent=intent, case=case, feedback=feedback, decision=decision)
    return workflow(state)
