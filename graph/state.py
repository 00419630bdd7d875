"""
graph/state.py
==============
Defines the shared state object that flows through every LangGraph node.
All fields are typed; None means "not yet populated".
"""

from __future__ import annotations
from typing import Literal, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid

from scoring_engine.case import CaseRecord
from scoring_engine.explain import AnalysisResult


# ── Terminal Status Set ────────────────────────────────────────────────────────
#   ANALYZED  → explanation re-derived, score untouched
#   RESCORED  → feedback re-analysis answered by the remote re-scoring service
#   DEGRADED  → feedback re-analysis answered by the local keyword model
#   DECIDED   → reviewer recorded a terminal human decision
#   REJECTED  → request refused before any work (empty feedback, closed case,
#               unknown intent); the case is returned unchanged
TerminalStatus = Literal["ANALYZED", "RESCORED", "DEGRADED", "DECIDED", "REJECTED"]

# ── Request Intent Types ───────────────────────────────────────────────────────
#   analyze    → non-interactive pass, re-derive explanation only
#   reanalyze  → re-score with analyst feedback
#   decide     → record the reviewer's final decision
IntentType = Literal["analyze", "reanalyze", "decide"]


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class CaseWorkflowState:
    """
    Central state object passed between every node in the LangGraph workflow.
    Fields are populated progressively as execution moves through the graph.
    """

    # ── Run Identity ──────────────────────────────────────────────────────────
    run_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8].upper())
    timestamp: str = field(default_factory=_utc_stamp)

    # ── Request ───────────────────────────────────────────────────────────────
    intent: Optional[IntentType] = None
    case: Optional[CaseRecord] = None         # snapshot as received; replaced on update
    feedback: Optional[str] = None            # analyst free text (trimmed at intake)
    decision: Optional[str] = None            # requested human decision

    # ── After PII Middleware ──────────────────────────────────────────────────
    masked_customer_id: Optional[str] = None
    scrubbed_feedback: Optional[str] = None   # safe for logs
    pii_fields_redacted: list[str] = field(default_factory=list)

    # ── After Moderation Middleware ───────────────────────────────────────────
    moderation_passed: Optional[bool] = None
    moderation_reason: Optional[str] = None

    # ── After Re-scoring ──────────────────────────────────────────────────────
    original_score: Optional[int] = None
    rescore_source: Optional[str] = None      # "remote" | "local"
    degraded_reason: Optional[str] = None

    # ── After Scoring ─────────────────────────────────────────────────────────
    result: Optional[AnalysisResult] = None
    computed_score: Optional[int] = None      # weighted aggregate, advisory
    risk_tier: Optional[str] = None           # LOW / MEDIUM / HIGH
    score_breakdown: Optional[dict] = None

    # ── Routing ───────────────────────────────────────────────────────────────
    terminal_status: Optional[TerminalStatus] = None
    route_taken: Optional[str] = None

    # ── Final Output ──────────────────────────────────────────────────────────
    final_response: Optional[str] = None
    audit_log_path: Optional[str] = None
    node_path: list[str] = field(default_factory=list)   # audit trail
    errors: list[str] = field(default_factory=list)

    # ── Call Limits ───────────────────────────────────────────────────────────
    # One remote re-scoring call per run: no retries, no duplicate submission.
    model_call_count: int = 0
    MAX_MODEL_CALLS: int = 1
