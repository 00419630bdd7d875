"""
scoring_engine/feedback.py
==========================
Feedback Adjustment Engine — local, deterministic re-scoring from analyst
free text. Used whenever the remote re-scoring service cannot answer.

This is a keyword heuristic, not NLP. The rules live in one ordered table so
every delta is auditable; all matching rules apply (they are not mutually
exclusive). Matching is case-insensitive substring matching on the whole
feedback text.

  adjusted   = clamp(current_score + Σ deltas, 5, 95)
  confidence = clamp(current_confidence + 5, 75, 95)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from scoring_engine.case import CaseRecord, Recommendation, clamp
from scoring_engine.recommendation import resolve_recommendation


@dataclass(frozen=True)
class KeywordRule:
    name: str
    delta: int
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        lower = text.lower()
        if self.all_of:
            return all(kw in lower for kw in self.all_of)
        return any(kw in lower for kw in self.any_of)


# ── Adjustment Table ──────────────────────────────────────────────────────────
# Negative deltas lower risk, positive deltas raise it.
ADJUSTMENT_RULES = [
    KeywordRule("loyal_customer",   -15, any_of=("loyal", "good customer")),
    KeywordRule("strong_evidence",  -10, all_of=("evidence", "strong")),
    KeywordRule("legitimate",       -12, any_of=("legitimate", "valid")),
    KeywordRule("leans_approve",     -8, any_of=("approve", "favor")),
    KeywordRule("suspicious",       +15, any_of=("suspicious", "doubt")),
    KeywordRule("fraud_or_abuse",   +20, any_of=("fraud", "abuse")),
    KeywordRule("leans_reject",     +12, any_of=("reject", "deny")),
    KeywordRule("high_risk",        +10, all_of=("risk", "high")),
]

SCORE_BOUNDS = (5, 95)
CONFIDENCE_BOUNDS = (75, 95)
CONFIDENCE_BOOST = 5


def normalize_feedback(feedback: Optional[str]) -> str:
    return (feedback or "").strip()


def matched_rules(feedback: str) -> list[KeywordRule]:
    return [rule for rule in ADJUSTMENT_RULES if rule.matches(feedback)]


def adjusted_score(feedback: str, original_score: int) -> int:
    delta = sum(rule.delta for rule in matched_rules(feedback))
    low, high = SCORE_BOUNDS
    return int(clamp(original_score + delta, low, high))


def adjusted_confidence(original_confidence: int) -> int:
    low, high = CONFIDENCE_BOUNDS
    return int(clamp(original_confidence + CONFIDENCE_BOOST, low, high))


@dataclass
class FeedbackAdjustment:
    feedback: str
    original_score: int
    adjusted_score: int
    total_delta: int
    matched: list[str]
    recommendation: Recommendation
    confidence: int


def adjust_for_feedback(case: CaseRecord, feedback: str) -> FeedbackAdjustment:
    """Apply the keyword table to `case.risk_score` and re-resolve the action."""
    text = normalize_feedback(feedback)
    rules = matched_rules(text)
    score = adjusted_score(text, case.risk_score)
    return FeedbackAdjustment(
        feedback=text,
        original_score=case.risk_score,
        adjusted_score=score,
        total_delta=sum(rule.delta for rule in rules),
        matched=[rule.name for rule in rules],
        recommendation=resolve_recommendation(score, case.category),
        confidence=adjusted_confidence(case.ai_confidence),
    )
