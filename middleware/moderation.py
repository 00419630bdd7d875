"""
middleware/moderation.py
========================
ModerationMiddleware — screens analyst feedback before it is re-scored.

  - Uses the OpenAI moderation endpoint when an API key is configured.
  - Falls back to a keyword heuristic if no key is set or the API call fails
    (ModelFallbackMiddleware pattern).
  - Sets state.moderation_passed and state.moderation_reason.

Moderation never blocks a re-analysis: reviewers must always get a score.
A flagged note is carried into the result's warning flags and the audit log
so a supervisor can see it.
"""

from __future__ import annotations
import logging
from typing import Optional

import openai

from graph.state import CaseWorkflowState

logger = logging.getLogger(__name__)


# ── Fallback keyword heuristic (when no API key available) ────────────────────
_FLAGGED_KEYWORDS = [
    "kill", "threat", "harm", "discriminat", "racist", "sexist",
    "bribe", "idiot", "stupid",
]


def _heuristic_moderate(text: str) -> tuple[bool, str]:
    """
    Lightweight fallback moderation.
    Returns (passed: bool, reason: str).
    """
    lower = text.lower()
    for kw in _FLAGGED_KEYWORDS:
        if kw in lower:
            return False, f"Flagged by heuristic moderation: keyword '{kw}' detected."
    return True, "Passed heuristic moderation."


def _openai_moderate(text: str, api_key: str) -> tuple[bool, str]:
    """
    Call the OpenAI moderation endpoint.
    Falls back to the heuristic on any API error.
    """
    try:
        client = openai.OpenAI(api_key=api_key)
        response = client.moderations.create(input=text)
    except openai.OpenAIError as exc:
        logger.warning("OpenAI moderation unavailable, using heuristic: %s", exc)
        return _heuristic_moderate(text)

    result = response.results[0]
    if result.flagged:
        triggered = [cat for cat, val in result.categories.model_dump().items() if val]
        return False, f"OpenAI moderation flagged: {triggered}"
    return True, "Passed OpenAI moderation."


def run_moderation_middleware(
    state: CaseWorkflowState, api_key: Optional[str] = None
) -> CaseWorkflowState:
    """
    LangGraph node function for moderation middleware.
    Only runs if feedback is present.
    """
    state.node_path.append("moderation_middleware")

    text = state.scrubbed_feedback or state.feedback
    if not text or not text.strip():
        state.moderation_passed = True
        state.moderation_reason = "No analyst feedback to moderate."
        return state

    if api_key:
        passed, reason = _openai_moderate(text, api_key)
    else:
        passed, reason = _heuristic_moderate(text)

    state.moderation_passed = passed
    state.moderation_reason = reason
    if not passed:
        logger.info("Analyst feedback flagged on run %s: %s", state.run_id, reason)

    return state
