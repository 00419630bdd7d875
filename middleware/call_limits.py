"""
middleware/call_limits.py
=========================
ModelCallLimitMiddleware equivalent for the re-scoring service.

Each workflow run may submit at most MAX_MODEL_CALLS (one) remote
re-scoring requests. A second attempt in the same run is a duplicate
submission: it is refused with a structured error and the caller drops to
the local feedback model instead of calling out again. In practice that is
a finished run state handed back into the workflow as a retry.
"""

from __future__ import annotations
from graph.state import CaseWorkflowState


class CallLimitExceededError(Exception):
    pass


def check_model_call_limit(state: CaseWorkflowState, increment: bool = True) -> CaseWorkflowState:
    """
    Count a remote re-scoring attempt against the per-run budget.
    Raises CallLimitExceededError once the budget is spent; the error text
    is also kept on state.errors for the audit log.
    """
    attempted = state.model_call_count + 1 if increment else state.model_call_count
    state.model_call_count = attempted

    if attempted <= state.MAX_MODEL_CALLS:
        return state

    msg = (
        f"ModelCallLimitMiddleware: re-scoring call {attempted} refused, "
        f"budget is {state.MAX_MODEL_CALLS} per run. Using the local model."
    )
    state.errors.append(msg)
    raise CallLimitExceededError(msg)
