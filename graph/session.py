"""
graph/session.py
================
ReviewSession — one reviewer working one case.

Holds the current case snapshot and the feedback input, and drives the
workflow for the three reviewer actions:

  analyze()          re-derive the explanation; the case is not modified
  submit_feedback()  re-score with analyst feedback (Idle → Re-analyzing → Idle)
  decide()           record the terminal human decision

Every successful action replaces the held case with the new record returned
by the workflow; records are never edited in place. While a re-analysis is
pending, further submissions raise ReanalysisInProgress. Once a human
decision is recorded, both submit_feedback() and decide() raise
CaseClosedError.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Optional

from graph.state import CaseWorkflowState
from scoring_engine.case import HUMAN_DECISIONS, CaseRecord
from scoring_engine.exceptions import CaseClosedError, ReanalysisInProgress
from scoring_engine.explain import AnalysisResult

logger = logging.getLogger(__name__)

Workflow = Callable[[CaseWorkflowState], CaseWorkflowState]


class SessionState(str, Enum):
    IDLE = "idle"
    REANALYZING = "reanalyzing"


class ReviewSession:
    def __init__(self, case: CaseRecord, workflow: Optional[Workflow] = None):
        if workflow is None:
            from graph.workflow import build_workflow
            workflow = build_workflow()
        self.case = case
        self.workflow = workflow
        self.state = SessionState.IDLE
        self.feedback_input = ""
        self.last_result: Optional[AnalysisResult] = None
        self.last_run: Optional[CaseWorkflowState] = None

    @property
    def is_reanalyzing(self) -> bool:
        return self.state is SessionState.REANALYZING

    def _run(self, **request) -> CaseWorkflowState:
        run = self.workflow(CaseWorkflowState(case=self.case, **request))
        self.last_run = run
        return run

    def analyze(self) -> AnalysisResult:
        run = self._run(intent="analyze")
        self.last_result = run.result
        return run.result

    def submit_feedback(self, feedback: Optional[str] = None) -> CaseWorkflowState:
        """
        Re-score the case with analyst feedback.

        Uses the pending `feedback_input` when no text is passed. Empty or
        whitespace-only feedback comes back REJECTED without running the
        workflow, leaving the case and the input as they were.
        """
        if self.is_reanalyzing:
            raise ReanalysisInProgress(self.case.case_number)
        if self.case.is_closed:
            raise CaseClosedError(self.case.case_number, self.case.human_decision)

        text = self.feedback_input if feedback is None else feedback
        if not (text or "").strip():
            logger.info("Feedback for case %s not submitted: empty_feedback", self.case.case_number)
            return CaseWorkflowState(
                intent="reanalyze",
                case=self.case,
                feedback="",
                terminal_status="REJECTED",
                route_taken="empty_feedback",
                errors=["Intake: analyst feedback is empty."],
            )

        self.state = SessionState.REANALYZING
        try:
            run = self._run(intent="reanalyze", feedback=text)
        finally:
            self.state = SessionState.IDLE

        if run.terminal_status == "REJECTED":
            logger.info("Feedback for case %s not submitted: %s", self.case.case_number, run.route_taken)
            return run

        self.case = run.case
        self.last_result = run.result
        self.feedback_input = ""
        return run

    def decide(self, decision: str, notes: Optional[str] = None) -> CaseWorkflowState:
        if decision not in HUMAN_DECISIONS:
            raise ValueError(f"Unknown decision {decision!r}. Valid values: {list(HUMAN_DECISIONS)}")
        if self.is_reanalyzing:
            raise ReanalysisInProgress(self.case.case_number)
        if self.case.is_closed:
            raise CaseClosedError(self.case.case_number, self.case.human_decision)

        run = self._run(intent="decide", decision=decision, feedback=notes)
        self.case = run.case
        return run
