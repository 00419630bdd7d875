"""Exceptions raised by the scoring engine and review workflow."""

from __future__ import annotations


class ReviewEngineError(Exception):
    """Base class for chargeback review errors."""


class RescoringUnavailable(ReviewEngineError):
    """The remote re-scoring service failed or returned an unusable answer."""


class CaseClosedError(ReviewEngineError):
    """A human decision has closed the case; no further automated changes."""

    def __init__(self, case_number: str, decision: str):
        self.case_number = case_number
        self.decision = decision
        super().__init__(f"Case {case_number} is closed (human decision: {decision}).")


class ReanalysisInProgress(ReviewEngineError):
    """Feedback was submitted while a re-analysis of the case is still pending."""

    def __init__(self, case_number: str):
        self.case_number = case_number
        super().__init__(f"Case {case_number} is already being re-analyzed.")
