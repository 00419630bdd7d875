"""
scoring_engine/rescorer.py
==========================
Re-scoring with analyst feedback — one contract, two implementations.

  RemoteRescorer   POSTs the feedback and a case snapshot to the re-scoring
                   service and uses its answer verbatim.
  LocalRescorer    deterministic keyword model (scoring_engine.feedback).
  FallbackRescorer tries the remote once; any RescoringUnavailable switches
                   to the local model for that call. No retry, no backoff.

Callers only see `rescore(case, feedback) -> RescoreOutcome` and never need
to know which path answered, although the outcome records it for the audit
log.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Literal, Optional

import httpx
from pydantic import BaseModel, Field

from scoring_engine.case import CaseRecord
from scoring_engine.exceptions import RescoringUnavailable
from scoring_engine.explain import (
    ANALYST_FACTORS,
    AnalysisResult,
    key_factors,
    render_feedback_acknowledgment,
    render_feedback_footer,
    warning_flags,
)
from scoring_engine.feedback import FeedbackAdjustment, adjust_for_feedback

logger = logging.getLogger(__name__)

RescoreSource = Literal["remote", "local"]


class RescoreResponse(BaseModel):
    """Success body returned by the re-scoring service."""

    riskScore: int = Field(ge=0, le=100)
    recommendation: Literal["approve", "reject", "review", "merchant_investigation"]
    confidence: int = Field(ge=0, le=100)
    analysis: str
    keyFactors: list[str] = Field(default_factory=list)
    warningFlags: list[str] = Field(default_factory=list)


@dataclass
class RescoreOutcome:
    result: AnalysisResult          # shown to the reviewer
    persisted_analysis: str         # written to the case's aiAnalysis
    source: RescoreSource
    adjustment: Optional[FeedbackAdjustment] = None
    degraded_reason: Optional[str] = None


class Rescorer:
    def rescore(self, case: CaseRecord, feedback: str) -> RescoreOutcome:
        raise NotImplementedError


class RemoteRescorer(Rescorer):
    """Client for `POST {base_url}/analyze/{caseId}/reanalyze`."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _post(self, path: str, body: dict) -> dict:
        url = f"{self.base_url}{path}"
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(url, json=body)
            response.raise_for_status()
            return response.json()

    def rescore(self, case: CaseRecord, feedback: str) -> RescoreOutcome:
        feedback = feedback.strip()
        body = {
            "caseId": case.id or case.case_number,
            "analystFeedback": feedback,
            "disputeData": case.to_payload(),
        }
        try:
            data = self._post(f"/analyze/{case.id or case.case_number}/reanalyze", body)
            response = RescoreResponse.model_validate(data)
        except httpx.HTTPError as exc:
            raise RescoringUnavailable(f"re-scoring request failed: {exc}") from exc
        except ValueError as exc:
            # Bad JSON, bad UTF-8 and pydantic ValidationError are all ValueErrors.
            raise RescoringUnavailable(f"malformed re-scoring response: {exc}") from exc

        acknowledgment = render_feedback_acknowledgment(feedback, case.risk_score)
        analysis = "\n\n".join([acknowledgment, response.analysis, render_feedback_footer(feedback)])
        result = AnalysisResult(
            risk_score=response.riskScore,
            recommendation=response.recommendation,
            confidence=response.confidence,
            analysis=analysis,
            key_factors=[*response.keyFactors, *ANALYST_FACTORS],
            warning_flags=list(response.warningFlags),
        )
        return RescoreOutcome(result=result, persisted_analysis=response.analysis, source="remote")


class LocalRescorer(Rescorer):
    def rescore(self, case: CaseRecord, feedback: str) -> RescoreOutcome:
        adjustment = adjust_for_feedback(case, feedback)
        text = adjustment.feedback
        summary = (
            "Based on your feedback, the assessment was adjusted. The risk score has been "
            f"modified from {adjustment.original_score} to {adjustment.adjusted_score} "
            "to reflect your professional judgment."
        )
        analysis = "\n\n".join([
            render_feedback_acknowledgment(text, case.risk_score),
            summary,
            render_feedback_footer(text),
        ])
        result = AnalysisResult(
            risk_score=adjustment.adjusted_score,
            recommendation=adjustment.recommendation,
            confidence=adjustment.confidence,
            analysis=analysis,
            key_factors=[*key_factors(case), *ANALYST_FACTORS],
            warning_flags=warning_flags(case),
        )
        persisted = (
            f'Re-analyzed with analyst feedback: "{text}". '
            "Updated risk assessment based on additional context provided."
        )
        return RescoreOutcome(
            result=result,
            persisted_analysis=persisted,
            source="local",
            adjustment=adjustment,
        )


class FallbackRescorer(Rescorer):
    def __init__(self, primary: Optional[Rescorer], fallback: Optional[Rescorer] = None) -> None:
        self.primary = primary
        self.fallback = fallback or LocalRescorer()

    def rescore(self, case: CaseRecord, feedback: str) -> RescoreOutcome:
        if self.primary is None:
            return self.fallback.rescore(case, feedback)
        try:
            return self.primary.rescore(case, feedback)
        except RescoringUnavailable as exc:
            logger.warning(
                "Re-scoring degraded for case %s, using local feedback model: %s",
                case.case_number, exc,
            )
            outcome = self.fallback.rescore(case, feedback)
            outcome.degraded_reason = str(exc)
            return outcome


def build_rescorer(settings) -> FallbackRescorer:
    """Wire the rescorer from Settings; a disabled remote means local only."""
    primary = None
    if settings.rescoring_enabled and settings.rescoring_api_url:
        primary = RemoteRescorer(settings.rescoring_api_url, timeout=settings.rescoring_timeout)
    return FallbackRescorer(primary)
