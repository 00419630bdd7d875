"""Tests for the re-scoring collaborator and its local fallback."""

import json
import logging

import httpx
import pytest

from conftest import make_case
from config import Settings
from scoring_engine.exceptions import RescoringUnavailable
from scoring_engine.rescorer import (
    FallbackRescorer,
    LocalRescorer,
    RemoteRescorer,
    build_rescorer,
)


BASE_URL = "http://rescoring.test/api"

GOOD_BODY = {
    "riskScore": 33,
    "recommendation": "review",
    "confidence": 88,
    "analysis": "Service says the evidence holds up.",
    "keyFactors": ["Evidence verified"],
    "warningFlags": [],
}


def _remote(handler) -> RemoteRescorer:
    return RemoteRescorer(BASE_URL, timeout=2.0, transport=httpx.MockTransport(handler))


class TestRemoteRescorer:
    def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=GOOD_BODY)

        case = make_case()
        _remote(handler).rescore(case, "  strong evidence  ")

        assert seen["url"] == f"{BASE_URL}/analyze/42/reanalyze"
        assert seen["body"]["caseId"] == "42"
        assert seen["body"]["analystFeedback"] == "strong evidence"
        assert seen["body"]["disputeData"]["caseNumber"] == "CD-TEST-001"

    def test_success_used_verbatim(self):
        outcome = _remote(lambda request: httpx.Response(200, json=GOOD_BODY)).rescore(
            make_case(riskScore=50), "strong evidence"
        )

        assert outcome.source == "remote"
        assert outcome.result.risk_score == 33
        assert outcome.result.recommendation == "review"
        assert outcome.result.confidence == 88
        assert outcome.persisted_analysis == GOOD_BODY["analysis"]
        assert GOOD_BODY["analysis"] in outcome.result.analysis
        assert "  Original Risk Score : 50" in outcome.result.analysis
        assert outcome.result.key_factors[0] == "Evidence verified"
        assert "Analyst expertise incorporated" in outcome.result.key_factors

    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    def test_non_2xx_raises(self, status):
        rescorer = _remote(lambda request: httpx.Response(status, json={"error": "nope"}))
        with pytest.raises(RescoringUnavailable):
            rescorer.rescore(make_case(), "approve")

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RescoringUnavailable):
            _remote(handler).rescore(make_case(), "approve")

    @pytest.mark.parametrize("body", [
        {"riskScore": 33},
        {**GOOD_BODY, "riskScore": 140},
        {**GOOD_BODY, "recommendation": "escalate"},
    ])
    def test_malformed_body_raises(self, body):
        with pytest.raises(RescoringUnavailable):
            _remote(lambda request: httpx.Response(200, json=body)).rescore(make_case(), "approve")

    def test_non_json_body_raises(self):
        rescorer = _remote(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(RescoringUnavailable):
            rescorer.rescore(make_case(), "approve")

    def test_undecodable_body_raises(self):
        rescorer = _remote(lambda request: httpx.Response(200, content=b"\xff"))
        with pytest.raises(RescoringUnavailable):
            rescorer.rescore(make_case(), "approve")


class TestLocalRescorer:
    def test_keyword_model(self):
        outcome = LocalRescorer().rescore(make_case(riskScore=50), "This customer seems suspicious and the evidence is weak")

        assert outcome.source == "local"
        assert outcome.result.risk_score == 65
        assert outcome.result.recommendation == "review"
        assert outcome.result.confidence == 85
        assert "modified from 50 to 65" in outcome.result.analysis
        assert outcome.persisted_analysis.startswith(
            'Re-analyzed with analyst feedback: "This customer seems suspicious and the evidence is weak".'
        )


class TestFallbackRescorer:
    def test_remote_failure_falls_back(self, caplog):
        remote = _remote(lambda request: httpx.Response(500))
        rescorer = FallbackRescorer(remote)

        with caplog.at_level(logging.WARNING, logger="scoring_engine.rescorer"):
            outcome = rescorer.rescore(make_case(riskScore=50), "loyal customer with strong evidence, please approve")

        assert outcome.source == "local"
        assert outcome.result.risk_score == 17
        assert outcome.result.recommendation == "approve"
        assert outcome.degraded_reason
        assert any("degraded" in record.getMessage() for record in caplog.records)

    def test_remote_success_passes_through(self):
        rescorer = FallbackRescorer(_remote(lambda request: httpx.Response(200, json=GOOD_BODY)))
        outcome = rescorer.rescore(make_case(), "anything")
        assert outcome.source == "remote"
        assert outcome.degraded_reason is None

    def test_single_attempt_no_retry(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(502)

        FallbackRescorer(_remote(handler)).rescore(make_case(), "approve")
        assert len(calls) == 1

    def test_no_primary_uses_local(self):
        assert FallbackRescorer(None).rescore(make_case(), "approve").source == "local"

    def test_undecodable_body_falls_back(self):
        rescorer = FallbackRescorer(_remote(lambda request: httpx.Response(200, content=b"\xff")))
        outcome = rescorer.rescore(make_case(riskScore=50), "suspicious")

        assert outcome.source == "local"
        assert outcome.result.risk_score == 65


class TestBuildRescorer:
    def test_disabled_remote_is_local_only(self):
        rescorer = build_rescorer(Settings(rescoring_enabled=False))
        assert rescorer.primary is None

    def test_enabled_remote(self):
        rescorer = build_rescorer(Settings(rescoring_api_url="http://svc/api/", rescoring_timeout=3.0))
        assert isinstance(rescorer.primary, RemoteRescorer)
        assert rescorer.primary.base_url == "http://svc/api"
        assert rescorer.primary.timeout == 3.0
