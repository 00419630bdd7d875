"""Smoke tests for the CLI entry point."""

import json

import pytest

import main
from sample_cases import SCENARIOS, load_case


@pytest.fixture(autouse=True)
def offline(monkeypatch):
    monkeypatch.setenv("RESCORING_ENABLED", "false")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


class TestSampleCases:
    @pytest.mark.parametrize("name", sorted(SCENARIOS))
    def test_every_scenario_loads(self, name):
        case = load_case(name)
        assert case.case_number == SCENARIOS[name]["caseNumber"]

    def test_unknown_scenario(self):
        with pytest.raises(KeyError):
            load_case("nope")


class TestCli:
    def test_list(self, capsys):
        assert main.main(["--list"]) == 0
        assert "fraud_linked_history" in capsys.readouterr().out

    def test_analyze(self, capsys, log_dir):
        assert main.main(["--scenario", "duplicate_charge", "--log-dir", log_dir]) == 0
        assert "RISK ANALYSIS BREAKDOWN" in capsys.readouterr().out

    def test_feedback_json(self, capsys, log_dir):
        code = main.main([
            "--scenario", "merchandise_quality", "--log-dir", log_dir,
            "--feedback", "This customer seems suspicious and the evidence is weak", "--json",
        ])
        out = capsys.readouterr().out
        assert code == 0
        payload = json.loads(out[out.index("{\n"):])
        assert payload["riskScore"] == 65
        assert payload["aiRecommendation"] == "merchant_investigation"

    def test_empty_feedback_exit_code(self, log_dir):
        assert main.main(["--scenario", "merchandise_quality", "--log-dir", log_dir, "--feedback", "  "]) == 1

    def test_feedback_and_decision_conflict(self, log_dir):
        assert main.main([
            "--scenario", "merchandise_quality", "--log-dir", log_dir,
            "--feedback", "ok", "--decision", "approve",
        ]) == 2
