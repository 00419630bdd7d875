"""Tests for environment-driven settings."""

from config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "RESCORING_API_URL", "RESCORING_TIMEOUT_SECONDS", "RESCORING_ENABLED",
            "OPENAI_API_KEY", "AUDIT_LOG_DIR", "LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()
        assert settings.rescoring_api_url == "http://localhost:5002/api"
        assert settings.rescoring_timeout == 10.0
        assert settings.rescoring_enabled is True
        assert settings.openai_api_key is None
        assert settings.audit_log_dir == "logs"
        assert settings.log_level == "INFO"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("RESCORING_API_URL", "http://svc:9000/api")
        monkeypatch.setenv("RESCORING_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("RESCORING_ENABLED", "false")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()
        assert settings.rescoring_api_url == "http://svc:9000/api"
        assert settings.rescoring_timeout == 2.5
        assert settings.rescoring_enabled is False
        assert settings.log_level == "DEBUG"

    def test_bad_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("RESCORING_TIMEOUT_SECONDS", "soon")
        assert Settings.from_env().rescoring_timeout == 10.0

    def test_blank_values(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "")
        monkeypatch.setenv("RESCORING_ENABLED", "  ")
        settings = Settings.from_env()
        assert settings.openai_api_key is None
        assert settings.rescoring_enabled is True

    def test_keyword_arguments_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("RESCORING_TIMEOUT_SECONDS", "30")
        settings = Settings(rescoring_timeout=3.0, rescoring_enabled=False)
        assert settings.rescoring_timeout == 3.0
        assert settings.rescoring_enabled is False
