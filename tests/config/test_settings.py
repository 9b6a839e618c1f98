"""Tests for environment-driven application settings."""

import pytest

from cna_analytics.config.settings import Environment, LogLevel, Settings
from cna_analytics.models.common import DataClassification


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("ENVIRONMENT", "DATA_CLASSIFICATION", "LOG_LEVEL", "NARRATIVE_TIMEOUT_SECONDS"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.ENVIRONMENT == Environment.DEV
        assert settings.DATA_CLASSIFICATION == DataClassification.CONFIDENTIAL
        assert settings.LOG_LEVEL == LogLevel.INFO
        assert settings.NARRATIVE_TIMEOUT_SECONDS == 60.0

    def test_read_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "prod")
        monkeypatch.setenv("DATA_CLASSIFICATION", "RESTRICTED")
        monkeypatch.setenv("agency_name", "Department of Works")
        settings = Settings(_env_file=None)
        assert settings.ENVIRONMENT == Environment.PROD
        assert settings.DATA_CLASSIFICATION == DataClassification.RESTRICTED
        assert settings.AGENCY_NAME == "Department of Works"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            Settings(_env_file=None, NARRATIVE_TIMEOUT_SECONDS=0)
