"""Tests for library settings."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from eztv.config import Settings, get_settings
from eztv.constants import EZTV_BASE_URL


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.base_url == EZTV_BASE_URL
        assert settings.request_timeout == 30.0
        assert settings.max_connections == 10
        assert settings.recheck_interval == timedelta(minutes=5)
        assert settings.log_level == "INFO"
        assert settings.log_format == "auto"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("EZTV_BASE_URL", "https://mirror.example/api/")
        monkeypatch.setenv("EZTV_RECHECK_INTERVAL_SECONDS", "60")
        monkeypatch.setenv("EZTV_MAX_CONNECTIONS", "3")

        settings = Settings(_env_file=None)

        assert settings.base_url == "https://mirror.example/api"
        assert settings.recheck_interval == timedelta(minutes=1)
        assert settings.max_connections == 3

    @pytest.mark.parametrize(
        "name, value",
        [
            ("EZTV_BASE_URL", " / "),
            ("EZTV_REQUEST_TIMEOUT", "0"),
            ("EZTV_RECHECK_INTERVAL_SECONDS", "-5"),
            ("EZTV_MAX_CONNECTIONS", "0"),
        ],
    )
    def test_rejects_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
