"""Tests for AppSettings — defaults and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from app_config.config import AppSettings


class TestAppSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.chdir(tmp_path)
        settings = AppSettings()
        assert settings.log_level == "WARNING"
        assert settings.state_file == Path("~/.app_config/state.db")
        assert settings.fetch_timeout_seconds == 30.0
        assert settings.command_timeout_seconds is None
        assert settings.shell == "/bin/sh"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("APP_CONFIG_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("APP_CONFIG_STATE_FILE", ":memory:")
        monkeypatch.setenv("APP_CONFIG_COMMAND_TIMEOUT_SECONDS", "12.5")
        settings = AppSettings()
        assert settings.log_level == "DEBUG"
        assert str(settings.state_file) == ":memory:"
        assert settings.command_timeout_seconds == 12.5

    def test_dotenv_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("APP_CONFIG_AWS_REGION=eu-north-1\n")
        assert AppSettings().aws_region == "eu-north-1"
