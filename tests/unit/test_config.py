"""Tests for ForgelineSettings — defaults and environment overrides."""

from __future__ import annotations

import logging
from pathlib import Path

from forgeline.config import DEFAULT_MAX_LOG_LINES, ForgelineSettings, configure_logging


class TestDefaults:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FORGELINE_PORT", raising=False)
        settings = ForgelineSettings(_env_file=None)
        assert settings.host == "127.0.0.1"
        assert settings.port == 42800
        assert settings.max_log_lines == DEFAULT_MAX_LOG_LINES == 5000
        assert settings.max_retained_jobs is None
        assert settings.cancel_kill_timeout is None
        assert settings.build_executable == "dotnet"
        assert settings.build_platform == "Win64"
        assert settings.build_configuration == "Development"
        assert settings.is_production is False


class TestEnvironmentOverrides:
    def test_env_prefix(self, monkeypatch, tmp_dir: Path):
        monkeypatch.setenv("FORGELINE_PORT", "43000")
        monkeypatch.setenv("FORGELINE_MAX_LOG_LINES", "100")
        monkeypatch.setenv("FORGELINE_CANCEL_KILL_TIMEOUT", "2.5")
        monkeypatch.setenv("FORGELINE_CONFIG_DIR", str(tmp_dir))
        monkeypatch.setenv("FORGELINE_ENVIRONMENT", "production")

        settings = ForgelineSettings(_env_file=None)
        assert settings.port == 43000
        assert settings.max_log_lines == 100
        assert settings.cancel_kill_timeout == 2.5
        assert settings.config_dir == tmp_dir
        assert settings.is_production is True

    def test_cors_origins_from_json(self, monkeypatch):
        monkeypatch.setenv("FORGELINE_CORS_ORIGINS", '["http://localhost:5173"]')
        assert ForgelineSettings(_env_file=None).cors_origins == ["http://localhost:5173"]

    def test_env_file(self, tmp_dir: Path):
        env_file = tmp_dir / ".env"
        env_file.write_text("FORGELINE_MAX_RETAINED_JOBS=50\n")
        assert ForgelineSettings(_env_file=env_file).max_retained_jobs == 50


class TestConfigureLogging:
    def test_sets_root_level(self):
        root = logging.getLogger()
        previous_level, previous_handlers = root.level, root.handlers[:]
        try:
            configure_logging("debug")
            assert root.level == logging.DEBUG
            assert type(root.handlers[0]).__name__ == "RichHandler"
        finally:
            root.handlers = previous_handlers
            root.setLevel(previous_level)
