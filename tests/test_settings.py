"""Tests for environment settings."""

from pathlib import Path

from opsflow.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("OPSFLOW_CONFIG_DIR", "OPSFLOW_DB_PATH", "OPSFLOW_ENVIRONMENT",
                     "OPSFLOW_LOG_LEVEL", "OPSFLOW_WATCH_CONFIG"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.config_dir == Path("config")
        assert settings.db_path == ""
        assert settings.is_development
        assert settings.log_level == "debug"
        assert settings.watch_config is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPSFLOW_CONFIG_DIR", "/etc/opsflow")
        monkeypatch.setenv("OPSFLOW_DB_PATH", "/var/lib/opsflow/jobs.db")
        monkeypatch.setenv("OPSFLOW_ENVIRONMENT", "Production")
        monkeypatch.setenv("OPSFLOW_WATCH_CONFIG", "true")
        monkeypatch.delenv("OPSFLOW_LOG_LEVEL", raising=False)

        settings = Settings.from_env()

        assert settings.config_dir == Path("/etc/opsflow")
        assert settings.db_path == "/var/lib/opsflow/jobs.db"
        assert settings.is_production
        assert settings.log_level == "info"
        assert settings.watch_config is True
