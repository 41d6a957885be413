"""Process settings read from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """
    Runtime settings.

    Attributes:
        config_dir: Root holding ``businesses/`` and ``pipelines/``
        db_path: SQLite file for jobs; empty keeps jobs in memory
        environment: "development" or "production"
        log_level: Logging level name
        watch_config: Invalidate cached config when files change
    """
    config_dir: Path = Path("config")
    db_path: str = ""
    environment: str = "development"
    log_level: str = "debug"
    watch_config: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        environment = os.environ.get("OPSFLOW_ENVIRONMENT", "development").lower()
        default_level = "debug" if environment == "development" else "info"
        return cls(
            config_dir=Path(os.environ.get("OPSFLOW_CONFIG_DIR", "config")),
            db_path=os.environ.get("OPSFLOW_DB_PATH", ""),
            environment=environment,
            log_level=os.environ.get("OPSFLOW_LOG_LEVEL", default_level),
            watch_config=os.environ.get("OPSFLOW_WATCH_CONFIG", "").lower() in _TRUTHY,
        )


def configure_logging(level: str = "info") -> None:
    """Install the process-wide log format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
