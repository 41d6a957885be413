"""Configuration: process settings and the tenant/pipeline config store."""

from .settings import Settings, configure_logging
from .store import ConfigStore, CacheEntry
from .watcher import ConfigWatcher

__all__ = ["Settings", "configure_logging", "ConfigStore", "CacheEntry", "ConfigWatcher"]
