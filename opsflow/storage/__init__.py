"""Storage layer for OpsFlow."""

from .base import JobStore
from .memory import MemoryJobStore
from .database import Database
from .job_store import SqliteJobStore

__all__ = ["JobStore", "MemoryJobStore", "Database", "SqliteJobStore"]
