"""JobStore interface."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import Job


class JobStore(ABC):
    """
    Durable record of pipeline runs, keyed by job id.

    The services only call ``save``; the read methods serve external
    consumers such as the HTTP API.
    """

    @abstractmethod
    async def save(self, job: Job) -> None:
        """Insert or replace a job. Stamps ``updated_at``."""
        pass

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Job]:
        """Get a job by id, or None if it doesn't exist."""
        pass

    @abstractmethod
    async def list_by_business(self, business_id: str, limit: int = 50) -> list[Job]:
        """Jobs of one business, newest first. ``limit <= 0`` means no limit."""
        pass

    async def close(self) -> None:
        pass
