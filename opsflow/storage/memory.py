"""In-memory job storage."""

import threading
from typing import Optional

from ..models import Job
from ..models.base import utcnow
from .base import JobStore


class MemoryJobStore(JobStore):
    """
    Keeps jobs in a dict for the life of the process.

    Jobs are deep-copied on the way in and out, so a reader sees either the
    whole previous record or the whole new one.
    """

    def __init__(self):
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    async def save(self, job: Job) -> None:
        job.updated_at = utcnow()
        stored = job.model_copy(deep=True)
        with self._lock:
            self._jobs[job.id] = stored

    async def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def list_by_business(self, business_id: str, limit: int = 50) -> list[Job]:
        with self._lock:
            jobs = [j for j in self._jobs.values() if j.business_id == business_id]
        jobs.sort(key=lambda j: j.created_at, reverse=True)
        if limit > 0:
            jobs = jobs[:limit]
        return [j.model_copy(deep=True) for j in jobs]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
