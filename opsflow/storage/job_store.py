"""SQLite-backed job storage."""

from datetime import datetime
import json
from typing import Optional

from .base import JobStore
from .database import Database
from ..models import Job, JobStep
from ..models.base import utcnow


class SqliteJobStore(JobStore):
    """
    Persistent storage for jobs.

    Steps, input and result are stored as JSON columns; a save replaces the
    whole row in one statement.
    """

    def __init__(self, database: Database):
        self.db = database

    async def save(self, job: Job) -> None:
        """Save a job (insert or update)."""
        job.updated_at = utcnow()

        sql = """
        INSERT INTO jobs (
            id, business_id, pipeline_key, status, steps, input, result,
            created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            business_id = excluded.business_id,
            pipeline_key = excluded.pipeline_key,
            status = excluded.status,
            steps = excluded.steps,
            input = excluded.input,
            result = excluded.result,
            updated_at = excluded.updated_at
        """

        await self.db.execute(sql, (
            job.id,
            job.business_id,
            job.pipeline_key,
            getattr(job.status, "value", job.status),
            json.dumps([s.model_dump(mode="json") for s in job.steps]),
            json.dumps(job.input, default=str),
            json.dumps(job.result, default=str),
            job.created_at.isoformat(timespec="microseconds"),
            job.updated_at.isoformat(timespec="microseconds"),
        ))

    async def get(self, job_id: str) -> Optional[Job]:
        """Get a job by ID."""
        row = await self.db.fetch_one(
            "SELECT * FROM jobs WHERE id = ?",
            (job_id,)
        )
        if row:
            return self._row_to_job(row)
        return None

    async def list_by_business(self, business_id: str, limit: int = 50) -> list[Job]:
        """List a business's jobs, newest first."""
        sql = "SELECT * FROM jobs WHERE business_id = ? ORDER BY created_at DESC"
        params: list = [business_id]
        if limit > 0:
            sql += " LIMIT ?"
            params.append(limit)

        rows = await self.db.fetch_all(sql, tuple(params))
        return [self._row_to_job(row) for row in rows]

    async def close(self) -> None:
        await self.db.close()

    def _row_to_job(self, row: dict) -> Job:
        """Convert a database row to a Job object."""
        steps = [JobStep(**step) for step in json.loads(row["steps"] or "[]")]

        return Job(
            id=row["id"],
            business_id=row["business_id"],
            pipeline_key=row["pipeline_key"],
            status=row["status"],
            steps=steps,
            input=json.loads(row["input"] or "{}"),
            result=json.loads(row["result"] or "{}"),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
