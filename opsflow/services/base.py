"""Shared request-service flow: resolve, run, persist."""

import logging
from typing import Awaitable, Callable, Optional

from ..config import ConfigStore
from ..engine import PipelineRunner
from ..models import (
    BusinessConfig,
    InvalidInputError,
    Job,
    PipelineContext,
    PipelineDefinition,
    PipelineResult,
)
from ..storage import JobStore

logger = logging.getLogger(__name__)

PersistErrorCallback = Callable[[Job, Exception], Awaitable[None]]


class PipelineService:
    """
    Base for services that turn an inbound event into a pipeline run.

    Subclasses resolve the pipeline key and build the context; this class
    loads configuration, runs the pipeline and saves the job. Errors during
    resolution propagate to the caller before any action runs. A failure to
    save the job never does: it goes to the ``on_persist_error`` callback.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        runner: PipelineRunner,
        job_store: JobStore,
        on_persist_error: Optional[PersistErrorCallback] = None,
    ):
        self.config_store = config_store
        self.runner = runner
        self.job_store = job_store
        self._on_persist_error = on_persist_error

    def on_persist_error(self, callback: PersistErrorCallback) -> None:
        """Register callback for when a job can't be saved."""
        self._on_persist_error = callback

    async def _load_business(self, business_id: str) -> BusinessConfig:
        if not business_id:
            raise InvalidInputError("businessId is required")
        return await self.config_store.load_business(business_id)

    async def _load_pipeline(self, pipeline_key: str) -> PipelineDefinition:
        return await self.config_store.load_pipeline(pipeline_key)

    async def _execute(
        self,
        pipeline: PipelineDefinition,
        ctx: PipelineContext,
    ) -> PipelineResult:
        """Run the pipeline and persist its job (best effort)."""
        result, job = await self.runner.run(pipeline, ctx)
        await self._persist(job)
        return result

    async def _persist(self, job: Job) -> None:
        try:
            await self.job_store.save(job)
        except Exception as e:
            await self._report_persist_error(job, e)

    async def _report_persist_error(self, job: Job, error: Exception) -> None:
        if self._on_persist_error is None:
            logger.error(f"Failed to save job {job.id}: {error}", exc_info=error)
            return

        try:
            await self._on_persist_error(job, error)
        except Exception as e:
            logger.error(f"Error in persist-error callback for job {job.id}: {e}", exc_info=True)
