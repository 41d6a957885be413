"""Job model - the durable record of one pipeline run."""

from datetime import datetime
from typing import Optional, Any

from pydantic import Field

from .base import CamelModel, utcnow
from .enums import JobStatus, StepStatus


class JobStep(CamelModel):
    """
    Outcome of one action.

    Actions build and return exactly one of these; failures are encoded in
    ``status`` and ``error`` rather than raised.
    """

    name: str
    """Registry name of the action."""

    status: StepStatus = StepStatus.OK

    critical: bool = False
    """Copied from the ActionDefinition by the runner."""

    error: Optional[str] = None
    """Error message if the step failed."""

    details: dict[str, Any] = Field(default_factory=dict)
    """Opaque data produced by the action."""

    def complete(self, details: Optional[dict[str, Any]] = None) -> "JobStep":
        """Mark the step as done."""
        self.status = StepStatus.OK
        if details:
            self.details.update(details)
        return self

    def skip(self, reason: Optional[str] = None) -> "JobStep":
        """Mark the step as skipped."""
        self.status = StepStatus.SKIPPED
        if reason:
            self.details["message"] = reason
        return self

    def fail(self, error: str) -> "JobStep":
        """Mark the step as failed."""
        self.status = StepStatus.FAILED
        self.error = error
        return self

    @property
    def is_failed(self) -> bool:
        return self.status == StepStatus.FAILED


class Job(CamelModel):
    """
    Represents one execution of a pipeline.

    Created by the runner at the start of a run, mutated only by that run,
    then persisted once by the owning service.
    """

    id: str
    """Job identifier (the request id)."""

    business_id: str
    pipeline_key: str

    status: JobStatus = JobStatus.PENDING

    steps: list[JobStep] = Field(default_factory=list)
    """Ordered step outcomes."""

    input: dict[str, Any] = Field(default_factory=dict)
    """The event fields the run started with."""

    result: dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # State transitions

    def start(self) -> None:
        self.status = JobStatus.RUNNING
        self.updated_at = utcnow()

    def add_step(self, step: JobStep) -> None:
        self.steps.append(step)
        self.updated_at = utcnow()

    def complete(self) -> None:
        self.status = JobStatus.COMPLETED
        self.updated_at = utcnow()

    def fail(self, error: Optional[str]) -> None:
        self.status = JobStatus.FAILED
        if error:
            self.result["error"] = error
        self.updated_at = utcnow()

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def failed_steps(self) -> list[JobStep]:
        return [s for s in self.steps if s.is_failed]
