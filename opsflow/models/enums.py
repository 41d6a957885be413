"""Enumerations for OpsFlow."""

from enum import Enum


class JobStatus(str, Enum):
    """Status of a pipeline job."""

    PENDING = "pending"
    """
    Job record exists but no runner has picked it up.

    Reserved for callers that pre-create a job before running it; the
    synchronous runner never returns a job in this state.
    """

    RUNNING = "running"
    """Actions are being executed."""

    COMPLETED = "completed"
    """All actions ran without a critical failure."""

    FAILED = "failed"
    """A critical action failed or was missing from the registry."""


class StepStatus(str, Enum):
    """Outcome of a single action."""

    OK = "ok"
    """The action did its work."""

    SKIPPED = "skipped"
    """The action chose not to act (dry run, disabled integration, ...)."""

    FAILED = "failed"
    """The action failed or could not be found."""


class ErrorCode(str, Enum):
    """Stable codes carried by domain errors."""

    BUSINESS_NOT_FOUND = "BUSINESS_NOT_FOUND"
    PIPELINE_NOT_FOUND = "PIPELINE_NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    ACTION_FAILED = "ACTION_FAILED"
    CRITICAL_FAILURE = "CRITICAL_FAILURE"
    CONFIG_INVALID = "CONFIG_INVALID"
