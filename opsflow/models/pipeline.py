"""Pipeline definitions, execution context and results."""

from typing import Optional, Any

from pydantic import Field

from .base import CamelModel
from .business import BusinessConfig
from .errors import CriticalFailureError
from .job import JobStep


class ActionDefinition(CamelModel):
    """One entry of a pipeline's ``actions`` list."""

    name: str
    """Must match an ActionRegistry entry at run time."""

    critical: bool = False
    """A failed (or missing) critical action aborts the pipeline."""

    config: dict[str, Any] = Field(default_factory=dict)
    """Opaque to the runner; interpreted only by the action."""


class PipelineDefinition(CamelModel):
    """
    An ordered list of actions, loaded from ``pipelines/<key>.yaml``.

    Pipelines live in their own namespace; businesses reference them by key.
    """

    key: str = ""
    description: str = ""
    actions: list[ActionDefinition] = Field(default_factory=list)


class ResourceContext(CamelModel):
    """The external resource (e.g. a CRM item) that fired a trigger."""

    type: str = ""
    board_id: Optional[int] = None
    item_id: Optional[int] = None
    data: dict[str, Any] = Field(default_factory=dict)


class PipelineContext(CamelModel):
    """
    Per-run state handed to every action.

    Owned by a single run; actions may read and rewrite ``fields``.
    """

    business_id: str
    pipeline_key: str
    source: str = ""
    """Where the event came from ("form", "trigger", ...)."""

    dry_run: bool = False
    """Advisory. Actions must avoid real side effects when set."""

    fields: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, Any] = Field(default_factory=dict)
    resource: Optional[ResourceContext] = None
    request_id: str
    """Also used as the job id."""

    business: Optional[BusinessConfig] = Field(default=None, exclude=True)
    """Resolved tenant configuration, for actions that need integration settings."""

    def get_field(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def set_field(self, key: str, value: Any) -> None:
        self.fields[key] = value


class PipelineResult(CamelModel):
    """
    Caller-facing projection of a run.

    ``success`` is false only after a critical failure; non-critical
    failures show up in ``steps`` alone.
    """

    success: bool = False
    pipeline_key: str
    business_id: str
    dry_run: bool = False
    steps: list[JobStep] = Field(default_factory=list)
    job_id: str = ""
    error: Optional[str] = None

    @property
    def failed_steps(self) -> list[JobStep]:
        """Steps that failed, critical or not."""
        return [s for s in self.steps if s.is_failed]

    def raise_for_status(self) -> None:
        """Raise CriticalFailureError if the run failed."""
        if not self.success:
            raise CriticalFailureError(
                self.error or f"pipeline '{self.pipeline_key}' failed"
            )
