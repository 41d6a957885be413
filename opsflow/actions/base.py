"""Base Action class - the unit of work a pipeline step runs."""

from abc import ABC, abstractmethod
from typing import Any

from ..models import JobStep, PipelineContext


class Action(ABC):
    """
    Base class for all pipeline actions.

    An action is looked up by ``name`` from the ActionRegistry and executed
    once per pipeline entry that names it. It must return exactly one
    JobStep and encode failure in that step instead of raising.

    Example:
        class TagLeadAction(Action):
            name = "tag_lead"
            description = "Adds a tag to the lead fields"

            async def execute(self, ctx: PipelineContext, config: dict[str, Any]) -> JobStep:
                step = JobStep(name=self.name)
                if ctx.dry_run:
                    return step.skip("dry run")
                ctx.set_field("tag", config.get("tag", "new"))
                return step.complete({"tag": ctx.get_field("tag")})
    """

    name: str = ""
    """Unique registry name. Pipelines refer to the action by this."""

    description: str = ""
    """What this action does."""

    @abstractmethod
    async def execute(self, ctx: PipelineContext, config: dict[str, Any]) -> JobStep:
        """
        Run the action.

        Args:
            ctx: The run's shared context
            config: The ``config`` bag of the ActionDefinition being executed

        Returns:
            The step outcome
        """
        pass

    def new_step(self) -> JobStep:
        """A fresh step named after this action."""
        return JobStep(name=self.name)

    def __repr__(self) -> str:
        return f"<Action {self.name}>"
