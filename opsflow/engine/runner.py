"""Pipeline runner - executes a pipeline's actions in order."""

import copy
import logging
import traceback

from ..actions import Action, ActionRegistry
from ..models import (
    ActionDefinition,
    ActionFailedError,
    Job,
    JobStep,
    PipelineContext,
    PipelineDefinition,
    PipelineResult,
    StepStatus,
)

logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Runs a PipelineDefinition against a PipelineContext.

    Actions execute strictly one after another in declared order. A failed
    non-critical step is recorded and the run continues; a failed critical
    step stops the run and fails it. An action missing from the registry
    counts as a failed step.

    The runner holds no locks and does not interrupt a running action;
    cancellation of the surrounding task propagates through ``execute``.
    Dry run is passed through to actions untouched.
    """

    def __init__(self, registry: ActionRegistry):
        self.registry = registry

    async def run(
        self,
        pipeline: PipelineDefinition,
        ctx: PipelineContext,
    ) -> tuple[PipelineResult, Job]:
        """
        Execute every action of a pipeline.

        Args:
            pipeline: The definition to execute
            ctx: Per-run context; its request_id becomes the job id

        Returns:
            (result, job). The job is ``completed`` or ``failed``.
        """
        job = Job(
            id=ctx.request_id,
            business_id=ctx.business_id,
            pipeline_key=ctx.pipeline_key,
            input=dict(ctx.fields),
        )
        job.start()

        result = PipelineResult(
            pipeline_key=pipeline.key,
            business_id=ctx.business_id,
            dry_run=ctx.dry_run,
            job_id=job.id,
        )

        logger.info(
            f"Running pipeline {pipeline.key} for business {ctx.business_id} "
            f"(job {job.id}, {len(pipeline.actions)} actions, dry_run={ctx.dry_run})"
        )

        for action_def in pipeline.actions:
            action = self.registry.get(action_def.name)
            if action is None:
                step = JobStep(
                    name=action_def.name,
                    status=StepStatus.FAILED,
                    critical=action_def.critical,
                    error=f"action '{action_def.name}' not found",
                )
                critical_error = f"critical action '{action_def.name}' failed: action not found"
            else:
                step = await self._execute_action(action, action_def, ctx)
                critical_error = step.error or f"critical action '{action_def.name}' failed"

            job.add_step(step)
            result.steps.append(step)
            logger.debug(f"Step {step.name} for job {job.id} finished with status {step.status}")

            if not step.is_failed:
                continue

            if action_def.critical:
                result.success = False
                result.error = critical_error
                job.fail(critical_error)
                logger.warning(f"Pipeline {pipeline.key} aborted for job {job.id}: {critical_error}")
                return result, job

            logger.warning(f"Non-critical step {step.name} failed for job {job.id}: {step.error}")

        result.success = True
        job.complete()
        logger.info(f"Pipeline {pipeline.key} completed for job {job.id}")
        return result, job

    async def _execute_action(
        self,
        action: Action,
        action_def: ActionDefinition,
        ctx: PipelineContext,
    ) -> JobStep:
        """Run one registered action, turning a raised exception or a missing step into a failed step."""
        try:
            step = await action.execute(ctx, copy.deepcopy(action_def.config))
        except Exception as e:
            error = ActionFailedError(f"action '{action_def.name}' raised: {e}", cause=e)
            logger.error(
                f"Error executing action {action_def.name} for job {ctx.request_id}: {e}\n"
                f"{traceback.format_exc()}"
            )
            step = JobStep(name=action_def.name).fail(error.message)

        if not isinstance(step, JobStep):
            logger.error(
                f"Action {action_def.name} returned {type(step).__name__} instead of a step "
                f"for job {ctx.request_id}"
            )
            step = JobStep(name=action_def.name).fail(f"action '{action_def.name}' returned no step")

        step.critical = action_def.critical
        return step
