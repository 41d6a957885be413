"""Trigger service - runs the pipeline mapped to a fired trigger."""

import logging
from typing import Any, Optional
from uuid import uuid4

from pydantic import Field

from ..models import (
    BusinessConfig,
    InvalidInputError,
    PipelineContext,
    PipelineResult,
    ResourceContext,
)
from ..models.base import CamelModel
from .base import PipelineService

logger = logging.getLogger(__name__)


class TriggerRequest(CamelModel):
    """An inbound trigger (e.g. a CRM item was created)."""

    business_id: str = ""
    trigger_key: str = ""
    pipeline_key: str = ""
    """Takes precedence over trigger_key when set."""

    source: str = "trigger"
    resource: Optional[ResourceContext] = None
    payload: dict[str, Any] = Field(default_factory=dict)
    dry_run: bool = False
    request_id: str = Field(default_factory=lambda: uuid4().hex)


class TriggersService(PipelineService):
    """Runs triggers through the pipeline their business maps them to."""

    async def run(self, request: TriggerRequest) -> PipelineResult:
        """
        Execute the pipeline for a trigger.

        Raises:
            InvalidInputError: No business id, unknown trigger key, or
                neither key given
            BusinessNotFoundError / PipelineNotFoundError / ConfigParseError:
                Configuration could not be loaded
        """
        business = await self._load_business(request.business_id)
        pipeline_key = self.resolve_pipeline_key(business, request)
        pipeline = await self._load_pipeline(pipeline_key)

        ctx = PipelineContext(
            business_id=request.business_id,
            pipeline_key=pipeline_key,
            source=request.source,
            dry_run=request.dry_run,
            fields=request.payload,
            options={},
            resource=request.resource,
            request_id=request.request_id,
            business=business.model_copy(deep=True),
        )

        logger.debug(
            f"Trigger {request.trigger_key or '-'} ({request.request_id}) for "
            f"{request.business_id} -> {pipeline_key}"
        )
        return await self._execute(pipeline, ctx)

    @staticmethod
    def resolve_pipeline_key(business: BusinessConfig, request: TriggerRequest) -> str:
        """Explicit pipeline key first, then the business's trigger map."""
        pipeline_key = request.pipeline_key
        if not pipeline_key and request.trigger_key:
            pipeline_key = business.pipeline_for_trigger(request.trigger_key)
            if pipeline_key is None:
                raise InvalidInputError(
                    f"trigger key '{request.trigger_key}' not found in business config"
                )
        if not pipeline_key:
            raise InvalidInputError("pipeline key not specified and trigger key not found")
        return pipeline_key
