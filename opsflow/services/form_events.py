"""Form event service - runs a pipeline for a submitted form."""

import logging
from typing import Any
from uuid import uuid4

from pydantic import Field

from ..models import InvalidInputError, PipelineContext, PipelineResult
from ..models.base import CamelModel
from .base import PipelineService

logger = logging.getLogger(__name__)


class FormEventRequest(CamelModel):
    """An inbound form submission."""

    business_id: str = ""
    pipeline_key: str = ""
    """Empty means use the business's default form pipeline."""

    source: str = "form"
    dry_run: bool = False
    fields: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, Any] = Field(default_factory=dict)
    request_id: str = Field(default_factory=lambda: uuid4().hex)


class FormEventsService(PipelineService):
    """Runs form events through the business's form pipeline."""

    async def run(self, request: FormEventRequest) -> PipelineResult:
        """
        Execute the pipeline for a form event.

        Raises:
            InvalidInputError: No business id, or no pipeline key and no
                default form configured
            BusinessNotFoundError / PipelineNotFoundError / ConfigParseError:
                Configuration could not be loaded
        """
        business = await self._load_business(request.business_id)

        pipeline_key = request.pipeline_key or business.pipelines.default_form
        if not pipeline_key:
            raise InvalidInputError(
                "pipeline key not specified and no default form configured"
            )

        pipeline = await self._load_pipeline(pipeline_key)

        ctx = PipelineContext(
            business_id=request.business_id,
            pipeline_key=pipeline_key,
            source=request.source,
            dry_run=request.dry_run,
            fields=request.fields,
            options=request.options,
            request_id=request.request_id,
            business=business.model_copy(deep=True),
        )

        logger.debug(f"Form event {request.request_id} for {request.business_id} -> {pipeline_key}")
        return await self._execute(pipeline, ctx)
