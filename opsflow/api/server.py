"""FastAPI server exposing the form-event and trigger endpoints."""

from contextlib import asynccontextmanager
from typing import Any, Optional
from uuid import uuid4
import argparse
import logging

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import Field
import uvicorn

from ..actions import ActionRegistry, build_default_registry
from ..config import ConfigStore, ConfigWatcher, Settings, configure_logging
from ..engine import PipelineRunner
from ..models import (
    BusinessNotFoundError,
    DomainError,
    InvalidInputError,
    PipelineNotFoundError,
    ResourceContext,
)
from ..models.base import CamelModel
from ..services import (
    FormEventRequest,
    FormEventsService,
    TriggerRequest,
    TriggersService,
)
from ..storage import Database, JobStore, MemoryJobStore, SqliteJobStore

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Request Models
# -------------------------------------------------------------------------

class FormEventBody(CamelModel):
    """Body of POST /v1/form-events."""
    business_id: str = ""
    pipeline_key: str = ""
    dry_run: bool = False
    options: dict[str, Any] = Field(default_factory=dict)
    fields: dict[str, Any] = Field(default_factory=dict)


class TriggerBody(CamelModel):
    """Body of POST /v1/triggers."""
    source: str = ""
    business_id: str = ""
    trigger_key: str = ""
    pipeline_key: str = ""
    resource: Optional[ResourceContext] = None
    payload: dict[str, Any] = Field(default_factory=dict)


class InvalidateBody(CamelModel):
    """Body of POST /v1/config/invalidate. Omitted fields clear nothing; both omitted clears all."""
    business_id: Optional[str] = None
    pipeline_key: Optional[str] = None


# -------------------------------------------------------------------------
# App Lifecycle
# -------------------------------------------------------------------------

async def _open_job_store(settings: Settings) -> JobStore:
    if not settings.db_path:
        logger.info("Using in-memory job store")
        return MemoryJobStore()

    database = Database(settings.db_path)
    await database.connect()
    return SqliteJobStore(database)


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ActionRegistry] = None,
    job_store: Optional[JobStore] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Runtime settings (defaults to Settings.from_env())
        registry: Action registry (defaults to the built-in actions)
        job_store: Job store (defaults to one chosen by settings.db_path)
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting OpsFlow API ({settings.environment}), config in {settings.config_dir}")

        config_store = ConfigStore(settings.config_dir)
        runner = PipelineRunner(registry or build_default_registry())
        jobs = job_store or await _open_job_store(settings)

        app.state.settings = settings
        app.state.config_store = config_store
        app.state.job_store = jobs
        app.state.runner = runner
        app.state.form_events = FormEventsService(config_store, runner, jobs)
        app.state.triggers = TriggersService(config_store, runner, jobs)

        watcher = None
        if settings.watch_config:
            watcher = ConfigWatcher(config_store)
            await watcher.start()

        yield

        logger.info("Shutting down OpsFlow API...")
        if watcher:
            await watcher.stop()
        await jobs.close()

    app = FastAPI(
        title="OpsFlow API",
        description="Configuration-driven pipelines for form events and triggers",
        version="1.0.0",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Middleware & Errors
    # -------------------------------------------------------------------------

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if isinstance(exc, InvalidInputError):
            status_code = 400
        elif isinstance(exc, (BusinessNotFoundError, PipelineNotFoundError)):
            status_code = 404
        else:
            status_code = 500
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.environment,
            "actions": request.app.state.runner.registry.names(),
            "cache": request.app.state.config_store.cache_info(),
        }

    # -------------------------------------------------------------------------
    # Pipeline Endpoints
    # -------------------------------------------------------------------------

    @app.post("/v1/form-events")
    async def form_events(body: FormEventBody, request: Request):
        """Run the pipeline for a form submission."""
        headers = request.headers
        business_id = headers.get("X-Business-Id") or body.business_id
        if not business_id:
            raise InvalidInputError("businessId is required")

        service_request = FormEventRequest(
            business_id=business_id,
            pipeline_key=headers.get("X-Pipeline-Key") or body.pipeline_key,
            source=headers.get("X-Source") or "form",
            dry_run=body.dry_run or headers.get("X-Dry-Run") == "true",
            fields=body.fields,
            options=body.options,
            request_id=request.state.request_id,
        )
        result = await request.app.state.form_events.run(service_request)
        return result.to_json_dict()

    @app.post("/v1/triggers")
    async def triggers(body: TriggerBody, request: Request):
        """Run the pipeline mapped to a trigger."""
        headers = request.headers
        business_id = headers.get("X-Business-Id") or body.business_id
        if not business_id:
            raise InvalidInputError("businessId is required")

        service_request = TriggerRequest(
            business_id=business_id,
            trigger_key=headers.get("X-Trigger-Key") or body.trigger_key,
            pipeline_key=headers.get("X-Pipeline-Key") or body.pipeline_key,
            source=headers.get("X-Source") or body.source or "trigger",
            resource=body.resource,
            payload=body.payload,
            dry_run=headers.get("X-Dry-Run") == "true",
            request_id=request.state.request_id,
        )
        result = await request.app.state.triggers.run(service_request)
        return result.to_json_dict()

    # -------------------------------------------------------------------------
    # Job Endpoints
    # -------------------------------------------------------------------------

    @app.get("/v1/jobs/{job_id}")
    async def get_job(job_id: str, request: Request):
        """Get a job by ID."""
        job = await request.app.state.job_store.get(job_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job.to_json_dict()

    @app.get("/v1/businesses/{business_id}/jobs")
    async def list_business_jobs(
        business_id: str,
        request: Request,
        limit: int = Query(50, ge=1, le=1000),
    ):
        """List a business's most recent jobs."""
        jobs = await request.app.state.job_store.list_by_business(business_id, limit)
        return [j.to_json_dict() for j in jobs]

    # -------------------------------------------------------------------------
    # Configuration Endpoints
    # -------------------------------------------------------------------------

    @app.get("/v1/businesses")
    async def list_businesses(request: Request):
        """List every business that loads cleanly."""
        businesses = await request.app.state.config_store.load_all_businesses()
        return [
            {
                "id": b.id,
                "displayName": b.display_name,
                "timezone": b.timezone,
                "currency": b.currency,
                "defaultForm": b.pipelines.default_form,
                "triggers": sorted(b.pipelines.triggers),
            }
            for b in businesses
        ]

    @app.post("/v1/config/invalidate")
    async def invalidate_config(body: InvalidateBody, request: Request):
        """Drop cached configuration so the next request reloads it."""
        store: ConfigStore = request.app.state.config_store
        if body.business_id is None and body.pipeline_key is None:
            evicted = store.invalidate_business() + store.invalidate_pipeline()
        else:
            evicted = 0
            if body.business_id is not None:
                evicted += store.invalidate_business(body.business_id)
            if body.pipeline_key is not None:
                evicted += store.invalidate_pipeline(body.pipeline_key)
        return {"evicted": evicted, "cache": store.cache_info()}

    return app


# -------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------

def main():
    """Run the API server."""
    parser = argparse.ArgumentParser(description="OpsFlow API Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--log-level", default=None, help="Log level")
    args = parser.parse_args()

    settings = Settings.from_env()
    configure_logging(args.log_level or settings.log_level)

    uvicorn.run(
        "opsflow.api.server:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=(args.log_level or settings.log_level).lower(),
    )


if __name__ == "__main__":
    main()
