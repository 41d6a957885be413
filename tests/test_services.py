"""Tests for the form-event and trigger services."""

from unittest.mock import AsyncMock, patch

import pytest

from opsflow.actions import Action, ActionRegistry
from opsflow.engine import PipelineRunner
from opsflow.models import (
    BusinessNotFoundError,
    InvalidInputError,
    JobStatus,
    PipelineNotFoundError,
    ResourceContext,
)
from opsflow.services import (
    FormEventRequest,
    FormEventsService,
    TriggerRequest,
    TriggersService,
)
from opsflow.storage import MemoryJobStore

from conftest import write_yaml


class BrokenJobStore(MemoryJobStore):
    async def save(self, job):
        raise OSError("disk full")


@pytest.fixture
def form_service(config_store, runner, job_store):
    return FormEventsService(config_store, runner, job_store)


@pytest.fixture
def trigger_service(config_store, runner, job_store):
    return TriggersService(config_store, runner, job_store)


class TestFormEvents:
    """Tests for FormEventsService."""

    async def test_uses_default_form(self, form_service, job_store):
        request = FormEventRequest(
            business_id="acme",
            fields={"email": " a@b.c "},
            request_id="form-1",
        )

        result = await form_service.run(request)

        assert result.success is True
        assert result.pipeline_key == "form_default"
        assert [s.name for s in result.steps] == ["normalize_input", "send_slack_notification"]

        job = await job_store.get("form-1")
        assert job is not None
        assert job.status == JobStatus.COMPLETED
        assert job.input == {"email": " a@b.c "}

    async def test_explicit_pipeline_key(self, form_service):
        request = FormEventRequest(business_id="acme", pipeline_key="lead_created")

        result = await form_service.run(request)
        assert result.pipeline_key == "lead_created"

    async def test_no_pipeline_key_and_no_default(self, form_service, config_store):
        request = FormEventRequest(business_id="bare")

        with patch.object(config_store, "load_pipeline", wraps=config_store.load_pipeline) as load:
            with pytest.raises(InvalidInputError) as exc_info:
                await form_service.run(request)

        assert "pipeline key not specified" in exc_info.value.message
        load.assert_not_called()

    async def test_business_required(self, form_service):
        with pytest.raises(InvalidInputError):
            await form_service.run(FormEventRequest())

    async def test_unknown_business(self, form_service):
        with pytest.raises(BusinessNotFoundError):
            await form_service.run(FormEventRequest(business_id="nobody"))

    async def test_unknown_pipeline(self, form_service, job_store):
        with pytest.raises(PipelineNotFoundError):
            await form_service.run(FormEventRequest(business_id="acme", pipeline_key="nope"))
        assert len(job_store) == 0

    async def test_dry_run_skips_side_effects(self, form_service, monkeypatch):
        monkeypatch.setenv("ACME_SLACK_WEBHOOK", "https://hooks.example/acme")

        result = await form_service.run(FormEventRequest(business_id="acme", dry_run=True))

        assert result.dry_run is True
        assert result.steps[-1].status == "skipped"


class TestTriggers:
    """Tests for TriggersService."""

    async def test_trigger_key_maps_to_pipeline(self, trigger_service, job_store):
        request = TriggerRequest(
            business_id="acme",
            trigger_key="lead_created",
            resource=ResourceContext(type="monday_item", board_id=1, item_id=2),
            payload={"name": "Ann"},
            request_id="trig-1",
        )

        result = await trigger_service.run(request)

        assert result.success is True
        assert result.pipeline_key == "lead_created"
        job = await job_store.get("trig-1")
        assert job.input == {"name": "Ann"}

    async def test_unknown_trigger_key(self, trigger_service, config_store):
        request = TriggerRequest(business_id="bare", trigger_key="lead_created")

        with patch.object(config_store, "load_pipeline", wraps=config_store.load_pipeline) as load:
            with pytest.raises(InvalidInputError) as exc_info:
                await trigger_service.run(request)

        assert "trigger key 'lead_created' not found" in exc_info.value.message
        load.assert_not_called()

    async def test_explicit_pipeline_key_wins(self, trigger_service):
        request = TriggerRequest(
            business_id="acme",
            trigger_key="does_not_exist",
            pipeline_key="form_default",
        )

        result = await trigger_service.run(request)
        assert result.pipeline_key == "form_default"

    async def test_no_keys(self, trigger_service):
        with pytest.raises(InvalidInputError) as exc_info:
            await trigger_service.run(TriggerRequest(business_id="acme"))

        assert exc_info.value.message == "pipeline key not specified and trigger key not found"

    async def test_default_source(self):
        assert TriggerRequest().source == "trigger"
        assert FormEventRequest().source == "form"


class TestPersistence:
    """Job saving is best effort."""

    async def test_persist_error_does_not_fail_request(self, config_store, runner):
        service = FormEventsService(config_store, runner, BrokenJobStore())

        result = await service.run(FormEventRequest(business_id="acme"))
        assert result.success is True

    async def test_persist_error_callback(self, config_store, runner):
        callback = AsyncMock()
        service = TriggersService(config_store, runner, BrokenJobStore(), on_persist_error=callback)

        result = await service.run(TriggerRequest(
            business_id="acme",
            trigger_key="lead_created",
            request_id="trig-2",
        ))

        assert result.success is True
        callback.assert_awaited_once()
        job, error = callback.await_args.args
        assert job.id == "trig-2"
        assert isinstance(error, OSError)

    async def test_failing_callback_is_contained(self, config_store, runner):
        service = FormEventsService(config_store, runner, BrokenJobStore())
        service.on_persist_error(AsyncMock(side_effect=RuntimeError("reporter down")))

        result = await service.run(FormEventRequest(business_id="acme"))
        assert result.success is True

    async def test_failed_run_is_persisted(self, config_dir, config_store, runner, job_store):
        write_yaml(config_dir / "pipelines" / "broken.yaml", {
            "actions": [{"name": "not_registered", "critical": True}],
        })
        service = FormEventsService(config_store, runner, job_store)

        result = await service.run(FormEventRequest(
            business_id="acme",
            pipeline_key="broken",
            request_id="form-9",
        ))

        assert result.success is False
        job = await job_store.get("form-9")
        assert job.status == JobStatus.FAILED
        assert "not found" in job.result["error"]


class TestRunIsolation:
    """Runs never write through to cached configuration."""

    async def test_cached_config_survives_mutating_action(self, config_dir, config_store, job_store):
        class MutatingAction(Action):
            name = "mutate"

            async def execute(self, ctx, config):
                config.setdefault("seen", []).append(ctx.request_id)
                ctx.business.display_name = "Changed by action"
                ctx.business.pipelines.triggers["injected"] = "form_default"
                return self.new_step().complete({"seen": list(config["seen"])})

        registry = ActionRegistry()
        registry.register(MutatingAction())
        service = FormEventsService(config_store, PipelineRunner(registry.freeze()), job_store)
        write_yaml(config_dir / "pipelines" / "mutating.yaml", {
            "actions": [{"name": "mutate", "config": {"label": "x"}}],
        })

        first = await service.run(FormEventRequest(
            business_id="acme", pipeline_key="mutating", request_id="r1",
        ))
        second = await service.run(FormEventRequest(
            business_id="acme", pipeline_key="mutating", request_id="r2",
        ))

        assert first.steps[0].details["seen"] == ["r1"]
        assert second.steps[0].details["seen"] == ["r2"]

        business = await config_store.load_business("acme")
        pipeline = await config_store.load_pipeline("mutating")
        assert business.display_name == "Acme Home Services"
        assert "injected" not in business.pipelines.triggers
        assert pipeline.actions[0].config == {"label": "x"}
