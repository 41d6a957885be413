"""Shared fixtures: on-disk configuration and wired-up components."""

import tempfile
from pathlib import Path
from typing import Any, Optional

import pytest
import yaml

from opsflow.actions import Action, ActionRegistry, build_default_registry
from opsflow.config import ConfigStore
from opsflow.engine import PipelineRunner
from opsflow.models import JobStep, PipelineContext
from opsflow.storage import MemoryJobStore


ACME = {
    "id": "acme",
    "displayName": "Acme Home Services",
    "timezone": "America/Chicago",
    "currency": "USD",
    "slack": {"enabled": True, "webhookEnv": "ACME_SLACK_WEBHOOK"},
    "pipelines": {
        "defaultForm": "form_default",
        "triggers": {"lead_created": "lead_created"},
    },
}

BARE = {
    "id": "bare",
    "displayName": "No Pipelines Inc",
    "pipelines": {"defaultForm": "", "triggers": {}},
}

FORM_DEFAULT = {
    "key": "form_default",
    "actions": [
        {"name": "normalize_input", "critical": False},
        {"name": "send_slack_notification", "critical": False},
    ],
}

LEAD_CREATED = {
    "key": "lead_created",
    "actions": [
        {"name": "normalize_input", "critical": True},
    ],
}


def write_yaml(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def make_context(
    fields: Optional[dict] = None,
    request_id: str = "req-1",
    dry_run: bool = False,
    business=None,
) -> PipelineContext:
    return PipelineContext(
        business_id="acme",
        pipeline_key="test",
        source="form",
        dry_run=dry_run,
        fields=fields or {},
        request_id=request_id,
        business=business,
    )


# -------------------------------------------------------------------------
# Test Actions
# -------------------------------------------------------------------------

class RecordingAction(Action):
    """Returns a fixed status and records the order it ran in."""

    def __init__(self, name: str, log: list, status: str = "ok", error: Optional[str] = None):
        self.name = name
        self.log = log
        self.status = status
        self.error = error

    async def execute(self, ctx: PipelineContext, config: dict[str, Any]) -> JobStep:
        self.log.append(self.name)
        step = self.new_step()
        if self.status == "failed":
            return step.fail(self.error or "")
        if self.status == "skipped":
            return step.skip("nothing to do")
        return step.complete({"config": dict(config)})


class ExplodingAction(Action):
    name = "explode"

    async def execute(self, ctx: PipelineContext, config: dict[str, Any]) -> JobStep:
        raise RuntimeError("boom")


# -------------------------------------------------------------------------
# Fixtures
# -------------------------------------------------------------------------

@pytest.fixture
def config_dir():
    """A config directory with two businesses and two pipelines."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_yaml(root / "businesses" / "acme.yaml", ACME)
        write_yaml(root / "businesses" / "bare.yaml", BARE)
        write_yaml(root / "pipelines" / "form_default.yaml", FORM_DEFAULT)
        write_yaml(root / "pipelines" / "lead_created.yaml", LEAD_CREATED)
        yield root


@pytest.fixture
def config_store(config_dir):
    return ConfigStore(config_dir)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def runner(registry):
    return PipelineRunner(registry)


@pytest.fixture
def job_store():
    return MemoryJobStore()


@pytest.fixture
def empty_registry():
    return ActionRegistry().freeze()
