"""Built-in actions and the default registry."""

import logging
import os
from typing import Any, Optional

import httpx

from ..models import JobStep, PipelineContext
from .base import Action
from .registry import ActionRegistry

logger = logging.getLogger(__name__)


class NormalizeInputAction(Action):
    """Trims string fields in place.

    Config:
        lowercase: field names whose values are also lowercased (e.g. email)
    """

    name = "normalize_input"
    description = "Normalizes incoming event fields"

    async def execute(self, ctx: PipelineContext, config: dict[str, Any]) -> JobStep:
        lowercase = set(config.get("lowercase", []))
        changed = []

        for key, value in list(ctx.fields.items()):
            if not isinstance(value, str):
                continue
            normalized = value.strip()
            if key in lowercase:
                normalized = normalized.lower()
            if normalized != value:
                ctx.set_field(key, normalized)
                changed.append(key)

        return self.new_step().complete({
            "message": "input normalized",
            "changed": changed,
            "fields": dict(ctx.fields),
        })


class RequireFieldsAction(Action):
    """Fails when required fields are missing or blank.

    Config:
        fields: list of required field names
    """

    name = "require_fields"
    description = "Validates that required fields are present"

    async def execute(self, ctx: PipelineContext, config: dict[str, Any]) -> JobStep:
        required = config.get("fields", [])
        missing = [f for f in required if _is_blank(ctx.get_field(f))]
        step = self.new_step()
        if missing:
            step.details["missing"] = missing
            return step.fail(f"missing required fields: {', '.join(missing)}")
        return step.complete({"checked": list(required)})


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _SafeDict(dict):
    def __missing__(self, key):
        return "{" + key + "}"


class SendSlackNotificationAction(Action):
    """Posts a message to the tenant's Slack incoming webhook.

    Skipped on dry runs, when Slack is disabled for the business, or when the
    webhook environment variable is unset.

    Config:
        message: text template, formatted with the event fields
        webhookEnv: overrides the business's ``slack.webhookEnv``
    """

    name = "send_slack_notification"
    description = "Sends a Slack notification"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 10.0):
        self._transport = transport
        self._timeout = timeout

    async def execute(self, ctx: PipelineContext, config: dict[str, Any]) -> JobStep:
        step = self.new_step()

        if ctx.dry_run:
            return step.skip("slack notification skipped (dry run)")

        business = ctx.business
        if business is None or not business.slack.enabled:
            return step.skip("slack notification skipped (not enabled)")

        webhook_env = config.get("webhookEnv") or business.slack.webhook_env
        webhook_url = os.environ.get(webhook_env) if webhook_env else None
        if not webhook_url:
            return step.skip(f"slack notification skipped ({webhook_env or 'webhook'} not set)")

        template = config.get(
            "message",
            "New {source} event for {business} ({pipeline})",
        )
        values = _SafeDict(ctx.fields)
        values.setdefault("source", ctx.source)
        values.setdefault("business", business.display_name or business.id)
        values.setdefault("pipeline", ctx.pipeline_key)
        text = template.format_map(values)

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(webhook_url, json={"text": text})
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Slack notification failed for {ctx.business_id}: {e}")
            return step.fail(f"slack notification failed: {e}")

        return step.complete({"message": "slack notification sent", "text": text})


def build_default_registry() -> ActionRegistry:
    """Register the built-in actions and freeze the registry."""
    registry = ActionRegistry()
    registry.register(NormalizeInputAction())
    registry.register(RequireFieldsAction())
    registry.register(SendSlackNotificationAction())
    return registry.freeze()
