"""Pipeline actions and their registry."""

from .base import Action
from .registry import ActionRegistry
from .builtin import (
    NormalizeInputAction,
    RequireFieldsAction,
    SendSlackNotificationAction,
    build_default_registry,
)

__all__ = [
    "Action",
    "ActionRegistry",
    "NormalizeInputAction",
    "RequireFieldsAction",
    "SendSlackNotificationAction",
    "build_default_registry",
]
