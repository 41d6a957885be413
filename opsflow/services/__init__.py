"""Request services: form events and triggers."""

from .base import PipelineService
from .form_events import FormEventRequest, FormEventsService
from .triggers import TriggerRequest, TriggersService

__all__ = [
    "PipelineService",
    "FormEventRequest",
    "FormEventsService",
    "TriggerRequest",
    "TriggersService",
]
