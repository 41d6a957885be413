"""Core data models for OpsFlow."""

from .enums import JobStatus, StepStatus, ErrorCode
from .business import (
    BusinessConfig,
    BusinessPipelineConfig,
    ContactConfig,
    EmailTemplateSettings,
    GmailConfig,
    LocationConfig,
    MondayConfig,
    SlackConfig,
    StripeConfig,
    TemplateConfig,
)
from .job import Job, JobStep
from .pipeline import (
    ActionDefinition,
    PipelineDefinition,
    PipelineContext,
    PipelineResult,
    ResourceContext,
)
from .errors import (
    DomainError,
    BusinessNotFoundError,
    PipelineNotFoundError,
    InvalidInputError,
    ActionFailedError,
    CriticalFailureError,
    ConfigParseError,
)

__all__ = [
    "JobStatus",
    "StepStatus",
    "ErrorCode",
    "BusinessConfig",
    "BusinessPipelineConfig",
    "ContactConfig",
    "EmailTemplateSettings",
    "GmailConfig",
    "LocationConfig",
    "MondayConfig",
    "SlackConfig",
    "StripeConfig",
    "TemplateConfig",
    "Job",
    "JobStep",
    "ActionDefinition",
    "PipelineDefinition",
    "PipelineContext",
    "PipelineResult",
    "ResourceContext",
    "DomainError",
    "BusinessNotFoundError",
    "PipelineNotFoundError",
    "InvalidInputError",
    "ActionFailedError",
    "CriticalFailureError",
    "ConfigParseError",
]
