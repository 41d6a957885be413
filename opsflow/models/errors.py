"""Domain errors with stable codes."""

from typing import Optional

from .enums import ErrorCode


class DomainError(Exception):
    """
    Base class for errors surfaced to callers.

    Each subclass pins a stable ``code``; ``cause`` keeps the underlying
    exception (a missing file, a YAML error, ...) when there is one.
    """

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.code.value}: {self.message} ({self.cause})"
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict:
        return {"error": self.code.value, "message": self.message}


class BusinessNotFoundError(DomainError):
    code = ErrorCode.BUSINESS_NOT_FOUND


class PipelineNotFoundError(DomainError):
    code = ErrorCode.PIPELINE_NOT_FOUND


class InvalidInputError(DomainError):
    code = ErrorCode.INVALID_INPUT


class ActionFailedError(DomainError):
    code = ErrorCode.ACTION_FAILED


class CriticalFailureError(DomainError):
    code = ErrorCode.CRITICAL_FAILURE


class ConfigParseError(DomainError):
    """A configuration document exists but could not be parsed."""

    code = ErrorCode.CONFIG_INVALID
