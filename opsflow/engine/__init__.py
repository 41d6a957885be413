"""Pipeline execution engine."""

from .runner import PipelineRunner

__all__ = ["PipelineRunner"]
