"""OpsFlow - configuration-driven pipeline engine for multi-tenant business operations."""

__version__ = "1.0.0"
