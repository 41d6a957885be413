"""Shared pydantic base for camelCase documents."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model for everything that crosses a boundary.

    YAML documents and JSON payloads use camelCase keys; attributes stay
    snake_case. Both spellings are accepted on input. A key given as null
    (``triggers:`` with nothing after it) takes the field's default.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
