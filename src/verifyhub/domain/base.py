"""Base model for immutable value objects.

Attributes are snake_case in Python and camelCase on the wire. Every
value object round-trips through :meth:`ValueObject.to_json` and
:meth:`ValueObject.from_json`; ``from_json`` also accepts snake_case keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


class ValueObject(BaseModel):
    """Frozen, equality-by-value model with a camelCase JSON contract."""

    model_config = ConfigDict(**WIRE_CONFIG, frozen=True)

    def to_json(self) -> dict[str, Any]:
        """Serialize to JSON-compatible primitives (ISO-8601 dates, nested objects)."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Self:
        """Rebuild an instance from :meth:`to_json` output."""
        return cls.model_validate(data)

    def with_changes(self, **changes: Any) -> Self:
        """Return a new validated instance with *changes* applied."""
        return type(self).model_validate({**self.model_dump(), **changes})
