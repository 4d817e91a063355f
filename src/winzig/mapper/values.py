"""Fluent builder for column value maps."""

from __future__ import annotations

from typing import Any, Mapping


class ValuesBuilder:
    """Builds the ``{column: value}`` maps passed to inserts and updates.

    ``build()`` returns a copy, so a builder can be reused as a template.

    Example:
        values = ValuesBuilder().put("title", "Hello").put_null("body").build()
    """

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = dict(initial or {})

    def put(self, key: str, value: Any) -> "ValuesBuilder":
        # bool is stored the way boolean fields store it
        if isinstance(value, bool):
            value = int(value)
        elif isinstance(value, (bytearray, memoryview)):
            value = bytes(value)
        self._values[key] = value
        return self

    def put_null(self, key: str) -> "ValuesBuilder":
        self._values[key] = None
        return self

    def put_all(self, other: Mapping[str, Any]) -> "ValuesBuilder":
        for key, value in other.items():
            self.put(key, value)
        return self

    def build(self) -> dict[str, Any]:
        return dict(self._values)
