"""Schema-typed callables the model may request during a turn."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .provider_ir import Message

if TYPE_CHECKING:  # pragma: no cover
    from .observation import Observation


@dataclass
class ToolCallContext:
    """Per-invocation context handed to a tool."""

    id: str
    messages: List[Message] = field(default_factory=list)
    observation: Optional["Observation"] = None


ToolFn = Callable[[Dict[str, Any], ToolCallContext], Any]


def _empty_object_schema() -> Dict[str, Any]:
    return {"type": "object", "properties": {}}


class Tool:
    """A named capability with a JSON Schema for its input.

    Identity for caching is structural: two tools with the same name,
    description and input schema produce the same cache key.
    """

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: Optional[Dict[str, Any]] = None,
        fn: Optional[ToolFn] = None,
    ) -> None:
        if not name:
            raise ValueError("Tool name must be a non-empty string")
        if fn is None:
            raise ValueError(f"Tool {name!r} requires a callable")
        self.name = name
        self.description = description
        self.input_schema: Dict[str, Any] = input_schema if input_schema is not None else _empty_object_schema()
        self._fn = fn

    def to_definition(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def to_cache_key(self) -> str:
        return json.dumps(self.to_definition(), sort_keys=True, ensure_ascii=False)

    def call(self, input: Dict[str, Any], context: ToolCallContext) -> str:
        result = self._fn(input, context)
        if isinstance(result, str):
            return result
        return json.dumps(result, ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"
