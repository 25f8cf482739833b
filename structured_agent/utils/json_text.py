"""JSON extraction and schema validation helpers.

Model replies often wrap the requested JSON object in prose. These helpers are
deterministic: they only locate and validate JSON text, never repair it. Repair
is the job of :class:`structured_agent.json_validator.JsonValidator`.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator
from jsonschema.validators import validator_for


def _find_first_object_span(text: str) -> Optional[Tuple[int, int]]:
    """Return (start, end_inclusive) of the first balanced top-level object.

    Scanning starts at the first '{' and respects JSON strings, so braces
    inside string values do not count. Returns None if the object never closes.
    """
    if not text:
        return None

    start = text.find("{")
    if start < 0:
        return None

    stack: List[str] = []
    in_string = False
    escape = False

    for idx in range(start, len(text)):
        ch = text[idx]

        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in ("{", "["):
            stack.append(ch)
        elif ch in ("}", "]"):
            if not stack:
                return None
            expected = "}" if stack[-1] == "{" else "]"
            if ch != expected:
                return None
            stack.pop()
            if not stack:
                return start, idx

    return None


def select_json_in_text(text: str) -> str:
    """Extract the first top-level JSON object from free text.

    Returns "" when the text holds no complete object; truncated or
    unbalanced braces are never guessed at.
    """
    span = _find_first_object_span(text or "")
    if span is None:
        return ""
    start, end = span
    return text[start : end + 1]


def _closed_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    if schema.get("strict") is True and "additionalProperties" not in schema:
        closed = dict(schema)
        closed.pop("strict")
        closed["additionalProperties"] = False
        return closed
    return schema


def _format_error(error: Any) -> str:
    path = "/".join(str(part) for part in error.absolute_path)
    if path:
        return f"{path}: {error.message}"
    return error.message


def schema_errors(value: Any, schema: Dict[str, Any]) -> List[str]:
    """Validate an already-parsed value; errors come back in emission order."""
    schema = _closed_schema(schema)
    validator_cls = validator_for(schema, default=Draft7Validator)
    validator = validator_cls(schema)
    return [_format_error(error) for error in validator.iter_errors(value)]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard constant {name}")


def parse_json(content: str) -> Any:
    """Strict parse: NaN and Infinity are not JSON and are rejected."""
    return json.loads(content, parse_constant=_reject_constant)


def is_valid_json(content: str, schema: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Parse ``content`` and validate it against ``schema``.

    A parse failure yields the parser message as the only error.
    """
    try:
        parsed = parse_json(content)
    except ValueError as exc:
        return False, [str(exc)]
    errors = schema_errors(parsed, schema)
    return not errors, errors


def canonical_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
