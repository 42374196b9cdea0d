"""Parse and check model-supplied tool arguments against a tool's input schema."""

from __future__ import annotations

import json
from typing import Any, Dict


class ArgumentParseError(ValueError):
    """Raised when tool arguments are not valid JSON or do not match the schema."""


def parse_arguments(raw: str) -> Dict[str, Any]:
    """
    Parse the raw argument text emitted by the model.

    Empty text means "no arguments". Anything other than a JSON object is
    rejected.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ArgumentParseError(f"Invalid JSON in tool arguments: {e}") from e
    if not isinstance(parsed, dict):
        raise ArgumentParseError("Tool arguments must be a JSON object")
    return parsed


def _matches_json_type(value: Any, expected: str) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "integer":
        if isinstance(value, float):
            return value.is_integer()
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "object":
        return isinstance(value, dict)
    if expected == "array":
        return isinstance(value, list)
    if expected == "null":
        return value is None
    # Unknown type names are left to the server.
    return True


def validate_arguments(args: Dict[str, Any], schema: Any) -> None:
    """
    Check ``args`` against a subset of JSON Schema.

    Covers ``required``, ``additionalProperties: false`` and the ``type`` of
    each declared property. A malformed schema is not an argument error, so
    unexpected shapes are skipped rather than rejected.

    Raises:
        ArgumentParseError: If a required field is missing, an unknown field
            is not allowed, or a property has the wrong type.
    """
    if not isinstance(schema, dict):
        return

    properties = schema.get("properties")
    required = schema.get("required", [])
    if not isinstance(properties, dict):
        properties = {}
    if not isinstance(required, list):
        required = []

    for field in required:
        if field not in args:
            raise ArgumentParseError(f"Missing required argument: {field}")

    if schema.get("additionalProperties", True) is False:
        unknown = [k for k in args if k not in properties]
        if unknown:
            raise ArgumentParseError(f"Unknown argument(s) not allowed: {', '.join(unknown)}")

    for key, val in args.items():
        prop = properties.get(key)
        if not isinstance(prop, dict):
            continue
        expected = prop.get("type")
        if isinstance(expected, list):
            names = [t for t in expected if isinstance(t, str)]
            if names and not any(_matches_json_type(val, t) for t in names):
                raise ArgumentParseError(
                    f"Argument '{key}' has wrong type; expected one of {names}"
                )
        elif isinstance(expected, str):
            if not _matches_json_type(val, expected):
                raise ArgumentParseError(f"Argument '{key}' has wrong type; expected {expected}")
