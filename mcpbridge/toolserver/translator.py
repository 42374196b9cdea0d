"""Translate tool server definitions into the model's function-calling schema."""

from __future__ import annotations

import copy
from typing import Iterable, List

from mcpbridge.toolserver.schema import FunctionSchema, FunctionSpec, ToolDefinition


def to_function_schema(tool: ToolDefinition) -> FunctionSchema:
    """
    Wrap one tool definition in the function-calling envelope.

    The input schema is passed through verbatim (deep-copied so callers
    cannot mutate the definition through the result). Validating it is the
    provider's job.
    """
    return FunctionSchema(
        function=FunctionSpec(
            name=tool.name,
            description=tool.description,
            parameters=copy.deepcopy(tool.input_schema),
        )
    )


def to_function_schemas(tools: Iterable[ToolDefinition]) -> List[FunctionSchema]:
    """Translate every definition, preserving order."""
    return [to_function_schema(tool) for tool in tools]
