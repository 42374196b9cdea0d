"""Tool gateway: discovers tools once per session and executes calls against the server."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional

from mcpbridge.toolserver.schema import (
    Failure,
    FunctionSchema,
    Success,
    ToolCallResult,
    ToolDefinition,
)
from mcpbridge.toolserver.transport import MCPTransportError
from mcpbridge.toolserver.translator import to_function_schemas
from mcpbridge.toolserver.validation import (
    ArgumentParseError,
    parse_arguments,
    validate_arguments,
)

logger = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """Raised when the tool list cannot be fetched or is malformed."""


def normalize_result(raw: Any) -> str:
    """
    Reduce a ``tools/call`` result to text.

    Plain strings and all-text content blocks pass through unchanged;
    anything structured is serialized as JSON.
    """
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict) and "content" in raw:
        content = raw["content"]
        if isinstance(content, str):
            return content
        if (
            isinstance(content, list)
            and content
            and all(isinstance(part, dict) and part.get("type") == "text" for part in content)
        ):
            return "\n".join(str(part.get("text", "")) for part in content)
        if not content and raw.get("structuredContent") is not None:
            return json.dumps(raw["structuredContent"], ensure_ascii=False)
        return json.dumps(content, ensure_ascii=False, default=str)
    return json.dumps(raw, ensure_ascii=False, default=str)


class ToolGateway:
    """
    Exposes the server's tools and runs named tool calls.

    ``server`` is anything with ``list_tools() -> list[dict]`` and
    ``call_tool(name, arguments) -> dict`` (see ``MCPTransport``). The
    gateway keeps the discovered tool set but no conversation state.
    Every failure during ``invoke`` comes back as a ``Failure`` outcome.
    """

    def __init__(self, server: Any):
        self._server = server
        self._tools: Dict[str, ToolDefinition] = {}
        self._schemas: List[FunctionSchema] = []
        self._discovered = False

    # ── Discovery ─────────────────────────────────────────────────────────

    def discover_tools(self) -> List[ToolDefinition]:
        """Query the server once and cache the tool set for the session."""
        if self._discovered:
            return self.tools

        try:
            raw_tools = self._server.list_tools()
        except MCPTransportError as exc:
            raise DiscoveryError(f"Failed to list tools: {exc}") from exc

        if not isinstance(raw_tools, list):
            raise DiscoveryError("Malformed tool list: expected a list")

        tools: Dict[str, ToolDefinition] = {}
        for raw in raw_tools:
            if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
                raise DiscoveryError(f"Malformed tool entry: {raw!r}")
            try:
                tool = ToolDefinition.from_server(raw)
            except ValueError as exc:
                raise DiscoveryError(f"Malformed tool entry '{raw['name']}': {exc}") from exc
            if tool.name in tools:
                raise DiscoveryError(f"Duplicate tool name: {tool.name}")
            tools[tool.name] = tool

        self._tools = tools
        self._schemas = to_function_schemas(tools.values())
        self._discovered = True
        logger.info("Discovered %d tool(s): %s", len(tools), ", ".join(tools) or "(none)")
        return self.tools

    @property
    def tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    @property
    def function_schemas(self) -> List[FunctionSchema]:
        return list(self._schemas)

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    # ── Execution ─────────────────────────────────────────────────────────

    def invoke(self, name: str, raw_arguments: str, call_id: str = "") -> ToolCallResult:
        """
        Execute one tool call.

        Args:
            name: Tool name as requested by the model.
            raw_arguments: The model's argument text (a JSON object).
            call_id: The provider-assigned call id, copied onto the result.
        """
        tool = self._tools.get(name)
        if tool is None:
            known = ", ".join(self._tools) or "none"
            return self._failure(call_id, name, f"Unknown tool '{name}' (available: {known})")

        try:
            arguments = parse_arguments(raw_arguments)
            validate_arguments(arguments, tool.input_schema)
        except ArgumentParseError as exc:
            return self._failure(call_id, name, str(exc))

        t0 = time.perf_counter()
        try:
            raw_result = self._server.call_tool(name, arguments)
        except Exception as exc:
            return self._failure(call_id, name, str(exc) or type(exc).__name__)
        elapsed_ms = int((time.perf_counter() - t0) * 1000)

        text = normalize_result(raw_result)
        if isinstance(raw_result, dict) and raw_result.get("isError"):
            return self._failure(call_id, name, text or "tool reported an error")

        logger.info("Tool %s succeeded in %d ms", name, elapsed_ms)
        return ToolCallResult(tool_call_id=call_id, outcome=Success(content=text))

    @staticmethod
    def _failure(call_id: str, name: str, message: str) -> ToolCallResult:
        logger.warning("Tool %s failed: %s", name, message)
        return ToolCallResult(tool_call_id=call_id, outcome=Failure(message=message))
