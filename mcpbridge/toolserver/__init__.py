"""
mcpbridge tool server module.

Talks to a tool server over a stdio subprocess, translates its tool
definitions into function-calling schemas, and executes tool calls.
"""

from mcpbridge.toolserver.gateway import DiscoveryError, ToolGateway, normalize_result
from mcpbridge.toolserver.launch import resolve_server
from mcpbridge.toolserver.schema import (
    Failure,
    FunctionSchema,
    ServerLaunchSpec,
    ServersFile,
    Success,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
)
from mcpbridge.toolserver.transport import MCPTransport, MCPTransportError, ServerConnectionError
from mcpbridge.toolserver.translator import to_function_schema, to_function_schemas
from mcpbridge.toolserver.validation import ArgumentParseError

__all__ = [
    "ArgumentParseError",
    "DiscoveryError",
    "Failure",
    "FunctionSchema",
    "MCPTransport",
    "MCPTransportError",
    "ServerConnectionError",
    "ServerLaunchSpec",
    "ServersFile",
    "Success",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDefinition",
    "ToolGateway",
    "normalize_result",
    "resolve_server",
    "to_function_schema",
    "to_function_schemas",
]
