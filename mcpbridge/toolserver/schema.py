"""Data models for tool definitions, function schemas, calls, and results."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ToolDefinition(BaseModel):
    """A tool as advertised by the tool server (``tools/list``)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str = ""
    input_schema: Any = Field(default_factory=dict, alias="inputSchema")

    @classmethod
    def from_server(cls, raw: Dict[str, Any]) -> "ToolDefinition":
        # inputSchema is forwarded as sent, even when it is not an object.
        schema = raw.get("inputSchema")
        return cls(
            name=raw["name"],
            description=raw.get("description") or "",
            inputSchema={} if schema is None else schema,
        )


class FunctionSpec(BaseModel):
    """The inner ``function`` object of a function-calling tool entry."""

    name: str
    description: str = ""
    parameters: Any = Field(default_factory=dict)


class FunctionSchema(BaseModel):
    """A tool in the model provider's function-calling envelope."""

    type: Literal["function"] = "function"
    function: FunctionSpec

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump()


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: str = ""  # raw JSON text, parsed by the tool gateway

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class Success(BaseModel):
    kind: Literal["success"] = "success"
    content: str


class Failure(BaseModel):
    kind: Literal["failure"] = "failure"
    message: str


class ToolCallResult(BaseModel):
    """Outcome of one tool call, always normalized to text."""

    tool_call_id: str
    outcome: Union[Success, Failure] = Field(discriminator="kind")

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def text(self) -> str:
        """Text stored in the ``tool`` history message."""
        if isinstance(self.outcome, Success):
            return self.outcome.content
        return f"error: {self.outcome.message}"


class ServerLaunchSpec(BaseModel):
    """How to start a tool server subprocess."""

    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    description: Optional[str] = None


class ServersFile(BaseModel):
    """A servers configuration file: named launch specs plus optional defaults."""

    model_config = ConfigDict(populate_by_name=True)

    mcp_servers: Dict[str, ServerLaunchSpec] = Field(default_factory=dict, alias="mcpServers")
    default_server: Optional[str] = Field(default=None, alias="defaultServer")
    system: Optional[str] = None
