"""Conversation data models: messages, model turn results, turn output."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mcpbridge.toolserver.schema import ToolCallRequest


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class Message(BaseModel):
    """One entry of the conversation history. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Tuple[ToolCallRequest, ...] = ()

    @model_validator(mode="after")
    def _check_shape(self) -> "Message":
        if self.role is Role.TOOL and not self.tool_call_id:
            raise ValueError("tool messages require a tool_call_id")
        if self.tool_calls and self.role is not Role.ASSISTANT:
            raise ValueError("only assistant messages may carry tool calls")
        if self.content is None and self.role is not Role.ASSISTANT:
            raise ValueError(f"{self.role.value} messages require content")
        return self

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: Optional[str], tool_calls: Optional[List[ToolCallRequest]] = None
    ) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls or ()))

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "Message":
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id)

    def to_api(self) -> Dict[str, Any]:
        """Render in the chat-completions wire format."""
        data: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            data["tool_calls"] = [call.to_api() for call in self.tool_calls]
        return data


class TextAnswer(BaseModel):
    """The model answered directly."""

    content: str


class ToolCallsRequested(BaseModel):
    """The model wants tools run before it can answer."""

    content: Optional[str] = None
    calls: List[ToolCallRequest] = Field(min_length=1)


ModelTurnResult = Union[TextAnswer, ToolCallsRequested]


class TurnResult(BaseModel):
    """What one user query produced."""

    output: str
    lines: List[str] = Field(default_factory=list)
    tool_rounds: int = 0
    tool_calls: int = 0
    completed: bool = True
    error: Optional[str] = None
