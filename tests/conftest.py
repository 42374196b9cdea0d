"""Shared fakes for the tool server and chat-completion API."""

import copy
from typing import Any, Dict, List, Optional

import pytest

from mcpbridge.core.session import Session
from mcpbridge.providers.base import ChatCompletionAPI
from mcpbridge.providers.gateway import ModelGateway
from mcpbridge.validation.config import ModelSettings


WEATHER_TOOL = {
    "name": "get_weather",
    "description": "Get the current weather for a city",
    "inputSchema": {
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"],
    },
}

ADD_TOOL = {
    "name": "add",
    "description": "Add two numbers",
    "inputSchema": {
        "type": "object",
        "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
        "required": ["a", "b"],
    },
}


class FakeToolServer:
    """In-memory stand-in for MCPTransport."""

    def __init__(self, tools: Optional[List[Dict[str, Any]]] = None, results: Optional[Dict[str, Any]] = None):
        self._tools = tools if tools is not None else [WEATHER_TOOL, ADD_TOOL]
        self.results = results or {}
        self.calls: List[tuple] = []
        self.connected = False
        self.stopped = False
        self.list_calls = 0

    def connect(self) -> Dict[str, Any]:
        self.connected = True
        return {"serverInfo": {"name": "fake"}}

    def stop(self) -> None:
        self.stopped = True

    def list_tools(self) -> List[Dict[str, Any]]:
        self.list_calls += 1
        return self._tools

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self.calls.append((name, arguments))
        result = self.results.get(name)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return {"content": [{"type": "text", "text": f"{name} ok"}]}
        return result


class FakeChatAPI(ChatCompletionAPI):
    """Returns scripted responses in order and records every request."""

    def __init__(self, responses: List[Any]):
        super().__init__(ModelSettings(name="fake-model"), api_key="test-key")
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    def create(self, messages, tools=None):
        self.requests.append({"messages": copy.deepcopy(messages), "tools": copy.deepcopy(tools)})
        if not self.responses:
            raise AssertionError("FakeChatAPI ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def text_response(content: str) -> Dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def tool_call_response(*calls: tuple, content: Optional[str] = None) -> Dict[str, Any]:
    """Build a response requesting ``(id, name, arguments)`` calls."""
    return {
        "choices": [{
            "message": {
                "role": "assistant",
                "content": content,
                "tool_calls": [
                    {"id": call_id, "type": "function", "function": {"name": name, "arguments": args}}
                    for call_id, name, args in calls
                ],
            }
        }]
    }


@pytest.fixture
def server():
    return FakeToolServer(results={
        "get_weather": {"content": [{"type": "text", "text": "22C, sunny"}]},
    })


@pytest.fixture
def session(server):
    s = Session(server)
    s.connect()
    yield s
    s.cleanup()


def make_gateway(*responses: Any) -> ModelGateway:
    return ModelGateway(FakeChatAPI(list(responses)))
