"""Model gateway: turns a conversation into a text answer or a set of tool-call requests."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from mcpbridge.core.models import Message, ModelTurnResult, TextAnswer, ToolCallsRequested
from mcpbridge.providers.base import ChatCompletionAPI, MalformedResponseError
from mcpbridge.toolserver.schema import FunctionSchema, ToolCallRequest

logger = logging.getLogger(__name__)


class ModelGateway:
    """
    Sends the full history to the chat-completion API and classifies the reply.

    Holds no conversation state: every call receives the history it should send.
    """

    def __init__(self, api: ChatCompletionAPI):
        self.api = api

    @property
    def model(self) -> str:
        return self.api.model

    def complete(
        self,
        history: Sequence[Message],
        tools: Optional[List[FunctionSchema]] = None,
    ) -> ModelTurnResult:
        """
        Query the model once.

        Passing ``tools=None`` (or an empty list) leaves the tool schema out
        of the request, so the model is not invited to call tools.

        Raises:
            ModelUnavailableError: Network or provider failure.
            MalformedResponseError: The response lacks an expected field.
        """
        messages = [message.to_api() for message in history]
        tool_entries = [schema.to_api() for schema in tools] if tools else None
        logger.debug(
            "Requesting completion: %d message(s), %d tool(s)",
            len(messages),
            len(tool_entries or []),
        )
        raw = self.api.create(messages, tool_entries)
        return self.parse_response(raw)

    @staticmethod
    def parse_response(raw: Dict[str, Any]) -> ModelTurnResult:
        """Classify a raw chat-completions body."""
        choices = raw.get("choices") if isinstance(raw, dict) else None
        if not isinstance(choices, list) or not choices:
            raise MalformedResponseError("Response has no choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise MalformedResponseError("First choice has no message")

        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise MalformedResponseError("Message content is not text")

        calls: List[ToolCallRequest] = []
        for raw_call in message.get("tool_calls") or []:
            if not isinstance(raw_call, dict):
                raise MalformedResponseError("Tool call entry is not an object")
            if raw_call.get("type", "function") != "function":
                logger.debug("Ignoring non-function tool call of type %s", raw_call.get("type"))
                continue
            function = raw_call.get("function")
            call_id = raw_call.get("id")
            if not isinstance(function, dict) or not isinstance(function.get("name"), str):
                raise MalformedResponseError("Tool call is missing a function name")
            if not isinstance(call_id, str) or not call_id:
                raise MalformedResponseError("Tool call is missing an id")
            arguments = function.get("arguments")
            if isinstance(arguments, dict):
                arguments = json.dumps(arguments)
            calls.append(ToolCallRequest(
                id=call_id,
                name=function["name"],
                arguments=arguments if isinstance(arguments, str) else "",
            ))

        if calls:
            return ToolCallsRequested(content=content or None, calls=calls)
        if content is None:
            raise MalformedResponseError("Message has neither content nor tool calls")
        return TextAnswer(content=content)
