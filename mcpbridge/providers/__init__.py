"""
mcpbridge providers module.

Chat-completion backends and the model gateway built on top of them.
"""

from mcpbridge.providers.base import (
    ChatAPIFactory,
    ChatCompletionAPI,
    HttpChatAPI,
    MalformedResponseError,
    ModelUnavailableError,
    OpenAIChatAPI,
)
from mcpbridge.providers.gateway import ModelGateway

__all__ = [
    "ChatAPIFactory",
    "ChatCompletionAPI",
    "HttpChatAPI",
    "MalformedResponseError",
    "ModelGateway",
    "ModelUnavailableError",
    "OpenAIChatAPI",
]
