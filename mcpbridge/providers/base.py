"""
mcpbridge Provider Base - chat-completion API clients.

This module defines the interface every chat-completion backend implements,
and provides a factory for creating backend instances. Backends return the
raw chat-completions response as a dict; interpreting it is the model
gateway's job.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

import httpx
import openai

from mcpbridge.validation.config import ModelSettings

logger = logging.getLogger(__name__)


class ModelUnavailableError(Exception):
    """Raised when the provider cannot be reached or rejects the request."""


class MalformedResponseError(Exception):
    """Raised when a provider response lacks an expected field."""


class ChatCompletionAPI(ABC):
    """
    Abstract base class for chat-completion backends.

    One request per call, no retries and no streaming.

    Example:
        >>> api = ChatAPIFactory.create(settings, api_key="sk-...")
        >>> raw = api.create([{"role": "user", "content": "hi"}])
        >>> raw["choices"][0]["message"]["content"]
    """

    def __init__(self, settings: ModelSettings, api_key: str):
        """
        Initialize the backend.

        Args:
            settings: Model name, base URL, sampling options and timeout.
            api_key: Credential sent with every request.
        """
        self.settings = settings
        self.api_key = api_key

    @property
    def model(self) -> str:
        return self.settings.name

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name."""
        pass

    @abstractmethod
    def create(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Send one chat-completion request.

        Args:
            messages: Conversation in wire format.
            tools: Function-calling tool entries; omitted from the request when None.

        Returns:
            The response body as a dict.

        Raises:
            ModelUnavailableError: On network or provider failure.
            MalformedResponseError: If the body is not a JSON object.
        """
        pass

    def _request_body(
        self, messages: List[Dict[str, Any]], tools: Optional[List[Dict[str, Any]]]
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"model": self.model, "messages": messages}
        if tools:
            body["tools"] = tools
        if self.settings.temperature is not None:
            body["temperature"] = self.settings.temperature
        if self.settings.max_tokens is not None:
            body["max_tokens"] = self.settings.max_tokens
        return body


class OpenAIChatAPI(ChatCompletionAPI):
    """Backend using the official openai SDK."""

    def __init__(self, settings: ModelSettings, api_key: str):
        super().__init__(settings, api_key)
        self._client = openai.OpenAI(
            api_key=api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_retries=0,
        )

    @property
    def provider_name(self) -> str:
        return "openai"

    def create(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        try:
            response = self._client.chat.completions.create(**self._request_body(messages, tools))
        except openai.APIError as e:
            raise ModelUnavailableError(f"{self.provider_name} request failed: {e}") from e
        return response.model_dump()


class HttpChatAPI(ChatCompletionAPI):
    """
    Backend for any OpenAI-compatible ``/chat/completions`` endpoint.

    Talks plain HTTP through httpx, so no provider SDK is involved.
    """

    @property
    def provider_name(self) -> str:
        return "http"

    def create(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.settings.base_url.rstrip('/')}/chat/completions"
        try:
            response = httpx.post(
                url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=self._request_body(messages, tools),
                timeout=self.settings.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ModelUnavailableError(f"{self.provider_name} request to {url} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response from {url} is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Response from {url} is not a JSON object")
        return data


class ChatAPIFactory:
    """Factory for creating chat-completion backends."""

    _backends: Dict[str, Type[ChatCompletionAPI]] = {
        "openai": OpenAIChatAPI,
        "http": HttpChatAPI,
    }

    @classmethod
    def register(cls, name: str, backend_class: Type[ChatCompletionAPI]) -> None:
        """Register a new backend."""
        cls._backends[name] = backend_class

    @classmethod
    def create(cls, settings: ModelSettings, api_key: str) -> ChatCompletionAPI:
        """
        Create a backend instance for ``settings.provider``.

        Raises:
            ValueError: If the provider is not recognized.
        """
        name = settings.provider.lower()
        if name not in cls._backends:
            raise ValueError(
                f"Unknown provider: {settings.provider} "
                f"(available: {', '.join(cls.available_backends())})"
            )
        logger.info("Using %s backend, model %s at %s", name, settings.name, settings.base_url)
        return cls._backends[name](settings=settings, api_key=api_key)

    @classmethod
    def available_backends(cls) -> List[str]:
        """Get list of available backend names."""
        return list(cls._backends.keys())
