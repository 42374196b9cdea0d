"""
mcpbridge Session - one tool server connection and one conversation.

A Session is created on connect and destroyed on cleanup. It owns the
tool gateway, the append-only message history and the optional system
prompt. Use it as a context manager so cleanup runs however the
conversation ends.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from mcpbridge.core.models import Message
from mcpbridge.core.trace import StepTracer
from mcpbridge.toolserver.gateway import ToolGateway
from mcpbridge.toolserver.schema import ToolDefinition
from mcpbridge.toolserver.transport import MCPTransportError

logger = logging.getLogger(__name__)


class Session:
    """
    State for a single connected conversation.

    ``server`` must provide ``connect()``, ``stop()``, ``list_tools()`` and
    ``call_tool(name, arguments)``; ``MCPTransport`` is the real one.

    Example:
        >>> with Session(MCPTransport("python3", ["server.py"])) as session:
        ...     orchestrator = Orchestrator(session, model_gateway)
        ...     orchestrator.process_query("What tools do you have?")
    """

    def __init__(
        self,
        server: Any,
        system_prompt: Optional[str] = None,
        tracer: Optional[StepTracer] = None,
    ):
        self.server = server
        self.tools = ToolGateway(server)
        self.tracer = tracer or StepTracer()
        self._system_prompt = system_prompt
        self._history: List[Message] = []
        self._connected = False

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def connect(self) -> List[ToolDefinition]:
        """
        Start the server, complete the handshake and discover tools.

        Raises:
            ServerConnectionError: The server could not be launched or initialized.
            DiscoveryError: The tool list could not be fetched.
        """
        self.server.connect()
        self._connected = True
        tools = self.tools.discover_tools()
        self.tracer.reset()
        return tools

    def cleanup(self) -> None:
        """Clear history and close the transport. Safe to call more than once."""
        self._history.clear()
        if not self._connected:
            return
        self._connected = False
        try:
            self.server.stop()
            logger.info("Disconnected from tool server")
        except (MCPTransportError, OSError) as e:
            logger.error("Error while stopping tool server: %s", e)

    @property
    def connected(self) -> bool:
        return self._connected

    def __enter__(self) -> "Session":
        try:
            self.connect()
        except BaseException:
            self.cleanup()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    # ── Conversation state ────────────────────────────────────────────────

    @property
    def system_prompt(self) -> Optional[str]:
        return self._system_prompt

    def set_system_prompt(self, prompt: str) -> None:
        """Set the system prompt; allowed once, and only before the first message."""
        if self._system_prompt is not None:
            raise RuntimeError("System prompt is already set for this session")
        if self._history:
            raise RuntimeError("System prompt must be set before the conversation starts")
        self._system_prompt = prompt

    @property
    def history(self) -> Tuple[Message, ...]:
        """Read-only snapshot of the conversation so far."""
        return tuple(self._history)

    def append(self, message: Message) -> None:
        """Append to history. Messages are never edited or removed afterwards."""
        self._history.append(message)
