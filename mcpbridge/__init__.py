"""
mcpbridge - Chat with a language model that can call tool-server tools.

Connects to a tool server over a stdio subprocess, offers its tools to a
chat-completion API with function calling, runs the calls the model asks
for and feeds the results back until the model answers in plain text.

Architecture:
- toolserver: subprocess transport, schema translation, tool gateway
- providers: chat-completion backends and the model gateway
- core: session state and the turn orchestrator
- cli: interactive shell
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from mcpbridge.core import Message, Orchestrator, Session, TurnResult
from mcpbridge.providers import ModelGateway
from mcpbridge.toolserver import MCPTransport, ToolGateway

__all__ = [
    "MCPTransport",
    "Message",
    "ModelGateway",
    "Orchestrator",
    "Session",
    "ToolGateway",
    "TurnResult",
    "__version__",
]
