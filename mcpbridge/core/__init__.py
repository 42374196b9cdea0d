"""
mcpbridge core module.

Conversation state and the turn state machine that ties the model to the
tool server.
"""

from mcpbridge.core.models import (
    Message,
    ModelTurnResult,
    Role,
    TextAnswer,
    ToolCallsRequested,
    TurnResult,
)
from mcpbridge.core.orchestrator import Orchestrator
from mcpbridge.core.session import Session
from mcpbridge.core.trace import StepTracer

__all__ = [
    "Message",
    "ModelTurnResult",
    "Orchestrator",
    "Role",
    "Session",
    "StepTracer",
    "TextAnswer",
    "ToolCallsRequested",
    "TurnResult",
]
