"""
mcpbridge Orchestrator - the per-query turn state machine.

One turn:
1. Seed the system prompt (first turn only) and append the user query
2. Ask the model, offering the discovered tools
3. Text answer → record it, done
4. Tool calls → record the request, run each call in order, record each result
5. Ask the model again for a final explanation (without tools on the last round)
6. Return every trace line and answer produced, joined by newlines

Per-tool and per-request failures become trace lines in the output; they
never escape the turn and never remove what is already in history.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from mcpbridge.core.models import (
    Message,
    ModelTurnResult,
    TextAnswer,
    ToolCallsRequested,
    TurnResult,
)
from mcpbridge.core.session import Session
from mcpbridge.providers.base import MalformedResponseError, ModelUnavailableError
from mcpbridge.toolserver.schema import FunctionSchema, ToolCallRequest

if TYPE_CHECKING:
    from mcpbridge.providers.gateway import ModelGateway

logger = logging.getLogger(__name__)

MODEL_ERRORS = (ModelUnavailableError, MalformedResponseError)


class Orchestrator:
    """
    Drives turns for one Session.

    ``max_tool_rounds`` bounds how many times a turn may execute tool
    calls. With the default of 1 the follow-up request never offers tools,
    which forces a textual conclusion after one round.
    """

    def __init__(self, session: Session, model: "ModelGateway", max_tool_rounds: int = 1):
        if max_tool_rounds < 1:
            raise ValueError("max_tool_rounds must be at least 1")
        self.session = session
        self.model = model
        self.max_tool_rounds = max_tool_rounds

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_query(self, query: str) -> TurnResult:
        """Run one full turn for ``query`` and return its output."""
        session = self.session
        lines: List[str] = []

        if not session.history and session.system_prompt:
            session.append(Message.system(session.system_prompt))
        session.append(Message.user(query))

        schemas = session.tools.function_schemas or None
        try:
            result = self._ask(schemas)
        except MODEL_ERRORS as e:
            logger.error("Model request failed: %s", e)
            lines.append(f"[model request failed: {e}]")
            return self._finish(lines, rounds=0, calls=0, error=str(e))

        rounds = 0
        calls_made = 0
        while True:
            if isinstance(result, TextAnswer):
                session.append(Message.assistant(result.content))
                if result.content:
                    lines.append(result.content)
                return self._finish(lines, rounds, calls_made)

            if rounds >= self.max_tool_rounds:
                # The model asked for tools on a request that did not offer any.
                self._record_unexecuted(result, lines)
                return self._finish(lines, rounds, calls_made)

            rounds += 1
            session.append(Message.assistant(result.content, result.calls))
            if result.content:
                lines.append(result.content)

            for call in result.calls:
                self._execute(call, lines)
                calls_made += 1

            followup_schemas = schemas if rounds < self.max_tool_rounds else None
            try:
                result = self._ask(followup_schemas)
            except MODEL_ERRORS as e:
                logger.error("Follow-up request failed: %s", e)
                lines.append(f"[follow-up response failed: {e}]")
                return self._finish(lines, rounds, calls_made, error=str(e))

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _ask(self, schemas: Optional[List[FunctionSchema]]) -> ModelTurnResult:
        history = self.session.history
        tracer = self.session.tracer
        tracer.record("model_request", {
            "messages": [m.to_api() for m in history],
            "tools": [s.function.name for s in schemas or []],
        })
        logger.info(
            "Querying model with %d message(s)%s",
            len(history),
            f" and {len(schemas)} tool(s)" if schemas else "",
        )
        result = self.model.complete(history, schemas)
        tracer.record("model_response", {
            "type": type(result).__name__,
            "result": result.model_dump(),
        })
        return result

    def _execute(self, call: ToolCallRequest, lines: List[str]) -> None:
        """Run one tool call, append its result to history and its trace line to output."""
        lines.append(f"[called tool {call.name} with args {call.arguments.strip() or '{}'}]")

        outcome = self.session.tools.invoke(call.name, call.arguments, call_id=call.id)
        self.session.append(Message.tool(call.id, outcome.text))
        self.session.tracer.record("tool_result", {
            "tool_call_id": call.id,
            "tool": call.name,
            "arguments": call.arguments,
            "ok": outcome.ok,
            "content": outcome.text,
        })

        if not outcome.ok:
            lines.append(f"[tool call failed: {outcome.outcome.message}]")

    def _record_unexecuted(self, result: ToolCallsRequested, lines: List[str]) -> None:
        if result.content:
            self.session.append(Message.assistant(result.content))
            lines.append(result.content)
        names = ", ".join(call.name for call in result.calls)
        logger.warning("Ignoring tool calls requested after the last round: %s", names)
        lines.append(f"[further tool calls ignored: {names}]")

    @staticmethod
    def _finish(
        lines: List[str], rounds: int, calls: int, error: Optional[str] = None
    ) -> TurnResult:
        return TurnResult(
            output="\n".join(lines),
            lines=lines,
            tool_rounds=rounds,
            tool_calls=calls,
            completed=error is None,
            error=error,
        )
