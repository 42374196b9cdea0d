"""Tests for session lifecycle and conversation state."""

import pytest

from conftest import FakeToolServer
from mcpbridge.core.models import Message, Role
from mcpbridge.core.session import Session
from mcpbridge.core.trace import StepTracer
from mcpbridge.toolserver.gateway import DiscoveryError
from mcpbridge.toolserver.transport import ServerConnectionError


class TestSessionLifecycle:
    def test_connect_discovers_tools(self):
        server = FakeToolServer()
        session = Session(server)

        tools = session.connect()

        assert server.connected is True
        assert [t.name for t in tools] == ["get_weather", "add"]
        assert session.connected is True

    def test_context_manager_cleans_up(self):
        server = FakeToolServer()
        with Session(server) as session:
            session.append(Message.user("hi"))

        assert server.stopped is True
        assert session.history == ()
        assert session.connected is False

    def test_cleanup_on_error_inside_block(self):
        server = FakeToolServer()
        with pytest.raises(RuntimeError):
            with Session(server):
                raise RuntimeError("loop crashed")

        assert server.stopped is True

    def test_cleanup_when_discovery_fails(self):
        server = FakeToolServer(tools=[{"description": "no name"}])
        with pytest.raises(DiscoveryError):
            with Session(server):
                pass

        assert server.stopped is True

    def test_connection_error_propagates(self):
        class DeadServer(FakeToolServer):
            def connect(self):
                raise ServerConnectionError("Tool server command not found: nope")

        server = DeadServer()
        with pytest.raises(ServerConnectionError):
            Session(server).connect()

    def test_cleanup_is_idempotent(self):
        server = FakeToolServer()
        session = Session(server)
        session.connect()
        session.cleanup()
        server.stopped = False
        session.cleanup()

        assert server.stopped is False

    def test_connect_resets_trace_dir(self, tmp_path):
        trace_dir = tmp_path / "logs"
        trace_dir.mkdir()
        (trace_dir / "step1.yaml").write_text("old: true\n")

        Session(FakeToolServer(), tracer=StepTracer(trace_dir)).connect()

        assert list(trace_dir.iterdir()) == []


class TestConversationState:
    def test_history_is_a_snapshot(self):
        session = Session(FakeToolServer())
        session.append(Message.user("hi"))

        snapshot = session.history
        session.append(Message.assistant("hello"))

        assert len(snapshot) == 1
        assert len(session.history) == 2

    def test_messages_are_immutable(self):
        message = Message.user("hi")
        with pytest.raises(Exception):
            message.content = "changed"

    def test_tool_message_requires_call_id(self):
        with pytest.raises(ValueError):
            Message(role=Role.TOOL, content="x")

    def test_set_system_prompt_once(self):
        session = Session(FakeToolServer())
        session.set_system_prompt("Be brief.")

        assert session.system_prompt == "Be brief."
        with pytest.raises(RuntimeError):
            session.set_system_prompt("Be verbose.")

    def test_system_prompt_only_before_first_message(self):
        session = Session(FakeToolServer())
        session.append(Message.user("hi"))

        with pytest.raises(RuntimeError):
            session.set_system_prompt("Too late.")

    def test_connect_accepts_non_object_schema(self):
        server = FakeToolServer(tools=[{"name": "odd", "inputSchema": ["not", "an", "object"]}])

        tools = Session(server).connect()

        assert [t.name for t in tools] == ["odd"]
