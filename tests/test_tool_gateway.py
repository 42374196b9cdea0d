"""Tests for tool discovery, schema translation and tool invocation."""

import pytest

from conftest import ADD_TOOL, WEATHER_TOOL, FakeToolServer
from mcpbridge.toolserver.gateway import DiscoveryError, ToolGateway, normalize_result
from mcpbridge.toolserver.schema import ToolDefinition
from mcpbridge.toolserver.translator import to_function_schema, to_function_schemas
from mcpbridge.toolserver.transport import MCPTransportError
from mcpbridge.toolserver.validation import ArgumentParseError, parse_arguments, validate_arguments


# ═══════════════════════════════════════════════════════════════════════════════
# Schema translation
# ═══════════════════════════════════════════════════════════════════════════════

class TestTranslator:
    def test_fields_mirror_definition(self):
        tool = ToolDefinition.from_server(WEATHER_TOOL)
        schema = to_function_schema(tool)

        assert schema.type == "function"
        assert schema.function.name == "get_weather"
        assert schema.function.description == WEATHER_TOOL["description"]
        assert schema.function.parameters == WEATHER_TOOL["inputSchema"]

    def test_count_and_order_preserved(self):
        tools = [ToolDefinition.from_server(t) for t in (WEATHER_TOOL, ADD_TOOL)]
        schemas = to_function_schemas(tools)

        assert [s.function.name for s in schemas] == ["get_weather", "add"]

    def test_deterministic(self):
        tool = ToolDefinition.from_server(ADD_TOOL)
        assert to_function_schema(tool) == to_function_schema(tool)

    def test_malformed_schema_passed_through(self):
        tool = ToolDefinition.from_server({"name": "odd", "inputSchema": {"type": 42}})
        assert to_function_schema(tool).function.parameters == {"type": 42}

    def test_result_is_independent_copy(self):
        tool = ToolDefinition.from_server(WEATHER_TOOL)
        schema = to_function_schema(tool)
        schema.function.parameters["properties"]["extra"] = {}

        assert "extra" not in tool.input_schema["properties"]

    def test_wire_format(self):
        api = to_function_schema(ToolDefinition.from_server(ADD_TOOL)).to_api()
        assert api == {
            "type": "function",
            "function": {
                "name": "add",
                "description": "Add two numbers",
                "parameters": ADD_TOOL["inputSchema"],
            },
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Discovery
# ═══════════════════════════════════════════════════════════════════════════════

class TestDiscovery:
    def test_discover(self):
        gateway = ToolGateway(FakeToolServer())
        tools = gateway.discover_tools()

        assert [t.name for t in tools] == ["get_weather", "add"]
        assert len(gateway.function_schemas) == 2

    def test_discovery_is_cached(self):
        server = FakeToolServer()
        gateway = ToolGateway(server)
        gateway.discover_tools()
        gateway.discover_tools()

        assert server.list_calls == 1

    def test_missing_description_defaults_empty(self):
        gateway = ToolGateway(FakeToolServer(tools=[{"name": "bare"}]))
        tool = gateway.discover_tools()[0]

        assert tool.description == ""
        assert tool.input_schema == {}

    def test_non_object_schema_passed_through(self):
        odd = {"name": "odd", "inputSchema": ["not", "an", "object"]}
        gateway = ToolGateway(FakeToolServer(tools=[odd]))

        tool = gateway.discover_tools()[0]

        assert tool.input_schema == ["not", "an", "object"]
        assert gateway.function_schemas[0].function.parameters == ["not", "an", "object"]

    def test_non_object_schema_still_invokable(self):
        server = FakeToolServer(tools=[{"name": "odd", "inputSchema": "free-form"}])
        gateway = ToolGateway(server)
        gateway.discover_tools()

        result = gateway.invoke("odd", '{"x": 1}')

        assert result.ok is True
        assert server.calls == [("odd", {"x": 1})]

    def test_transport_failure(self):
        class BrokenServer(FakeToolServer):
            def list_tools(self):
                raise MCPTransportError("gone")

        with pytest.raises(DiscoveryError, match="gone"):
            ToolGateway(BrokenServer()).discover_tools()

    def test_not_a_list(self):
        with pytest.raises(DiscoveryError):
            ToolGateway(FakeToolServer(tools={"name": "x"})).discover_tools()

    def test_entry_without_name(self):
        with pytest.raises(DiscoveryError):
            ToolGateway(FakeToolServer(tools=[{"description": "nameless"}])).discover_tools()

    def test_duplicate_names(self):
        with pytest.raises(DiscoveryError, match="Duplicate"):
            ToolGateway(FakeToolServer(tools=[ADD_TOOL, ADD_TOOL])).discover_tools()


# ═══════════════════════════════════════════════════════════════════════════════
# Invocation
# ═══════════════════════════════════════════════════════════════════════════════

class TestInvoke:
    @pytest.fixture
    def server(self):
        return FakeToolServer()

    @pytest.fixture
    def gateway(self, server):
        gw = ToolGateway(server)
        gw.discover_tools()
        return gw

    def test_success(self, gateway, server):
        result = gateway.invoke("add", '{"a": 1, "b": 2}', call_id="c1")

        assert result.ok is True
        assert result.tool_call_id == "c1"
        assert result.text == "add ok"
        assert server.calls == [("add", {"a": 1, "b": 2})]

    def test_unknown_tool(self, gateway, server):
        result = gateway.invoke("doesNotExist", "{}")

        assert result.ok is False
        assert result.text.startswith("error: Unknown tool 'doesNotExist'")
        assert server.calls == []

    def test_invalid_json(self, gateway):
        result = gateway.invoke("add", "{oops")
        assert result.ok is False
        assert "Invalid JSON" in result.text

    def test_wrong_type(self, gateway, server):
        result = gateway.invoke("add", '{"a": "one", "b": 2}')

        assert result.text == "error: Argument 'a' has wrong type; expected number"
        assert server.calls == []

    def test_server_error_becomes_failure(self, gateway, server):
        server.results["add"] = MCPTransportError("Tool server error -32602: bad params")
        result = gateway.invoke("add", '{"a": 1, "b": 2}')

        assert result.ok is False
        assert result.text == "error: Tool server error -32602: bad params"

    def test_is_error_flag(self, gateway, server):
        server.results["add"] = {"content": [{"type": "text", "text": "overflow"}], "isError": True}
        result = gateway.invoke("add", '{"a": 1, "b": 2}')

        assert result.ok is False
        assert result.text == "error: overflow"


class TestNormalizeResult:
    def test_plain_string(self):
        assert normalize_result("hello") == "hello"

    def test_text_blocks_joined(self):
        raw = {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}
        assert normalize_result(raw) == "a\nb"

    def test_string_content(self):
        assert normalize_result({"content": "already text"}) == "already text"

    def test_mixed_blocks_serialized(self):
        raw = {"content": [{"type": "text", "text": "a"}, {"type": "image", "data": "xyz"}]}
        assert normalize_result(raw) == (
            '[{"type": "text", "text": "a"}, {"type": "image", "data": "xyz"}]'
        )

    def test_structured_content(self):
        raw = {"content": [], "structuredContent": {"temp": 22}}
        assert normalize_result(raw) == '{"temp": 22}'

    def test_arbitrary_structure(self):
        assert normalize_result({"value": 3}) == '{"value": 3}'


# ═══════════════════════════════════════════════════════════════════════════════
# Argument validation
# ═══════════════════════════════════════════════════════════════════════════════

class TestArguments:
    def test_empty_is_no_arguments(self):
        assert parse_arguments("") == {}
        assert parse_arguments("   ") == {}

    def test_non_object_rejected(self):
        with pytest.raises(ArgumentParseError):
            parse_arguments("[1, 2]")

    def test_additional_properties_false(self):
        schema = {"properties": {"a": {"type": "string"}}, "additionalProperties": False}
        with pytest.raises(ArgumentParseError, match="Unknown argument"):
            validate_arguments({"a": "x", "b": 1}, schema)

    def test_additional_properties_allowed_by_default(self):
        validate_arguments({"a": "x", "b": 1}, {"properties": {"a": {"type": "string"}}})

    def test_union_types(self):
        schema = {"properties": {"v": {"type": ["string", "null"]}}}
        validate_arguments({"v": None}, schema)
        with pytest.raises(ArgumentParseError):
            validate_arguments({"v": 3}, schema)

    def test_bool_is_not_integer(self):
        with pytest.raises(ArgumentParseError):
            validate_arguments({"n": True}, {"properties": {"n": {"type": "integer"}}})

    def test_malformed_schema_ignored(self):
        validate_arguments({"a": 1}, {"properties": "nonsense", "required": "a"})

    def test_integral_float_is_integer(self):
        schema = {"properties": {"n": {"type": "integer"}}}
        validate_arguments({"n": 1.0}, schema)
        with pytest.raises(ArgumentParseError):
            validate_arguments({"n": 1.5}, schema)

    def test_non_object_schema_skipped(self):
        validate_arguments({"a": 1}, ["not", "an", "object"])
