"""Tests for modules/base.py: action registration, descriptors, argument binding."""
import pytest

from gateway.errors import ErrorCode, McpError
from gateway.modules.base import ToolModule, ToolParam, action
from gateway.protocol import HealthStatus, ToolDescriptor, ToolResult


class DefaultsModule(ToolModule):
    @action(
        "store",
        description="Store options",
        params=[
            ToolParam("key"),
            ToolParam("options", type="object", required=False, default={}),
            ToolParam("count", type="integer", required=False),
        ],
    )
    async def store(self, key: str, options: dict, count: int = None) -> ToolResult:
        options["touched"] = True
        return ToolResult.text(f"{key}:{sorted(options)}:{count}")

    async def probe_health(self) -> HealthStatus:
        return HealthStatus.healthy()


class TypedModule(ToolModule):
    @action(
        "filter",
        params=[
            ToolParam("active", type="boolean", required=False),
            ToolParam("limit", type="integer", required=False, schema={"minimum": 1}),
            ToolParam("status", required=False, schema={"enum": ["ok", "failed"]}),
        ],
    )
    async def filter(self, active: bool = None, limit: int = None, status: str = None) -> ToolResult:
        return ToolResult.text(f"{active}:{limit}:{status}")

    async def probe_health(self) -> HealthStatus:
        return HealthStatus.healthy()


class ExtendedModule(DefaultsModule):
    @action("extra")
    async def extra(self) -> ToolResult:
        """Docstring becomes the description."""
        return ToolResult.text("extra")


class TestDescriptors:
    def test_declaration_order(self, echo_module):
        names = [d.name for d in echo_module.list_descriptors()]
        assert names == ["ping", "echo", "boom", "soft_fail"]

    def test_action_names_match_descriptors(self, echo_module):
        assert echo_module.action_names() == [d.name for d in echo_module.list_descriptors()]

    def test_input_schema(self):
        descriptor = DefaultsModule().list_descriptors()[0]
        schema = descriptor.input_schema
        assert schema["type"] == "object"
        assert schema["required"] == ["key"]
        assert schema["properties"]["options"] == {"type": "object", "default": {}}
        assert schema["properties"]["count"] == {"type": "integer"}

    def test_no_required_key_when_all_optional(self, echo_module):
        ping = echo_module.list_descriptors()[0]
        assert "required" not in ping.input_schema

    def test_wire_shape_uses_input_schema_alias(self, echo_module):
        data = echo_module.list_descriptors()[0].to_dict()
        assert set(data) == {"name", "description", "inputSchema"}

    def test_subclass_inherits_actions(self):
        module = ExtendedModule()
        assert module.action_names() == ["store", "extra"]
        assert module.list_descriptors()[1].description == "Docstring becomes the description."

    def test_parent_table_unchanged_by_subclass(self):
        assert DefaultsModule().action_names() == ["store"]

    def test_action_names_follow_overridden_manifest(self):
        class Renamed(DefaultsModule):
            def list_descriptors(self):
                return [ToolDescriptor(name="only")]

        assert Renamed().action_names() == ["only"]


class TestInvoke:
    @pytest.mark.asyncio
    async def test_invoke_success(self, echo_module):
        result = await echo_module.invoke("echo", {"message": "hi"})
        assert result.to_dict() == {"content": [{"type": "text", "text": "hi"}]}

    @pytest.mark.asyncio
    async def test_missing_required_is_in_band(self, echo_module):
        result = await echo_module.invoke("echo", {})
        assert result.is_error
        assert "message" in result.content[0].text

    @pytest.mark.asyncio
    async def test_unknown_action_raises_protocol_error(self, echo_module):
        with pytest.raises(McpError) as exc:
            await echo_module.invoke("nope", {})
        assert exc.value.code == ErrorCode.METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unknown_arguments_ignored(self, echo_module):
        result = await echo_module.invoke("ping", {"unexpected": 1})
        assert result.content[0].text == "pong"

    @pytest.mark.asyncio
    async def test_default_is_copied_per_call(self):
        module = DefaultsModule()
        await module.invoke("store", {"key": "a"})
        result = await module.invoke("store", {"key": "b"})
        assert result.content[0].text == "b:['touched']:None"
        assert DefaultsModule._actions["store"].params[1].default == {}

    @pytest.mark.asyncio
    async def test_none_treated_as_missing(self):
        result = await DefaultsModule().invoke("store", {"key": "k", "count": None})
        assert result.content[0].text.endswith(":None")


class TestArgumentTypes:
    @pytest.mark.asyncio
    async def test_string_for_boolean_rejected(self):
        result = await TypedModule().invoke("filter", {"active": "false"})
        assert result.is_error
        assert result.content[0].text == "Invalid argument 'active': expected boolean, got str"

    @pytest.mark.asyncio
    async def test_bool_is_not_an_integer(self):
        result = await TypedModule().invoke("filter", {"limit": True})
        assert result.is_error
        assert "expected integer" in result.content[0].text

    @pytest.mark.asyncio
    async def test_minimum(self):
        result = await TypedModule().invoke("filter", {"limit": 0})
        assert result.is_error
        assert result.content[0].text == "Invalid argument 'limit': must be >= 1"

    @pytest.mark.asyncio
    async def test_enum(self):
        result = await TypedModule().invoke("filter", {"status": "lost"})
        assert result.is_error
        assert "must be one of ok, failed" in result.content[0].text

    @pytest.mark.asyncio
    async def test_valid_values_pass(self):
        result = await TypedModule().invoke("filter", {"active": False, "limit": 1, "status": "ok"})
        assert result.content[0].text == "False:1:ok"

    def test_check(self):
        assert ToolParam("n", type="number").check(1.5) is None
        assert ToolParam("n", type="number").check(2) is None
        assert ToolParam("items", type="array").check({}) == "expected array, got dict"
