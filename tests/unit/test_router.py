"""
ToolRouter 单元测试
"""
from typing import List

import pytest
from pydantic import BaseModel, Field, ValidationError

from src.core.models import ToolResult
from src.core.plugin import BasePlugin, ToolDefinition
from src.server.router import ToolRouter
from src.utils.exceptions import AggregatorError, DataSourceTimeoutError, TokenNotFoundError


class CountInput(BaseModel):
    count: int = Field(..., ge=1)


def model_error() -> ValidationError:
    try:
        CountInput.model_validate({"count": "many"})
    except ValidationError as e:
        return e


class ScriptedPlugin(BasePlugin):
    """按工具名返回预设结果或抛出预设异常"""

    name = "scripted"

    def __init__(self, behaviours):
        super().__init__()
        self.behaviours = behaviours

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name=name,
                description=name,
                input_model=CountInput,
                handler=self._handler_for(name),
            )
            for name in self.behaviours
        ]

    def _handler_for(self, name):
        async def handler(params: CountInput, context) -> ToolResult:
            behaviour = self.behaviours[name]
            if isinstance(behaviour, Exception):
                raise behaviour
            return self.json_result({"count": params.count, "value": behaviour})

        return handler


class TestToolRouter:
    """ToolRouter测试"""

    @pytest.fixture
    def behaviours(self):
        return {
            "ok_tool": "fine",
            "missing_token": TokenNotFoundError("FOO", "base"),
            "provider_down": AggregatorError("jupiter", "HTTP 502: bad gateway"),
            "slow_source": DataSourceTimeoutError("coingecko", "Request timeout after 10.0s"),
            "buggy": KeyError("price"),
            "bad_output": model_error(),
        }

    @pytest.fixture
    def make_router(self, registry_factory, evm_adapter, behaviours):
        async def factory():
            registry = await registry_factory([evm_adapter], [ScriptedPlugin(behaviours)])
            return ToolRouter(registry)

        return factory

    @pytest.mark.asyncio
    async def test_success(self, make_router):
        router = await make_router()
        result = await router.call("ok_tool", {"count": 2})
        assert result.is_error is False
        assert '"value": "fine"' in result.text

    @pytest.mark.asyncio
    async def test_unknown_tool(self, make_router):
        router = await make_router()
        result = await router.call("nope", {})
        assert result.is_error is True
        assert result.text == "Error: Unknown tool: nope"

    @pytest.mark.asyncio
    async def test_validation_error_is_single_line(self, make_router):
        router = await make_router()
        result = await router.call("ok_tool", {"count": 0})
        assert result.is_error is True
        assert result.text.startswith("Error: Invalid input for ok_tool: count:")
        assert "\n" not in result.text

    @pytest.mark.asyncio
    async def test_missing_arguments(self, make_router):
        router = await make_router()
        result = await router.call("ok_tool", None)
        assert result.is_error is True
        assert "count" in result.text

    @pytest.mark.asyncio
    async def test_domain_errors(self, make_router):
        router = await make_router()
        result = await router.call("missing_token", {"count": 1})
        assert result.is_error is True
        assert result.text == 'Error: Token "FOO" not found on chain "base"'

        result = await router.call("provider_down", {"count": 1})
        assert result.text == "Error: jupiter: HTTP 502: bad gateway"

        result = await router.call("slow_source", {"count": 1})
        assert result.text == "Error: [coingecko] Request timeout after 10.0s"

    @pytest.mark.asyncio
    async def test_unexpected_exception_contained(self, make_router):
        router = await make_router()
        result = await router.call("buggy", {"count": 1})
        assert result.is_error is True
        assert result.text == "Error: KeyError: 'price'"
        assert "Traceback" not in result.text

    @pytest.mark.asyncio
    async def test_handler_validation_error_not_blamed_on_input(self, make_router):
        router = await make_router()
        result = await router.call("bad_output", {"count": 1})
        assert result.is_error is True
        assert result.text.startswith("Error: Invalid CountInput data: count:")
        assert "Invalid input for" not in result.text
        assert "\n" not in result.text

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_next_call(self, make_router):
        router = await make_router()
        await router.call("buggy", {"count": 1})
        result = await router.call("ok_tool", {"count": 1})
        assert result.is_error is False

    @pytest.mark.asyncio
    async def test_builtin_tool_listed(self, make_router):
        router = await make_router()
        names = [t.name for t in router.list_tools()]
        assert names[0] == "defi_get_chains"
        assert "ok_tool" in names


class TestDisabledTools:
    @pytest.mark.asyncio
    async def test_disabled_tool_hidden_and_rejected(self, registry_factory, evm_adapter):
        registry = await registry_factory(
            [evm_adapter], [ScriptedPlugin({"visible": 1, "hidden": 2})]
        )
        router = ToolRouter(registry, is_tool_enabled=lambda name: name != "hidden")

        assert "hidden" not in [t.name for t in router.list_tools()]
        result = await router.call("hidden", {"count": 1})
        assert result.is_error is True
