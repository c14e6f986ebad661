"""
MCP服务器组装测试（不发起网络请求）
"""
from unittest.mock import patch

import pytest

from src.middleware import global_error_aggregator
from src.server.app import MCPServer
from src.utils.config import ConfigManager
from src.utils.exceptions import DataSourceError

ALL_TOOLS = [
    "defi_get_chains",
    "defi_get_balances",
    "defi_token_info",
    "defi_token_price",
    "defi_swap_quote",
    "defi_swap_build_tx",
    "defi_lending_markets",
    "defi_lending_position",
    "defi_lending_supply_tx",
    "defi_find_best_yield",
    "defi_wallet_scan",
    "defi_polymarket_markets",
    "defi_polymarket_positions",
]


class TestMCPServer:
    """MCPServer测试"""

    @pytest.mark.asyncio
    async def test_initialize_registers_all_tools(self, tmp_path):
        server = MCPServer(ConfigManager(tmp_path))
        await server.initialize()

        try:
            assert [t.name for t in server.router.list_tools()] == ALL_TOOLS
            chain_ids = {c.id for c in server.registry.get_supported_chains()}
            assert {"ethereum", "base", "solana-mainnet", "osmosis-1", "cosmoshub-4"} <= chain_ids
            assert len(server.registry.scanners) == 5
            assert len(server.registry.yield_sources) == 2
        finally:
            await server.cleanup()

    @pytest.mark.asyncio
    async def test_tool_switches(self, tmp_path):
        (tmp_path / "tools.yaml").write_text(
            "defi_swap_build_tx:\n  enabled: false\n", encoding="utf-8"
        )
        server = MCPServer(ConfigManager(tmp_path))
        await server.initialize()

        try:
            names = [t.name for t in server.router.list_tools()]
            assert "defi_swap_build_tx" not in names
            assert "defi_swap_quote" in names

            result = await server.router.call("defi_swap_build_tx", {})
            assert result.text == "Error: Unknown tool: defi_swap_build_tx"
        finally:
            await server.cleanup()

    @pytest.mark.asyncio
    async def test_input_schemas_are_objects(self, tmp_path):
        server = MCPServer(ConfigManager(tmp_path))
        await server.initialize()

        try:
            for tool in server.router.list_tools():
                schema = tool.input_schema
                assert schema["type"] == "object"
                assert tool.description
        finally:
            await server.cleanup()

    @pytest.mark.asyncio
    async def test_cleanup_reports_recent_provider_errors(self, tmp_path):
        global_error_aggregator.record_error("jupiter", DataSourceError("jupiter", "HTTP 502"))
        server = MCPServer(ConfigManager(tmp_path))

        with patch("src.server.app.logger") as logger:
            await server.cleanup()

        logger.warning.assert_called_once()
        event, fields = logger.warning.call_args.args[0], logger.warning.call_args.kwargs
        assert event == "data_source_error_summary"
        assert fields["errors_by_source"] == {"jupiter": 1}

    @pytest.mark.asyncio
    async def test_cleanup_without_errors_is_quiet(self, tmp_path):
        server = MCPServer(ConfigManager(tmp_path))
        with patch("src.server.app.logger") as logger:
            await server.cleanup()
        logger.warning.assert_not_called()
