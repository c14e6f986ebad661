"""
MCP服务器主程序
"""
import asyncio
import signal
import sys
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from src.chains import build_chain_adapters
from src.core.registry import Registry
from src.middleware import global_error_aggregator
from src.plugins import build_components
from src.server.router import ToolRouter
from src.utils.config import ConfigManager, config
from src.utils.exceptions import MCPServerError
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class ToolCallFailed(MCPServerError):
    """工具返回 isError 时抛出，MCP SDK 据此把结果标记为错误"""


class MCPServer:
    """MCP服务器"""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        self.config = config_manager or config
        self.server = Server(self.config.settings.server_name)
        self.registry: Optional[Registry] = None
        self.router: Optional[ToolRouter] = None

    async def initialize(self) -> None:
        """组装链适配器、插件与注册表"""
        logger.info("Initializing MCP server...")

        app_config = self.config.build_app_config()
        adapters = build_chain_adapters(app_config)
        components = build_components(
            app_config, coingecko_api_type=self.config.settings.coingecko_api_type
        )

        self.registry = await Registry.create(
            app_config,
            adapters,
            components.plugins,
            yield_sources=components.yield_sources,
            scanners=components.scanners,
        )
        self.router = ToolRouter(self.registry, is_tool_enabled=self.config.is_tool_enabled)
        self._register_handlers()

        logger.info(
            "MCP server initialized successfully",
            chains=len(self.registry.get_supported_chains()),
            tools=len(self.router.list_tools()),
        )

    def _register_handlers(self) -> None:
        """注册MCP处理函数"""

        @self.server.list_tools()
        async def list_tools() -> List[types.Tool]:
            return [
                types.Tool(
                    name=tool.name,
                    description=tool.description,
                    inputSchema=tool.input_schema,
                )
                for tool in self.router.list_tools()
            ]

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
            """处理工具调用"""
            result = await self.router.call(name, arguments)
            if result.is_error:
                raise ToolCallFailed(result.text)
            return [types.TextContent(type="text", text=c.text) for c in result.content]

    async def cleanup(self) -> None:
        """清理资源"""
        logger.info("Cleaning up resources...")
        if self.registry is not None:
            await self.registry.shutdown()

        summary = global_error_aggregator.get_error_summary()
        if summary["total_errors"]:
            logger.warning("data_source_error_summary", **summary)
        logger.info("Cleanup completed")

    async def run(self) -> None:
        """运行服务器"""
        try:
            await self.initialize()

            async with stdio_server() as (read_stream, write_stream):
                logger.info("MCP server running on stdio")
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )

        except Exception as e:
            logger.error("Server error", error=str(e))
            raise

        finally:
            await self.cleanup()


def handle_signal(signum, frame):
    """处理退出信号"""
    logger.info("Received signal, shutting down...", signal=signum)
    sys.exit(0)


def main():
    """主入口"""
    log_level = config.settings.log_level
    setup_logging(log_level)

    logger.info(
        "Starting DeFi MCP Server",
        environment=config.settings.environment,
        log_level=log_level,
    )

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    server = MCPServer()

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
    except Exception as e:
        logger.error("Server failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
