"""
注册表 - 组合链适配器、插件、收益来源与扫描器

生命周期只有一个阶段：启动时构建并初始化，之后只读。
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

import structlog
from pydantic import BaseModel

from src.core.models import ChainInfo, Ecosystem, GetChainsInput, ToolResult
from src.core.plugin import DefiPlugin, ToolDefinition
from src.core.scanner_types import ProtocolScanner
from src.core.yield_types import YieldSource
from src.utils.config import AppConfig
from src.utils.exceptions import (
    ConfigurationError,
    DuplicateToolError,
    MCPServerError,
    PluginInitializationError,
    UnsupportedChainError,
)

if TYPE_CHECKING:
    from src.chains.base import ChainAdapter

logger = structlog.get_logger(__name__)

BUILTIN_PLUGIN = "registry"


@dataclass(frozen=True)
class PluginContext:
    """插件共享上下文（只读）"""

    config: AppConfig
    get_chain_adapter_for_chain: Callable[[str], "ChainAdapter"]
    get_chain_adapter: Callable[[Ecosystem], "ChainAdapter"]
    get_all_chains: Callable[[], List[ChainInfo]]
    get_yield_sources: Callable[[], List[YieldSource]]
    get_scanners: Callable[[], List[ProtocolScanner]]


class Registry:
    """
    注册表

    Example:
        registry = await Registry.create(app_config, adapters, plugins)
        adapter = registry.get_chain_adapter_for_chain("base")
    """

    def __init__(
        self,
        config: AppConfig,
        chain_adapters: Sequence["ChainAdapter"],
        plugins: Sequence[DefiPlugin],
        yield_sources: Sequence[YieldSource] = (),
        scanners: Sequence[ProtocolScanner] = (),
    ):
        self.config = config
        self._adapters: Dict[Ecosystem, "ChainAdapter"] = {}
        self._chain_index: Dict[str, "ChainAdapter"] = {}
        self._chains: List[ChainInfo] = []
        self._plugins: List[DefiPlugin] = list(plugins)
        self._yield_sources: List[YieldSource] = list(yield_sources)
        self._scanners: List[ProtocolScanner] = list(scanners)
        self._tools: Optional[Dict[str, ToolDefinition]] = None

        self._build_chain_index(chain_adapters)

        self._context = PluginContext(
            config=config,
            get_chain_adapter_for_chain=self.get_chain_adapter_for_chain,
            get_chain_adapter=self.get_chain_adapter,
            get_all_chains=self.get_supported_chains,
            get_yield_sources=lambda: list(self._yield_sources),
            get_scanners=lambda: list(self._scanners),
        )

    @classmethod
    async def create(
        cls,
        config: AppConfig,
        chain_adapters: Sequence["ChainAdapter"],
        plugins: Sequence[DefiPlugin],
        yield_sources: Sequence[YieldSource] = (),
        scanners: Sequence[ProtocolScanner] = (),
    ) -> "Registry":
        registry = cls(config, chain_adapters, plugins, yield_sources, scanners)
        await registry.initialize()
        return registry

    # ==================== 链适配器 ====================

    def _build_chain_index(self, chain_adapters: Sequence["ChainAdapter"]) -> None:
        for adapter in chain_adapters:
            if adapter.ecosystem in self._adapters:
                raise ConfigurationError(
                    f"Chain adapter for ecosystem {adapter.ecosystem.value} registered twice"
                )
            self._adapters[adapter.ecosystem] = adapter

            for chain in adapter.get_supported_chains():
                if chain.ecosystem != adapter.ecosystem:
                    raise ConfigurationError(
                        f'Chain "{chain.id}" is {chain.ecosystem.value} but served by '
                        f"the {adapter.ecosystem.value} adapter"
                    )
                if chain.id in self._chain_index:
                    raise ConfigurationError(f'Chain id "{chain.id}" registered twice')
                self._chain_index[chain.id] = adapter
                self._chains.append(chain)

        logger.info(
            "chain_index_built",
            ecosystems=[e.value for e in self._adapters],
            chains=len(self._chains),
        )

    def get_chain_adapter_for_chain(self, chain_id: str) -> "ChainAdapter":
        adapter = self._chain_index.get(chain_id)
        if adapter is None:
            raise UnsupportedChainError(chain_id, list(self._chain_index))
        return adapter

    def get_chain_adapter(self, ecosystem: Ecosystem) -> "ChainAdapter":
        adapter = self._adapters.get(Ecosystem(ecosystem))
        if adapter is None:
            raise UnsupportedChainError(str(ecosystem))
        return adapter

    def get_supported_chains(self) -> List[ChainInfo]:
        return list(self._chains)

    # ==================== 插件 ====================

    async def initialize(self) -> None:
        """
        按注册顺序初始化所有插件并冻结工具表

        Raises:
            ConfigurationError: 插件名重复
            DuplicateToolError: 工具名冲突
            PluginInitializationError: 插件初始化失败
        """
        if self._tools is not None:
            raise MCPServerError("Registry already initialized")

        seen_plugins = set()
        for plugin in self._plugins:
            if plugin.name in seen_plugins or plugin.name == BUILTIN_PLUGIN:
                raise ConfigurationError(f'Plugin "{plugin.name}" is already registered')
            seen_plugins.add(plugin.name)

        tools: Dict[str, ToolDefinition] = {}
        owners: Dict[str, str] = {}
        self._add_tool(tools, owners, self._get_chains_tool(), BUILTIN_PLUGIN)

        for plugin in self._plugins:
            try:
                await plugin.initialize(self._context)
            except ConfigurationError:
                raise
            except Exception as e:
                raise PluginInitializationError(plugin.name, e) from e

            for tool in plugin.get_tools():
                self._add_tool(tools, owners, tool, plugin.name)

            logger.info("plugin_initialized", plugin=plugin.name, version=plugin.version)

        self._tools = tools
        logger.info("registry_initialized", plugins=len(self._plugins), tools=len(tools))

    @staticmethod
    def _add_tool(
        tools: Dict[str, ToolDefinition],
        owners: Dict[str, str],
        tool: ToolDefinition,
        plugin_name: str,
    ) -> None:
        if tool.name in tools:
            raise DuplicateToolError(tool.name, plugin_name, owners[tool.name])
        tools[tool.name] = tool
        owners[tool.name] = plugin_name

    def get_all_tools(self) -> List[ToolDefinition]:
        if self._tools is None:
            raise MCPServerError("Registry not initialized")
        return list(self._tools.values())

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        if self._tools is None:
            raise MCPServerError("Registry not initialized")
        return self._tools.get(name)

    def get_plugin_context(self) -> PluginContext:
        return self._context

    @property
    def yield_sources(self) -> List[YieldSource]:
        return list(self._yield_sources)

    @property
    def scanners(self) -> List[ProtocolScanner]:
        return list(self._scanners)

    async def shutdown(self) -> None:
        """关闭插件与链适配器"""
        for plugin in self._plugins:
            try:
                await plugin.shutdown()
            except Exception as e:
                logger.error("plugin_shutdown_failed", plugin=plugin.name, error=str(e))
        for adapter in self._adapters.values():
            try:
                await adapter.close()
            except Exception as e:
                logger.error(
                    "adapter_close_failed", ecosystem=adapter.ecosystem.value, error=str(e)
                )

    # ==================== 内置工具 ====================

    def _get_chains_tool(self) -> ToolDefinition:
        async def handler(params: BaseModel, context: PluginContext) -> ToolResult:
            chains = context.get_all_chains()
            return ToolResult.json(
                {"chains": [c.summary() for c in chains], "total": len(chains)}
            )

        return ToolDefinition(
            name="defi_get_chains",
            description=(
                "List all supported blockchain networks with their chain ids, "
                "ecosystems and native tokens."
            ),
            input_model=GetChainsInput,
            handler=handler,
        )
