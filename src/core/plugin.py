"""
插件契约

插件只通过PluginContext访问链适配器与配置，彼此之间互不依赖。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from src.core.models import ChainInfo, ToolResult
from src.utils.exceptions import InvalidAddressError, MCPServerError

if TYPE_CHECKING:
    from src.core.registry import PluginContext

ToolHandler = Callable[[BaseModel, "PluginContext"], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolDefinition:
    """
    工具定义

    Attributes:
        name: 全局唯一的工具名，如 defi_get_balances
        description: 面向模型的工具说明
        input_model: 输入参数的Pydantic模型，其JSON Schema即对外公布的inputSchema
        handler: 异步处理函数 (params, context) -> ToolResult
    """

    name: str
    description: str
    input_model: Type[BaseModel]
    handler: ToolHandler

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.input_model.model_json_schema()


class DefiPlugin(ABC):
    """插件基类"""

    name: str = ""
    description: str = ""
    version: str = "1.0.0"

    @abstractmethod
    async def initialize(self, context: "PluginContext") -> None:
        """注册表在组合阶段调用一次"""

    @abstractmethod
    def get_tools(self) -> List[ToolDefinition]:
        """返回插件提供的工具（初始化后不再变化）"""

    async def shutdown(self) -> None:
        """释放插件持有的资源"""
        return None


class BasePlugin(DefiPlugin):
    """
    带辅助方法的插件基类

    initialize时保存上下文，供处理函数使用。
    """

    def __init__(self) -> None:
        self._context: Optional["PluginContext"] = None

    async def initialize(self, context: "PluginContext") -> None:
        self._context = context

    @property
    def context(self) -> "PluginContext":
        if self._context is None:
            raise MCPServerError(f'Plugin "{self.name}" used before initialization')
        return self._context

    @staticmethod
    def json_result(data: Any) -> ToolResult:
        return ToolResult.json(data)

    def get_chains_for_address(
        self, address: str, context: Optional["PluginContext"] = None
    ) -> List[ChainInfo]:
        """
        获取地址有效的所有链

        Args:
            address: 钱包地址
            context: 插件上下文，默认使用初始化时保存的上下文

        Returns:
            按注册顺序排列的链列表
        """
        ctx = context or self.context
        chains = []
        for chain in ctx.get_all_chains():
            adapter = ctx.get_chain_adapter_for_chain(chain.id)
            if adapter.is_valid_address(chain.id, address):
                chains.append(chain)
        return chains

    @staticmethod
    def require_valid_address(adapter: Any, chain_id: str, address: str) -> None:
        """地址无效时抛出InvalidAddressError（不产生网络请求）"""
        if not adapter.is_valid_address(chain_id, address):
            raise InvalidAddressError(address, chain_id)
