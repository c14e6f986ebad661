"""
收益来源契约与扇出工具
"""
import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Iterable, List, Optional, Sequence, TypeVar

import structlog

from src.core.models import YieldOpportunity

if TYPE_CHECKING:
    from src.core.registry import PluginContext

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def gather_isolated(
    coros: Iterable[Awaitable[T]],
    labels: Optional[Sequence[Any]] = None,
    event: str = "branch_failed",
) -> List[T]:
    """
    并发执行所有分支，单个分支失败不影响其他分支

    Args:
        coros: 待执行的协程
        labels: 与协程一一对应的标签，用于日志
        event: 分支失败时的日志事件名

    Returns:
        成功分支的结果，保持输入顺序
    """
    coros = list(coros)
    results = await asyncio.gather(*coros, return_exceptions=True)

    succeeded: List[T] = []
    for index, result in enumerate(results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            label = labels[index] if labels is not None else index
            logger.warning(
                event,
                branch=label,
                error_type=type(result).__name__,
                error=str(result),
            )
            continue
        succeeded.append(result)
    return succeeded


class YieldSource(ABC):
    """
    协议收益来源

    实现该接口并在启动时注册到Registry，defi_find_best_yield会自动发现它。
    """

    protocol_name: str = ""
    supported_chains: List[str] = []

    @abstractmethod
    async def get_yield_opportunities(
        self, asset_symbol: str, context: "PluginContext"
    ) -> List[YieldOpportunity]:
        """获取指定资产在各支持链上的收益机会"""
