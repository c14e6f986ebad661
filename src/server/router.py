"""
工具路由

把一次工具调用 (name, arguments) 分发到注册表中的处理函数，
并把结果或异常统一转换为 ToolResult 信封。
"""
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from src.core.models import ToolResult
from src.core.plugin import ToolDefinition
from src.core.registry import Registry
from src.utils.exceptions import InvalidInputError, MCPServerError
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "input"
        problems.append(f"{location}: {item.get('msg')}")
    return "; ".join(problems)


class ToolRouter:
    """
    工具路由器

    任何单次调用的失败都只影响该调用本身，不会以异常形式离开 call()。
    """

    def __init__(
        self,
        registry: Registry,
        is_tool_enabled: Optional[Callable[[str], bool]] = None,
    ):
        self.registry = registry
        self._is_enabled = is_tool_enabled or (lambda name: True)

    def list_tools(self) -> List[ToolDefinition]:
        """对外公布的工具（已按开关过滤）"""
        return [t for t in self.registry.get_all_tools() if self._is_enabled(t.name)]

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        if not self._is_enabled(name):
            return None
        return self.registry.get_tool(name)

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        执行工具调用

        Args:
            name: 工具名
            arguments: 原始输入参数

        Returns:
            ToolResult，失败时 is_error=True 且文本为一行可读的错误信息
        """
        tool = self.get_tool(name)
        if tool is None:
            return ToolResult.error(f"Error: Unknown tool: {name}")

        try:
            params = tool.input_model.model_validate(arguments or {})
        except ValidationError as e:
            error = InvalidInputError(f"Invalid input for {name}: {_format_validation_error(e)}")
            logger.info("tool_input_invalid", tool=name, error=error.message)
            return ToolResult.error(f"Error: {error.message}")

        start = time.perf_counter()
        try:
            result = await tool.handler(params, self.registry.get_plugin_context())
        except MCPServerError as e:
            logger.info("tool_call_rejected", tool=name, error_type=type(e).__name__, error=str(e))
            return ToolResult.error(f"Error: {e}")
        except ValidationError as e:
            # 处理函数内部构造模型失败
            logger.error("tool_call_failed", tool=name, error_type="ValidationError", error=str(e))
            return ToolResult.error(f"Error: Invalid {e.title} data: {_format_validation_error(e)}")
        except Exception as e:
            logger.error("tool_call_failed", tool=name, error_type=type(e).__name__, error=str(e))
            return ToolResult.error(f"Error: {type(e).__name__}: {e}")

        logger.debug(
            "tool_call_completed",
            tool=name,
            is_error=result.is_error,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return result
