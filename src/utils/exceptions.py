"""
自定义异常类
"""
from typing import Any, Dict, Optional


class MCPServerError(Exception):
    """MCP服务器基础异常"""

    pass


class ConfigurationError(MCPServerError):
    """配置错误"""

    pass


class DuplicateToolError(ConfigurationError):
    """工具名称冲突（组合阶段检测）"""

    def __init__(self, tool_name: str, plugin: str, existing_plugin: str):
        self.tool_name = tool_name
        self.plugin = plugin
        self.existing_plugin = existing_plugin
        super().__init__(
            f'Tool "{tool_name}" from plugin "{plugin}" is already registered '
            f'by plugin "{existing_plugin}"'
        )


class PluginInitializationError(ConfigurationError):
    """插件初始化失败"""

    def __init__(self, plugin: str, cause: Exception):
        self.plugin = plugin
        self.cause = cause
        super().__init__(f'Plugin "{plugin}" failed to initialize: {cause}')


# ==================== 工具调用领域错误 ====================


class DefiToolError(MCPServerError):
    """工具调用领域错误基类"""

    code = "DEFI_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnsupportedChainError(DefiToolError):
    """链不受支持"""

    code = "CHAIN_NOT_SUPPORTED"

    def __init__(self, chain_id: str, supported: Optional[list] = None):
        self.chain_id = chain_id
        message = f'Chain "{chain_id}" is not supported'
        if supported:
            message += f". Supported chains: {', '.join(supported)}"
        super().__init__(message, {"chain_id": chain_id})


class TokenNotFoundError(DefiToolError):
    """代币无法解析（确定不存在，区别于网络失败）"""

    code = "TOKEN_NOT_FOUND"

    def __init__(self, token: str, chain_id: str):
        self.token = token
        self.chain_id = chain_id
        super().__init__(
            f'Token "{token}" not found on chain "{chain_id}"',
            {"token": token, "chain_id": chain_id},
        )


class InvalidAddressError(DefiToolError):
    """地址对该链无效"""

    code = "INVALID_ADDRESS"

    def __init__(self, address: str, chain_id: str):
        self.address = address
        self.chain_id = chain_id
        super().__init__(
            f'Invalid address "{address}" for chain "{chain_id}"',
            {"address": address, "chain_id": chain_id},
        )


class InvalidInputError(DefiToolError):
    """输入参数校验失败"""

    code = "INVALID_INPUT"


class AggregatorError(DefiToolError):
    """聚合器/外部提供者返回错误"""

    code = "AGGREGATOR_ERROR"

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}", {"provider": provider})


# ==================== 数据源错误 ====================


class DataSourceError(MCPServerError):
    """数据源错误基类"""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class DataSourceTimeoutError(DataSourceError):
    """数据源超时"""

    pass


class DataSourceRateLimitError(DataSourceError):
    """数据源限流"""

    pass


class DataSourceClientError(DataSourceError):
    """请求被数据源拒绝（4xx），原因在调用方而非数据源"""

    pass


class DataSourceAuthError(DataSourceClientError):
    """数据源认证错误"""

    pass


class DataSourceNotFoundError(DataSourceClientError):
    """数据源未找到资源"""

    pass
