"""
数据源抽象基类

所有外部REST/JSON-RPC访问（聚合器、CoinGecko、Solana RPC、Cosmos LCD等）共用：
- 懒加载的httpx异步客户端（带超时）
- 断路器与指数退避重试
- HTTP状态码到DataSourceError族的统一映射
"""
import time
from typing import Any, Dict, Optional

import httpx

from src.middleware import CircuitBreaker, global_error_aggregator, with_retry
from src.utils.exceptions import (
    DataSourceAuthError,
    DataSourceClientError,
    DataSourceError,
    DataSourceNotFoundError,
    DataSourceRateLimitError,
    DataSourceTimeoutError,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)


class BaseDataSource:
    """数据源基类"""

    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        enable_circuit_breaker: bool = True,
        circuit_failure_threshold: int = 5,
        circuit_recovery_timeout: float = 60.0,
    ):
        """
        初始化数据源

        Args:
            name: 数据源名称（如 jupiter, coingecko）
            base_url: API基础URL
            timeout: 请求超时时间（秒）
            api_key: API密钥（可选）
            transport: 自定义httpx传输层（测试时注入MockTransport）
            enable_circuit_breaker: 是否启用断路器
            circuit_failure_threshold: 断路器失败阈值
            circuit_recovery_timeout: 断路器恢复超时（秒）
        """
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_key = api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.circuit_breaker: Optional[CircuitBreaker] = None
        if enable_circuit_breaker:
            self.circuit_breaker = CircuitBreaker(
                name=name,
                failure_threshold=circuit_failure_threshold,
                recovery_timeout=circuit_recovery_timeout,
                expected_exception=DataSourceError,
                ignored_exceptions=(DataSourceClientError,),
            )

    @property
    def client(self) -> httpx.AsyncClient:
        """获取HTTP客户端（懒加载）"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._get_headers(),
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """关闭HTTP客户端"""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_headers(self) -> Dict[str, str]:
        """获取请求头（子类可覆盖）"""
        return {"Accept": "application/json"}

    async def fetch(
        self,
        endpoint: str,
        params: Optional[Dict] = None,
        method: str = "GET",
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        获取数据的完整流程（断路器 + 重试 + 错误记录）

        Args:
            endpoint: API端点
            params: 查询参数
            method: HTTP方法
            json_body: JSON请求体
            headers: 额外请求头

        Returns:
            解析后的JSON响应

        Raises:
            DataSourceError: 数据源错误
        """
        start_time = time.monotonic()

        try:
            if self.circuit_breaker:
                data = await self.circuit_breaker.call(
                    self._fetch_with_retry, method, endpoint, params, json_body, headers
                )
            else:
                data = await self._fetch_with_retry(method, endpoint, params, json_body, headers)
        except DataSourceClientError as e:
            logger.warning(
                "data_source_request_rejected",
                provider=self.name,
                endpoint=endpoint,
                error=str(e),
            )
            raise
        except DataSourceError as e:
            global_error_aggregator.record_error(source=self.name, exception=e, endpoint=endpoint)
            logger.error(
                "data_source_request_failed",
                provider=self.name,
                endpoint=endpoint,
                error=str(e),
                response_time_ms=round((time.monotonic() - start_time) * 1000, 1),
            )
            raise

        logger.debug(
            "data_source_request_ok",
            provider=self.name,
            endpoint=endpoint,
            response_time_ms=round((time.monotonic() - start_time) * 1000, 1),
        )
        return data

    @with_retry(max_attempts=3, backoff_base=2.0, max_backoff=10.0)
    async def _fetch_with_retry(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return await self._make_request(method, endpoint, params, json_body, headers)

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        发起HTTP请求（通用方法）

        Raises:
            DataSourceError: 各种数据源错误
        """
        try:
            response = await self.client.request(
                method=method,
                url=endpoint,
                params=params,
                headers=headers,
                json=json_body,
            )
        except httpx.TimeoutException:
            raise DataSourceTimeoutError(self.name, f"Request timeout after {self.timeout}s")
        except httpx.HTTPError as e:
            raise DataSourceError(self.name, f"HTTP error: {e}")

        if response.status_code == 401 or response.status_code == 403:
            raise DataSourceAuthError(self.name, "Authentication failed. Check API key.")
        elif response.status_code == 404:
            raise DataSourceNotFoundError(self.name, f"Resource not found: {endpoint}")
        elif response.status_code == 429:
            raise DataSourceRateLimitError(self.name, "Rate limit exceeded")
        elif response.status_code >= 500:
            raise DataSourceError(
                self.name, f"HTTP {response.status_code}: {response.text[:200]}"
            )
        elif response.status_code >= 400:
            raise DataSourceClientError(
                self.name, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError:
            raise DataSourceError(self.name, f"Invalid JSON response from {endpoint}")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name} base_url={self.base_url}>"
