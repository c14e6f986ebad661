"""
错误处理中间件

- 指数退避重试（仅针对超时与限流）
- 按提供者的断路器
- 错误聚合，供诊断与健康检查使用
"""
import asyncio
import time
from collections import deque
from enum import Enum
from functools import wraps
from typing import Any, Callable, Deque, Dict, Optional, Tuple, Type

import structlog

from src.utils.exceptions import (
    DataSourceAuthError,
    DataSourceError,
    DataSourceRateLimitError,
    DataSourceTimeoutError,
)

logger = structlog.get_logger(__name__)


class CircuitState(Enum):
    """断路器状态"""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    断路器

    某个提供者连续失败达到阈值后，在恢复窗口内直接拒绝请求，
    避免一个失效的提供者拖慢整个多链扇出。

    ignored_exceptions 表示提供者已正常应答、只是拒绝了本次请求（如4xx），
    不计入失败，并视为提供者可用。
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        expected_exception: Type[Exception] = Exception,
        ignored_exceptions: Tuple[Type[Exception], ...] = (),
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.ignored_exceptions = ignored_exceptions

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        """获取当前状态（考虑自动恢复）"""
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if time.monotonic() - self._opened_at >= self.recovery_timeout:
                logger.info("circuit_breaker_half_open", name=self.name)
                self._state = CircuitState.HALF_OPEN
        return self._state

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        通过断路器调用异步函数

        Raises:
            DataSourceError: 断路器处于OPEN状态
        """
        if self.state == CircuitState.OPEN:
            raise DataSourceError(
                self.name,
                f"Circuit breaker is OPEN after {self._failure_count} consecutive failures",
            )

        try:
            result = await func(*args, **kwargs)
        except self.ignored_exceptions:
            self._on_success()
            raise
        except self.expected_exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _on_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            logger.info("circuit_breaker_closed", name=self.name)
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None

    def _on_failure(self) -> None:
        self._failure_count += 1
        if self._failure_count >= self.failure_threshold or self._state == CircuitState.HALF_OPEN:
            if self._state != CircuitState.OPEN:
                logger.error(
                    "circuit_breaker_opened",
                    name=self.name,
                    failure_count=self._failure_count,
                )
            self._state = CircuitState.OPEN
            self._opened_at = time.monotonic()

    def reset(self) -> None:
        """手动重置断路器"""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None


def with_retry(
    max_attempts: int = 3,
    backoff_base: float = 2.0,
    max_backoff: float = 10.0,
    retry_exceptions: tuple = (
        DataSourceTimeoutError,
        DataSourceRateLimitError,
    ),
    no_retry_exceptions: tuple = (DataSourceAuthError,),
):
    """
    异步重试装饰器（指数退避）

    Args:
        max_attempts: 最大尝试次数
        backoff_base: 退避基数（第n次重试前等待 backoff_base ** (n-1) 秒）
        max_backoff: 单次最大退避时间（秒）
        retry_exceptions: 需要重试的异常类型
        no_retry_exceptions: 不重试、直接抛出的异常类型

    Example:
        @with_retry(max_attempts=3)
        async def fetch_quote():
            ...
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except no_retry_exceptions:
                    raise
                except retry_exceptions as e:
                    if attempt >= max_attempts:
                        logger.error(
                            "retry_exhausted",
                            function=func.__name__,
                            attempts=max_attempts,
                            exception=type(e).__name__,
                        )
                        raise
                    backoff = min(backoff_base ** (attempt - 1), max_backoff)
                    logger.warning(
                        "retry_attempt",
                        function=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        exception=type(e).__name__,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)

        return wrapper

    return decorator


class ErrorAggregator:
    """
    错误聚合器

    记录最近时间窗口内各来源（提供者或工具）的失败，用于诊断。
    """

    def __init__(self, window_seconds: int = 300, max_records: int = 1000):
        self.window_seconds = window_seconds
        self._errors: Deque[Dict[str, Any]] = deque(maxlen=max_records)

    def record_error(
        self,
        source: str,
        exception: BaseException,
        endpoint: Optional[str] = None,
    ) -> None:
        self._errors.append(
            {
                "timestamp": time.monotonic(),
                "source": source,
                "exception_type": type(exception).__name__,
                "message": str(exception),
                "endpoint": endpoint,
            }
        )

    def _recent(self):
        cutoff = time.monotonic() - self.window_seconds
        return [e for e in self._errors if e["timestamp"] > cutoff]

    def get_error_summary(self) -> Dict[str, Any]:
        """获取错误摘要"""
        by_source: Dict[str, int] = {}
        by_type: Dict[str, int] = {}
        recent = self._recent()
        for error in recent:
            by_source[error["source"]] = by_source.get(error["source"], 0) + 1
            by_type[error["exception_type"]] = by_type.get(error["exception_type"], 0) + 1

        return {
            "total_errors": len(recent),
            "errors_by_source": by_source,
            "errors_by_type": by_type,
            "window_seconds": self.window_seconds,
        }

    def clear(self) -> None:
        self._errors.clear()


# 全局错误聚合器实例
global_error_aggregator = ErrorAggregator(window_seconds=300)
