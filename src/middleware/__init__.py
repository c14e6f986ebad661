"""中间件模块"""
from .error_handler import (
    CircuitBreaker,
    CircuitState,
    ErrorAggregator,
    global_error_aggregator,
    with_retry,
)

__all__ = [
    "with_retry",
    "CircuitBreaker",
    "CircuitState",
    "ErrorAggregator",
    "global_error_aggregator",
]
