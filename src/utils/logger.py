"""
结构化日志配置
"""
import logging
import sys
from typing import Any

import structlog


def setup_logging(level: str = "INFO") -> None:
    """配置结构化日志

    MCP stdio 传输占用 stdout，日志统一写到 stderr。
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """获取logger实例"""
    return structlog.get_logger(name)


# 默认logger
logger = structlog.get_logger(__name__)
