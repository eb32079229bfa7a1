"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出

参数优先于环境变量 TASKLEDGER_LOG_FORMAT / TASKLEDGER_LOG_LEVEL，
嵌入调用方与 CLI 都可以直接传入。
"""

import logging
import os
from typing import TextIO

import structlog

LOG_FORMATS = ("dev", "json")

DEFAULT_LOG_FORMAT = "dev"
DEFAULT_LOG_LEVEL = "INFO"

# 标准库 logging 与 structlog 共用的处理器链
_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    if log_format == "dev":
        return structlog.dev.ConsoleRenderer()
    raise ValueError(f"未知的日志格式: {log_format}，可选 {', '.join(LOG_FORMATS)}")


def _resolve_level(log_level: str | int) -> int:
    """级别名或数值 -> logging 数值级别，无法识别时退回 INFO"""
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    log_format: str | None = None,
    log_level: str | int | None = None,
    stream: TextIO | None = None,
) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "dev"（默认）或 "json"，缺省读取 TASKLEDGER_LOG_FORMAT
        log_level: 级别名或数值，缺省读取 TASKLEDGER_LOG_LEVEL
        stream: 日志输出流，缺省为 stderr

    Raises:
        ValueError: 日志格式不在 LOG_FORMATS 中
    """
    if log_format is None:
        log_format = os.environ.get("TASKLEDGER_LOG_FORMAT", DEFAULT_LOG_FORMAT)
    if log_level is None:
        log_level = os.environ.get("TASKLEDGER_LOG_LEVEL", DEFAULT_LOG_LEVEL)

    renderer = _build_renderer(log_format.lower())

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_resolve_level(log_level))
