"""
Structlog 日志配置模块
"""
import logging
from typing import Any, List, Optional

import structlog
from structlog.stdlib import ProcessorFormatter

from core.config import settings

# 存储客户端及其 HTTP 依赖只输出 WARNING 以上
NOISY_LOGGERS = ("swiftclient", "urllib3", "requests")


def configure_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """配置 structlog，并让标准库 logging（含 swiftclient）走同一处理链。

    Args:
        level: 日志级别，默认取 settings.log_level
        json_logs: 是否输出 JSON，默认取 settings.log_json
    """
    level = level or settings.log_level
    json_logs = settings.log_json if json_logs is None else json_logs

    shared_pre_chain: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=settings.DEBUG)
    )

    structlog.configure(
        processors=[*shared_pre_chain, ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(ProcessorFormatter(
        foreign_pre_chain=shared_pre_chain,
        processors=[ProcessorFormatter.remove_processors_meta, renderer],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """获取 structlog logger 实例。"""
    return structlog.get_logger(name)


configure_logging()
