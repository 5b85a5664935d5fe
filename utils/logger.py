"""
日志配置模块

各模块使用 logging.getLogger(__name__) 记录日志，本模块只负责在程序入口处
配置处理器与格式：
- 控制台输出（stderr，避免干扰JSON结果输出）
- 可选文件输出（按日期轮转）
- 文本或结构化JSON格式
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

# 根包名：配置作用于这些logger，不影响第三方库
PACKAGE_LOGGERS = ("core", "simulator", "utils", "main")

LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# JSON日志中透传的LogRecord扩展字段
EXTRA_FIELDS = ("catalog_id", "generation", "epoch")


class LoggerConfigError(Exception):
    """日志配置错误"""
    pass


class JsonFormatter(logging.Formatter):
    """JSON格式日志格式化器（UTC时间戳）"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """文本格式日志格式化器"""

    def __init__(self, fmt: Optional[str] = None):
        super().__init__(
            fmt=fmt or "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def parse_level(level: str) -> int:
    """
    解析日志级别名称

    Raises:
        LoggerConfigError: 无效的日志级别
    """
    key = str(level).upper()
    if key not in LEVEL_MAP:
        raise LoggerConfigError(f"Invalid log level: {level}. Valid: {list(LEVEL_MAP.keys())}")
    return LEVEL_MAP[key]


def _make_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter()
    if fmt == "text":
        return TextFormatter()
    raise LoggerConfigError(f"Invalid log format: {fmt}. Valid: ['text', 'json']")


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: Optional[str] = None,
    rotation: str = "none",
    backup_count: int = 7,
) -> logging.Logger:
    """
    配置项目日志

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: 格式 ("text", "json")
        log_file: 日志文件路径，None时只输出到控制台
        rotation: 文件轮转策略 ("none", "daily")
        backup_count: 保留的备份文件数量

    Returns:
        logging.Logger: 项目根logger（"core"）

    Raises:
        LoggerConfigError: 级别、格式或轮转策略无效
    """
    numeric_level = parse_level(level)
    formatter = _make_formatter(fmt)

    handlers = []
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    handlers.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        if rotation == "daily":
            file_handler = TimedRotatingFileHandler(
                log_file, when="midnight", interval=1,
                backupCount=backup_count, encoding="utf-8",
            )
        elif rotation == "none":
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        else:
            raise LoggerConfigError(f"Invalid log rotation: {rotation}. Valid: ['none', 'daily']")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        package_logger.setLevel(numeric_level)
        # 清除旧处理器（避免重复输出）
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()
        for handler in handlers:
            package_logger.addHandler(handler)
        package_logger.propagate = False

    return logging.getLogger(PACKAGE_LOGGERS[0])
