"""
日志配置模块

提供 Hydrated Storage 的日志配置功能。库本身只通过 logging.getLogger(__name__)
记录日志，由宿主应用决定是否调用 setup_logging。
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "hydrated_storage"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    设置 Hydrated Storage 的日志配置

    Args:
        level: 日志级别 ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: 可选的日志文件路径，如果不提供则只输出到控制台
        format_string: 可选的日志格式字符串

    Returns:
        配置好的 logger 实例
    """
    if format_string is None:
        format_string = (
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))

    # 清除现有的处理器
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(format_string)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
