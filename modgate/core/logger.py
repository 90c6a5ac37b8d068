"""
日志系统

基于 loguru，导入即完成初始化：
    from modgate.core.logger import logger
"""

import sys

from loguru import logger

from modgate.config import config

_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logger(level: str | None = None) -> None:
    """(重新)配置 stderr 输出，可在测试中调用以调整级别"""
    log_level = (level or config.log_level).split()[0].upper()
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=_LOG_FORMAT,
        backtrace=config.environment == "development",
        diagnose=False,
    )


setup_logger()

__all__ = ["logger", "setup_logger"]
