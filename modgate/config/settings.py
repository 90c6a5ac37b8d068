"""
服务配置
从环境变量或 .env 文件加载配置
"""

import os
from pathlib import Path

from dotenv import load_dotenv

env_file = Path(".env")
if env_file.exists():
    load_dotenv(env_file)


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


class Config:
    def __init__(self) -> None:
        # 服务器配置
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "8090"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # 环境配置
        self.environment = os.getenv("ENVIRONMENT", "development")

        # 调度器时区（APScheduler 使用）
        self.app_timezone = os.getenv("APP_TIMEZONE", "UTC")

        # 模块健康检查
        # MODULE_HEALTH_CHECK_INTERVAL: 周期检查间隔（秒），0 表示不启动定时检查
        # MODULE_HEALTH_AUTO_ERROR: 检查本身抛错时是否把模块状态置为 error
        self.module_health_check_interval = int(
            os.getenv("MODULE_HEALTH_CHECK_INTERVAL", "60")
        )
        self.module_health_auto_error = _env_bool("MODULE_HEALTH_AUTO_ERROR", False)

        # 管理 API 文档开关
        self.docs_enabled = _env_bool("DOCS_ENABLED", self.environment == "development")

    def log_startup_warnings(self) -> None:
        """
        记录启动时的配置警告
        这个方法应该在 logger 初始化后调用
        """
        from modgate.core.logger import logger

        if self.module_health_check_interval < 0:
            logger.warning(
                "MODULE_HEALTH_CHECK_INTERVAL 不能为负数，当前值 {}，已按 0 处理",
                self.module_health_check_interval,
            )
            self.module_health_check_interval = 0

        if self.environment == "production" and self.docs_enabled:
            logger.warning("生产环境开启了 API 文档（DOCS_ENABLED=true）")

    def __repr__(self):
        """配置信息字符串表示"""
        return f"""
Configuration:
  Server: {self.host}:{self.port}
  Log Level: {self.log_level}
  Environment: {self.environment}
  Health Check Interval: {self.module_health_check_interval}s
"""


# 创建全局配置实例
config = Config()
