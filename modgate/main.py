"""
主应用入口

create_app() 显式创建功能开关、事件总线、模块注册中心和健康检查组件，
挂到 app.state 上供路由依赖注入使用。
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from modgate import __version__ as app_version
from modgate.api.admin import router as admin_router
from modgate.config import config
from modgate.core.feature_flags import (
    EnvFeatureFlagProvider,
    FeatureFlagProvider,
    validate_feature_flags,
)
from modgate.core.logger import logger
from modgate.core.modules import (
    EventBus,
    HealthMonitor,
    ModuleConfig,
    ModuleRegistry,
    install_logging_handlers,
)
from modgate.modules import register_modules
from modgate.services.modules.health_scheduler import ModuleHealthScheduler
from modgate.services.system.scheduler import TaskScheduler


def create_app(
    flags: FeatureFlagProvider | None = None,
    manifest: list[ModuleConfig] | None = None,
    health_check_interval: int | None = None,
) -> FastAPI:
    """
    创建应用

    Args:
        flags: 功能开关来源，默认读取 FEATURE_* 环境变量
        manifest: 模块清单，默认使用 modgate.modules 中的全部模块
        health_check_interval: 健康检查间隔（秒），默认取配置
    """
    flags = flags if flags is not None else EnvFeatureFlagProvider()
    event_bus = EventBus()
    install_logging_handlers(event_bus)

    registry = ModuleRegistry(flags, event_bus)
    monitor = HealthMonitor(registry, auto_error_on_failure=config.module_health_auto_error)
    interval = (
        health_check_interval
        if health_check_interval is not None
        else config.module_health_check_interval
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"modgate v{app_version} - Module Registry")
        logger.info("=" * 60)
        config.log_startup_warnings()

        for warning in validate_feature_flags(flags, config.environment):
            logger.warning(f"功能开关配置警告: {warning}")

        logger.info("初始化功能模块系统...")
        register_modules(registry, manifest)

        task_scheduler = TaskScheduler()
        health_scheduler = ModuleHealthScheduler(monitor, task_scheduler, interval)
        await health_scheduler.start()
        task_scheduler.start()
        app.state.health_scheduler = health_scheduler

        yield

        logger.info("正在关闭服务...")
        await health_scheduler.stop()
        task_scheduler.stop()
        logger.info("服务已关闭")

    app = FastAPI(
        title="modgate",
        version=app_version,
        lifespan=lifespan,
        docs_url="/docs" if config.docs_enabled else None,
        redoc_url="/redoc" if config.docs_enabled else None,
        openapi_url="/openapi.json" if config.docs_enabled else None,
    )
    app.state.feature_flags = flags
    app.state.event_bus = event_bus
    app.state.module_registry = registry
    app.state.health_monitor = monitor

    app.include_router(admin_router)
    return app


def main() -> Any:
    log_level = config.log_level.split()[0].lower()
    if log_level not in ["debug", "info", "warning", "error", "critical"]:
        log_level = "info"

    uvicorn.run(
        "modgate.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        log_level=log_level,
        reload=config.environment == "development",
        access_log=False,
    )


if __name__ == "__main__":
    main()
