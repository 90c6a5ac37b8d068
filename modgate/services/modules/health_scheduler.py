"""
模块健康检查调度器

按固定间隔对已启用模块执行健康检查（HealthMonitor.sweep），
启动时立即执行一次。检查全部在内存中完成，无阻塞 I/O。
"""

from __future__ import annotations

from typing import Any

from modgate.core.logger import logger
from modgate.core.modules.health import HealthMonitor
from modgate.services.system.scheduler import TaskScheduler

HEALTH_CHECK_JOB_ID = "module_health_check"


class ModuleHealthScheduler:
    """模块健康检查调度器"""

    def __init__(
        self,
        monitor: HealthMonitor,
        scheduler: TaskScheduler,
        interval_seconds: int = 60,
    ) -> None:
        self.monitor = monitor
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self.running = False
        self._sweep_count = 0

    async def start(self) -> Any:
        if self.running:
            logger.warning("ModuleHealthScheduler already running")
            return

        self.running = True
        logger.info("ModuleHealthScheduler started")

        if self.interval_seconds > 0:
            self.scheduler.add_interval_job(
                self._scheduled_check,
                seconds=self.interval_seconds,
                job_id=HEALTH_CHECK_JOB_ID,
                name="模块健康检查",
            )
        else:
            logger.info("模块健康检查间隔为 0，仅执行启动时检查")

        # 启动时立即执行一次
        await self._scheduled_check()

    async def stop(self) -> Any:
        if not self.running:
            return
        self.running = False
        if self.interval_seconds > 0:
            self.scheduler.remove_job(HEALTH_CHECK_JOB_ID)
        logger.info("ModuleHealthScheduler stopped")

    @property
    def sweep_count(self) -> int:
        return self._sweep_count

    async def _scheduled_check(self) -> None:
        try:
            self.monitor.sweep()
            self._sweep_count += 1
        except Exception as e:
            logger.exception("模块健康检查失败: {}", e)
