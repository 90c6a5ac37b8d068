"""
后台周期任务

对 APScheduler AsyncIOScheduler 的薄封装，时区取自 APP_TIMEZONE。
由 create_app 在 lifespan 内创建和关闭，不使用全局实例。
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from modgate.config import config
from modgate.core.logger import logger


class TaskScheduler:
    """周期任务调度器"""

    def __init__(self, timezone: str | None = None) -> None:
        self.timezone = timezone or config.app_timezone
        self._scheduler = AsyncIOScheduler(timezone=self.timezone)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def add_interval_job(
        self,
        func: Callable[[], Awaitable[Any]] | Callable[[], Any],
        *,
        seconds: int,
        job_id: str,
        name: str | None = None,
    ) -> Any:
        """
        按固定秒数重复执行 func

        同 job_id 的已有任务会被替换。
        """
        job = self._scheduler.add_job(
            func,
            IntervalTrigger(seconds=seconds),
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("周期任务已注册: {} (每 {} 秒)", name or job_id, seconds)
        return job

    def remove_job(self, job_id: str) -> bool:
        if self._scheduler.get_job(job_id) is None:
            logger.warning("周期任务不存在，无法移除: {}", job_id)
            return False
        self._scheduler.remove_job(job_id)
        logger.info("周期任务已移除: {}", job_id)
        return True

    def get_job_info(self, job_id: str) -> dict[str, Any] | None:
        """任务 id / 名称 / 下次执行时间；任务不存在返回 None"""
        job = self._scheduler.get_job(job_id)
        if job is None:
            return None
        next_run = getattr(job, "next_run_time", None)
        return {
            "id": job.id,
            "name": job.name,
            "next_run_time": next_run.isoformat() if next_run else None,
        }

    def start(self) -> None:
        """启动（必须在运行中的事件循环内调用）"""
        if self._running:
            logger.warning("TaskScheduler already running")
            return
        self._scheduler.start()
        self._running = True
        logger.info("TaskScheduler started (timezone={})", self.timezone)

    def stop(self) -> None:
        if not self._running:
            return
        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("TaskScheduler stopped")
