"""
模块健康检查

对已启用模块重新校验依赖和必需开关：
- 任一依赖已不再启用 -> unhealthy（启用后依赖被禁用的漂移场景）
- 任一必需开关已关闭 -> degraded
- 否则 -> healthy

健康状态只是参考信号，不会改变模块的 loaded/disabled 状态，
开关短暂抖动不会让模块悄悄消失。唯一的例外是 auto_error_on_failure：
检查本身抛错时把模块转为 error。
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from modgate.core.feature_flags import FeatureFlagProvider
from modgate.core.logger import logger
from modgate.core.metrics import module_health_check_total, module_health_sweep_duration_seconds
from modgate.core.modules.base import HealthRecord, ModuleHealth, ModuleMetadata
from modgate.core.modules.events import ModuleHealthChecked

if TYPE_CHECKING:
    from modgate.core.modules.registry import ModuleRegistry


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class HealthMonitor:
    """模块健康监控"""

    def __init__(
        self,
        registry: ModuleRegistry,
        flags: FeatureFlagProvider | None = None,
        *,
        auto_error_on_failure: bool = False,
    ) -> None:
        self.registry = registry
        self.flags = flags if flags is not None else registry.flags
        self.auto_error_on_failure = auto_error_on_failure
        self._last_results: dict[str, HealthRecord] = {}

    def check(self, metadata: ModuleMetadata) -> HealthRecord:
        """检查单个模块，不修改任何状态"""
        start = time.perf_counter()
        config = metadata.config

        for dep in config.dependencies:
            if not self.registry.is_active(dep):
                return HealthRecord(
                    status=ModuleHealth.UNHEALTHY,
                    details={
                        "error": f"Dependency {dep} is not enabled",
                        "dependency": dep,
                        "check_duration_ms": _elapsed_ms(start),
                    },
                )

        for feature in sorted(config.required_feature_set()):
            if not self.flags.is_enabled(feature):
                return HealthRecord(
                    status=ModuleHealth.DEGRADED,
                    details={
                        "warning": f"Required feature {feature} is not enabled",
                        "feature": feature,
                        "check_duration_ms": _elapsed_ms(start),
                    },
                )

        return HealthRecord(
            status=ModuleHealth.HEALTHY,
            details={
                "dependencies_resolved": True,
                "features_available": {
                    f: self.flags.is_enabled(f) for f in sorted(config.optional_feature_set())
                },
                "check_duration_ms": _elapsed_ms(start),
            },
        )

    def _guarded_check(self, metadata: ModuleMetadata) -> tuple[HealthRecord, str | None]:
        try:
            return self.check(metadata), None
        except Exception as e:
            logger.exception("Module [{}] health check failed: {}", metadata.name, e)
            record = HealthRecord(
                status=ModuleHealth.UNHEALTHY,
                details={"error": str(e), "check_failed": True},
            )
            return record, str(e)

    def check_module(self, name: str) -> HealthRecord | None:
        """
        按需检查单个模块并写回；未注册返回 None

        未启用的模块不做检查，原样返回当前记录。
        """
        metadata = self.registry.get_module(name)
        if metadata is None:
            return None
        if not metadata.active:
            return metadata.health
        record, failure = self._guarded_check(metadata)
        self._apply({name: record}, {name: failure} if failure else {})
        return record

    def sweep(self) -> dict[str, HealthRecord]:
        """
        检查所有已启用模块

        单个模块检查抛错只影响该模块（记为 unhealthy），其余模块照常检查；
        结果一次性批量写回注册中心。
        """
        start = time.perf_counter()
        results: dict[str, HealthRecord] = {}
        failures: dict[str, str] = {}

        for metadata in self.registry.get_enabled_modules():
            record, failure = self._guarded_check(metadata)
            results[metadata.name] = record
            if failure is not None:
                failures[metadata.name] = failure

        self._last_results.clear()
        self._apply(results, failures)
        module_health_sweep_duration_seconds.observe(time.perf_counter() - start)

        unhealthy = [n for n, r in results.items() if r.status != ModuleHealth.HEALTHY]
        if unhealthy:
            logger.warning("模块健康检查: {}/{} 个模块异常: {}", len(unhealthy), len(results), unhealthy)
        else:
            logger.debug("模块健康检查完成: {} 个模块全部健康", len(results))
        return results

    def _apply(self, results: dict[str, HealthRecord], failures: dict[str, str]) -> None:
        self.registry.update_health(results)
        self._last_results.update(results)

        if self.auto_error_on_failure:
            for name, message in failures.items():
                self.registry.mark_error(name, f"Health check failed: {message}")

        for name, record in results.items():
            module_health_check_total.labels(health=record.status.value).inc()
            self.registry.events.publish(ModuleHealthChecked(module_name=name, health=record))

    @property
    def last_results(self) -> dict[str, HealthRecord]:
        return dict(self._last_results)

    def summary(self) -> dict[str, int]:
        """最近一次结果按健康状态计数"""
        counts = {health.value: 0 for health in ModuleHealth}
        for record in self._last_results.values():
            counts[record.status.value] += 1
        return counts
