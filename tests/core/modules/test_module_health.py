"""
模块健康检查测试

测试 HealthMonitor：
- 依赖漂移 -> unhealthy
- 必需开关关闭 -> degraded
- 健康状态不影响启用状态
- 单个模块检查失败不影响其余模块
"""

from unittest.mock import patch

import pytest

from modgate.core.feature_flags import StaticFeatureFlagProvider
from modgate.core.modules import (
    HealthMonitor,
    ModuleConfig,
    ModuleEventKind,
    ModuleHealth,
    ModuleRegistry,
    ModuleState,
)


@pytest.fixture
def flags() -> StaticFeatureFlagProvider:
    return StaticFeatureFlagProvider({"reports": True, "charts": True})


@pytest.fixture
def registry(flags: StaticFeatureFlagProvider) -> ModuleRegistry:
    registry = ModuleRegistry(flags)
    registry.register(ModuleConfig(name="core", version="1.0.0"))
    registry.register(
        ModuleConfig(
            name="reporting",
            version="1.0.0",
            dependencies=["core"],
            required_features=["reports"],
            optional_features=["charts"],
        )
    )
    return registry


def _force_dependency_drift(registry: ModuleRegistry, name: str) -> None:
    # 正常的 disable 会被依赖方拦截，这里直接改内部状态模拟漂移
    with registry._lock:
        registry._modules[name].status = ModuleState.DISABLED


class TestCheck:
    """测试单模块检查"""

    def test_healthy_module(self, registry: ModuleRegistry) -> None:
        monitor = HealthMonitor(registry)

        record = monitor.check(registry.get_module("reporting"))

        assert record.status == ModuleHealth.HEALTHY
        assert record.details["dependencies_resolved"] is True
        assert record.details["features_available"] == {"charts": True}

    def test_disabled_dependency_is_unhealthy(self, registry: ModuleRegistry) -> None:
        monitor = HealthMonitor(registry)
        _force_dependency_drift(registry, "core")

        record = monitor.check(registry.get_module("reporting"))

        assert record.status == ModuleHealth.UNHEALTHY
        assert record.details["dependency"] == "core"

    def test_required_feature_turned_off_is_degraded(
        self, registry: ModuleRegistry, flags: StaticFeatureFlagProvider
    ) -> None:
        monitor = HealthMonitor(registry)
        flags.set_flag("reports", False)

        record = monitor.check(registry.get_module("reporting"))

        assert record.status == ModuleHealth.DEGRADED
        assert record.details["feature"] == "reports"

    def test_check_module_unknown_returns_none(self, registry: ModuleRegistry) -> None:
        assert HealthMonitor(registry).check_module("ghost") is None

    def test_check_module_writes_back(
        self, registry: ModuleRegistry, flags: StaticFeatureFlagProvider
    ) -> None:
        monitor = HealthMonitor(registry)
        flags.set_flag("reports", False)

        monitor.check_module("reporting")

        assert registry.get_module("reporting").health.status == ModuleHealth.DEGRADED


    def test_check_module_skips_inactive_module(
        self, registry: ModuleRegistry, flags: StaticFeatureFlagProvider
    ) -> None:
        monitor = HealthMonitor(registry)
        registry.disable("reporting")
        before = registry.get_module("reporting").health
        flags.set_flag("reports", False)

        record = monitor.check_module("reporting")

        assert record.status == ModuleHealth.HEALTHY
        assert record.last_check == before.last_check
        assert registry.get_module("reporting").health.status == ModuleHealth.HEALTHY
        assert monitor.last_results == {}


class TestSweep:
    """测试全量检查"""

    def test_health_is_advisory(
        self, registry: ModuleRegistry, flags: StaticFeatureFlagProvider
    ) -> None:
        monitor = HealthMonitor(registry)
        flags.set_flag("reports", False)

        results = monitor.sweep()

        assert results["reporting"].status == ModuleHealth.DEGRADED
        metadata = registry.get_module("reporting")
        assert metadata.status == ModuleState.LOADED
        assert metadata.health.status == ModuleHealth.DEGRADED
        assert registry.is_active("reporting") is True

    def test_sweep_only_covers_enabled_modules(self, registry: ModuleRegistry) -> None:
        registry.disable("reporting")

        results = HealthMonitor(registry).sweep()

        assert list(results) == ["core"]

    def test_failing_check_is_isolated(self, registry: ModuleRegistry) -> None:
        monitor = HealthMonitor(registry)
        original = monitor.check

        def flaky(metadata):
            if metadata.name == "core":
                raise RuntimeError("probe crashed")
            return original(metadata)

        with patch.object(monitor, "check", side_effect=flaky):
            results = monitor.sweep()

        assert results["core"].status == ModuleHealth.UNHEALTHY
        assert results["core"].details["check_failed"] is True
        assert results["reporting"].status == ModuleHealth.HEALTHY
        assert registry.get_module("core").status == ModuleState.LOADED

    def test_auto_error_on_failure(self, registry: ModuleRegistry) -> None:
        monitor = HealthMonitor(registry, auto_error_on_failure=True)

        with patch.object(monitor, "check", side_effect=RuntimeError("probe crashed")):
            monitor.sweep()

        metadata = registry.get_module("core")
        assert metadata.status == ModuleState.ERROR
        assert "probe crashed" in metadata.error
        assert registry.get_statistics().errors == 2

    def test_sweep_publishes_health_events(self, registry: ModuleRegistry) -> None:
        received: list = []
        registry.events.subscribe(ModuleEventKind.HEALTH_CHECKED, received.append)

        HealthMonitor(registry).sweep()

        assert [e.module_name for e in received] == ["core", "reporting"]

    def test_summary_counts_last_sweep(
        self, registry: ModuleRegistry, flags: StaticFeatureFlagProvider
    ) -> None:
        monitor = HealthMonitor(registry)
        flags.set_flag("reports", False)

        monitor.sweep()

        assert monitor.summary() == {"healthy": 1, "degraded": 1, "unhealthy": 0}
        assert set(monitor.last_results) == {"core", "reporting"}
