"""
模块注册中心

负责模块的注册、依赖校验、功能开关门控、启用/禁用和状态查询。
ModuleMetadata.status 只能由本类修改。

并发约定：
- 所有读写都在实例级 RLock 内完成（模块数量在几十个量级，粗粒度锁即可）
- 事件在锁内收集、锁外发布，订阅者可以安全地回调注册中心
"""

from __future__ import annotations

import copy
import threading
import time
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from modgate.core.exceptions import (
    CircularDependencyError,
    DependencyNotEnabledError,
    DependentsStillEnabledError,
    DuplicateModuleError,
    ModuleInErrorStateError,
    ModuleNotRegisteredError,
    ModuleRegistryError,
    ModuleValidationError,
    RequiredFeatureDisabledError,
    UnknownDependencyError,
)
from modgate.core.feature_flags import FeatureFlagProvider
from modgate.core.logger import logger
from modgate.core.metrics import (
    module_registration_total,
    module_state_change_total,
    modules_by_status,
)
from modgate.core.modules.base import (
    HealthRecord,
    ModuleCategory,
    ModuleConfig,
    ModuleHealth,
    ModuleMetadata,
    ModuleMetrics,
    ModuleState,
    OperationResult,
    RegistrationFailure,
    RegistrationReport,
    RegistryStatistics,
    estimate_memory_usage,
    utc_now,
)
from modgate.core.modules.events import (
    EventBus,
    EventLevel,
    ModuleDisabled,
    ModuleEnabled,
    ModuleErrored,
    ModuleEvent,
    ModuleRegistered,
    RegistryReady,
)
from modgate.core.modules.graph import DependencyGraph

REGISTRY_VERSION = "1.0.0"

_COLLECTION_FIELDS = ("dependencies", "routes", "components", "services")
_FEATURE_FIELDS = ("required_features", "optional_features")


def _is_str_collection(value: Any, kinds: tuple[type, ...]) -> bool:
    return isinstance(value, kinds) and all(isinstance(v, str) and v for v in value)


def validate_module_config(config: Any) -> None:
    """校验配置格式，失败抛出 ModuleValidationError"""
    if not isinstance(config, ModuleConfig):
        raise ModuleValidationError(
            f"Module config must be a ModuleConfig, got {type(config).__name__}"
        )

    name = config.name
    if not isinstance(name, str) or not name.strip():
        raise ModuleValidationError("Module name is required and must be a string")
    if not isinstance(config.version, str) or not config.version.strip():
        raise ModuleValidationError("Module version is required and must be a string", name)

    for field_name in _COLLECTION_FIELDS:
        if not _is_str_collection(getattr(config, field_name), (tuple,)):
            raise ModuleValidationError(
                f"Module {field_name} must be a list of non-empty strings", name
            )
    for field_name in _FEATURE_FIELDS:
        value = getattr(config, field_name)
        if value is not None and not _is_str_collection(value, (frozenset,)):
            raise ModuleValidationError(
                f"Module {field_name} must be a set of non-empty strings", name
            )

    if len(set(config.dependencies)) != len(config.dependencies):
        raise ModuleValidationError(f"Module {name} lists a dependency more than once", name)
    if not isinstance(config.enabled, bool):
        raise ModuleValidationError("Module enabled flag must be a boolean", name)
    if isinstance(config.priority, bool) or not isinstance(config.priority, int):
        raise ModuleValidationError("Module priority must be an integer", name)
    if not isinstance(config.category, ModuleCategory):
        raise ModuleValidationError(
            f"Module category must be one of {[c.value for c in ModuleCategory]}", name
        )


class ModuleRegistry:
    """
    模块注册中心

    显式构造并注入给需要它的组件；clear() 仅用于测试隔离。

    注册顺序即依赖图的写入顺序；priority 从不参与注册中心的任何算法，
    依赖必须先于依赖方注册（校验，不重排）。
    """

    def __init__(
        self,
        flags: FeatureFlagProvider,
        event_bus: EventBus | None = None,
    ) -> None:
        self.flags = flags
        self._owns_event_bus = event_bus is None
        self.events = event_bus if event_bus is not None else EventBus()
        self._modules: dict[str, ModuleMetadata] = {}
        self._graph = DependencyGraph()
        self._lock = threading.RLock()
        self._ready = False
        self._mark_ready()

    def _mark_ready(self) -> None:
        self._ready = True
        self.events.publish(RegistryReady(registry_version=REGISTRY_VERSION))

    @property
    def ready(self) -> bool:
        return self._ready

    def _publish(self, events: Iterable[ModuleEvent]) -> None:
        for event in events:
            self.events.publish(event)

    # ========== 注册 ==========

    def register(self, config: ModuleConfig) -> ModuleMetadata:
        """
        注册模块

        先校验（格式、重名、循环依赖、未知依赖），全部通过后才写入模块表和依赖图。
        任何失败都会发布 module:error 并重新抛出，注册中心状态保持不变。

        required_features 中任一开关关闭时，无论请求的 enabled 为何，模块都以
        disabled 状态注册，并发布 warning 级别的 module:disabled 事件。

        Returns:
            注册后的元数据快照
        """
        start = time.perf_counter()
        events: list[ModuleEvent] = []
        try:
            validate_module_config(config)
            # 开关查询放在锁外，慢速的开关后端不会拉长临界区
            missing_features = sorted(
                f for f in config.required_feature_set() if not self.flags.is_enabled(f)
            )
            features_available = {
                f: self.flags.is_enabled(f) for f in sorted(config.optional_feature_set())
            }
            with self._lock:
                metadata = self._commit_registration(
                    config, missing_features, features_available, start, events
                )
                snapshot = copy.deepcopy(metadata)
                self._refresh_status_gauge()
        except ModuleRegistryError as e:
            name = self._config_name(config)
            logger.error("Failed to register module {}: {}", name, e.message)
            self._registration_failed(name, e.message, e.kind.value)
            raise
        except Exception as e:
            # 功能开关后端等协作方抛出的非注册错误
            name = self._config_name(config)
            logger.exception("Unexpected error while registering module {}: {}", name, e)
            self._registration_failed(name, str(e), "unexpected_error")
            raise

        module_registration_total.labels(outcome="success").inc()
        logger.info(
            "Module registered: {} v{} ({:.2f}ms, {})",
            snapshot.name,
            snapshot.config.version,
            snapshot.metrics.load_time_ms,
            snapshot.status.value,
        )
        self._publish(events)
        return snapshot

    @staticmethod
    def _config_name(config: Any) -> str:
        name = getattr(config, "name", None)
        return name if isinstance(name, str) and name else "<invalid>"

    def _registration_failed(self, name: str, message: str, error_kind: str) -> None:
        module_registration_total.labels(outcome=error_kind).inc()
        self.events.publish(ModuleErrored(module_name=name, error=message, error_kind=error_kind))

    def _commit_registration(
        self,
        config: ModuleConfig,
        missing_features: list[str],
        features_available: dict[str, bool],
        start: float,
        events: list[ModuleEvent],
    ) -> ModuleMetadata:
        name = config.name
        dependencies = list(config.dependencies)

        # 阶段一：只读校验
        if name in self._modules:
            raise DuplicateModuleError(name)

        cycle = self._graph.find_cycle(name, dependencies)
        if cycle is not None:
            raise CircularDependencyError(name, cycle)

        for dep in dependencies:
            if dep not in self._graph:
                raise UnknownDependencyError(name, dep)

        # 阶段二：写入
        enabled = config.enabled and not missing_features
        stored = config if enabled == config.enabled else replace(config, enabled=enabled)
        metadata = ModuleMetadata(config=stored, status=ModuleState.LOADING)

        self._graph.add_node(name, dependencies)
        metadata.health = HealthRecord(
            status=ModuleHealth.HEALTHY,
            details={
                "dependencies_resolved": True,
                "features_available": features_available,
            },
        )
        metadata.metrics = ModuleMetrics(
            load_time_ms=(time.perf_counter() - start) * 1000,
            memory_usage=estimate_memory_usage(stored),
        )
        metadata.status = ModuleState.LOADED if enabled else ModuleState.DISABLED
        self._modules[name] = metadata

        events.append(
            ModuleRegistered(
                module_name=name,
                version=stored.version,
                dependencies=stored.dependencies,
                enabled=enabled,
                load_time_ms=metadata.metrics.load_time_ms,
            )
        )
        if missing_features:
            events.append(
                ModuleDisabled(
                    module_name=name,
                    version=stored.version,
                    reason="feature_gated",
                    missing_features=tuple(missing_features),
                    level=EventLevel.WARNING,
                )
            )
        return metadata

    def register_many(self, configs: Iterable[ModuleConfig]) -> RegistrationReport:
        """
        按顺序注册多个模块

        单个模块失败不影响后续模块，失败项记录在报告中。
        """
        report = RegistrationReport()
        for index, config in enumerate(configs):
            try:
                self.register(config)
            except ModuleRegistryError as e:
                name = getattr(config, "name", None)
                report.failed.append(
                    RegistrationFailure(
                        index=index,
                        module_name=name if isinstance(name, str) and name else None,
                        error=e,
                    )
                )
            else:
                report.registered.append(config.name)
        return report

    # ========== 查询 ==========

    def is_enabled(self, name: str) -> bool:
        """
        模块是否启用（status == loaded 且 config.enabled）

        未注册的模块返回 False。每次调用都会累加访问计数。
        """
        with self._lock:
            metadata = self._modules.get(name)
            if metadata is None:
                return False
            metadata.metrics.access_count += 1
            metadata.metrics.last_accessed = utc_now()
            return metadata.active

    def is_active(self, name: str) -> bool:
        """同 is_enabled，但不计入访问指标（内部校验和健康检查使用）"""
        with self._lock:
            return self._is_active(name)

    def _is_active(self, name: str) -> bool:
        metadata = self._modules.get(name)
        return metadata is not None and metadata.active

    def get_module(self, name: str) -> ModuleMetadata | None:
        """获取模块元数据快照"""
        with self._lock:
            metadata = self._modules.get(name)
            return copy.deepcopy(metadata) if metadata is not None else None

    def get_all_modules(self) -> list[ModuleMetadata]:
        """按注册顺序返回全部模块快照"""
        with self._lock:
            return [copy.deepcopy(m) for m in self._modules.values()]

    def get_enabled_modules(self) -> list[ModuleMetadata]:
        with self._lock:
            return [copy.deepcopy(m) for m in self._modules.values() if m.active]

    def get_modules_by_category(self, category: ModuleCategory) -> list[ModuleMetadata]:
        with self._lock:
            return [
                copy.deepcopy(m) for m in self._modules.values() if m.config.category == category
            ]

    def module_names(self) -> list[str]:
        with self._lock:
            return list(self._modules)

    def get_dependencies(self, name: str) -> list[str]:
        with self._lock:
            return self._graph.dependencies(name)

    def get_dependents(self, name: str) -> list[str]:
        with self._lock:
            return sorted(self._graph.dependents(name))

    def can_disable(self, name: str) -> bool:
        with self._lock:
            return self._graph.can_remove(name, self._is_active)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._modules

    def __len__(self) -> int:
        with self._lock:
            return len(self._modules)

    # ========== 启用 / 禁用 ==========

    def enable(self, name: str) -> OperationResult:
        """
        启用模块

        所有依赖必须已启用、所有必需开关必须打开；已启用时直接返回成功。
        失败通过 OperationResult.error 返回，不抛出。
        """
        events: list[ModuleEvent] = []
        with self._lock:
            result = self._enable_locked(name, events)
            self._refresh_status_gauge()

        self._record_state_change("enable", result)
        self._publish(events)
        return result

    def _enable_locked(self, name: str, events: list[ModuleEvent]) -> OperationResult:
        metadata = self._modules.get(name)
        if metadata is None:
            return OperationResult.failure(name, ModuleNotRegisteredError(name))
        if metadata.active:
            return OperationResult.success(name, changed=False)
        if metadata.status == ModuleState.ERROR:
            return OperationResult.failure(
                name, ModuleInErrorStateError(name, metadata.error or "")
            )

        config = metadata.config
        for dep in config.dependencies:
            if not self._is_active(dep):
                return OperationResult.failure(name, DependencyNotEnabledError(name, dep))

        for feature in sorted(config.required_feature_set()):
            if not self.flags.is_enabled(feature):
                return OperationResult.failure(name, RequiredFeatureDisabledError(name, feature))

        metadata.config = replace(config, enabled=True)
        metadata.status = ModuleState.LOADED
        metadata.error = None
        metadata.health = HealthRecord(
            status=ModuleHealth.HEALTHY,
            details={
                "dependencies_resolved": True,
                "features_available": {
                    f: self.flags.is_enabled(f) for f in sorted(config.optional_feature_set())
                },
            },
        )
        events.append(
            ModuleEnabled(
                module_name=name, version=config.version, dependencies=config.dependencies
            )
        )
        return OperationResult.success(name)

    def disable(self, name: str, reason: str = "manual") -> OperationResult:
        """
        禁用模块

        仍有已启用的模块依赖它时拒绝（DependentsStillEnabled）；已禁用时直接返回成功。
        """
        events: list[ModuleEvent] = []
        with self._lock:
            result = self._disable_locked(name, reason, events)
            self._refresh_status_gauge()

        self._record_state_change("disable", result)
        self._publish(events)
        return result

    def _disable_locked(
        self, name: str, reason: str, events: list[ModuleEvent]
    ) -> OperationResult:
        metadata = self._modules.get(name)
        if metadata is None:
            return OperationResult.failure(name, ModuleNotRegisteredError(name))
        if metadata.status == ModuleState.ERROR:
            return OperationResult.failure(
                name, ModuleInErrorStateError(name, metadata.error or "")
            )
        if metadata.status == ModuleState.DISABLED and not metadata.config.enabled:
            return OperationResult.success(name, changed=False)

        if not self._graph.can_remove(name, self._is_active):
            dependents = self._graph.enabled_dependents(name, self._is_active)
            return OperationResult.failure(name, DependentsStillEnabledError(name, dependents))

        metadata.config = replace(metadata.config, enabled=False)
        metadata.status = ModuleState.DISABLED
        events.append(
            ModuleDisabled(module_name=name, version=metadata.config.version, reason=reason)
        )
        return OperationResult.success(name)

    def _record_state_change(self, action: str, result: OperationResult) -> None:
        if result.ok:
            outcome = "success" if result.changed else "noop"
        else:
            assert result.error is not None
            outcome = result.error.kind.value
            logger.warning("{} {} rejected: {}", action, result.module_name, result.error.message)
        module_state_change_total.labels(action=action, outcome=outcome).inc()

    # ========== 健康记录（供 HealthMonitor 调用）==========

    def update_health(self, records: Mapping[str, HealthRecord]) -> None:
        """批量写入健康记录（一次加锁），已不存在的模块忽略"""
        with self._lock:
            for name, record in records.items():
                metadata = self._modules.get(name)
                if metadata is not None:
                    metadata.health = record

    def mark_error(self, name: str, message: str) -> bool:
        """
        loaded -> error

        仅供健康检查的自动转换使用；error 之后无法再启用/禁用。
        """
        with self._lock:
            metadata = self._modules.get(name)
            if metadata is None or metadata.status != ModuleState.LOADED:
                return False
            metadata.status = ModuleState.ERROR
            metadata.error = message
            self._refresh_status_gauge()

        self.events.publish(
            ModuleErrored(module_name=name, error=message, error_kind="health_check_failed")
        )
        return True

    # ========== 统计 ==========

    def get_statistics(self) -> RegistryStatistics:
        """
        聚合统计

        enabled（loaded 且启用）、errors（error 状态）、disabled（其余）三者之和等于 total。
        """
        with self._lock:
            stats = RegistryStatistics(total=len(self._modules))
            total_load_time = 0.0
            for metadata in self._modules.values():
                if metadata.active:
                    stats.enabled += 1
                elif metadata.status == ModuleState.ERROR:
                    stats.errors += 1
                else:
                    stats.disabled += 1

                category = metadata.config.category.value
                stats.by_category[category] = stats.by_category.get(category, 0) + 1
                status = metadata.status.value
                stats.by_status[status] = stats.by_status.get(status, 0) + 1

                stats.total_memory_usage += metadata.metrics.memory_usage
                total_load_time += metadata.metrics.load_time_ms

            if stats.total:
                stats.average_load_time_ms = total_load_time / stats.total
            return stats

    def _refresh_status_gauge(self) -> None:
        counts = {state: 0 for state in ModuleState}
        for metadata in self._modules.values():
            counts[metadata.status] += 1
        for state, count in counts.items():
            modules_by_status.labels(status=state.value).set(count)

    # ========== 测试隔离 ==========

    def clear(self) -> None:
        """
        清空全部模块和依赖图（仅用于测试）

        自建的 EventBus 会一并清空订阅；外部注入的 EventBus 保持不动。
        """
        with self._lock:
            self._modules.clear()
            self._graph.clear()
            self._ready = False
            self._refresh_status_gauge()
        if self._owns_event_bus:
            self.events.clear()
        self._mark_ready()
