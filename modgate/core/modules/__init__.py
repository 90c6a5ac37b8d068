"""
模块化系统核心

提供运行时功能模块管理，支持：
- 声明式模块注册（依赖先于依赖方注册）
- 依赖图环检测与安全禁用检查
- 功能开关硬门控
- 健康检查与生命周期事件
"""

from modgate.core.modules.base import (
    HealthRecord,
    ModuleCategory,
    ModuleConfig,
    ModuleHealth,
    ModuleMetadata,
    ModuleMetrics,
    ModuleRequirements,
    ModuleState,
    OperationResult,
    RegistrationFailure,
    RegistrationReport,
    RegistryStatistics,
)
from modgate.core.modules.events import (
    EventBus,
    ModuleDisabled,
    ModuleEnabled,
    ModuleErrored,
    ModuleEvent,
    ModuleEventKind,
    ModuleHealthChecked,
    ModuleRegistered,
    RegistryReady,
    install_logging_handlers,
)
from modgate.core.modules.graph import DependencyGraph
from modgate.core.modules.health import HealthMonitor
from modgate.core.modules.registry import ModuleRegistry

__all__ = [
    "DependencyGraph",
    "EventBus",
    "HealthMonitor",
    "HealthRecord",
    "ModuleCategory",
    "ModuleConfig",
    "ModuleDisabled",
    "ModuleEnabled",
    "ModuleErrored",
    "ModuleEvent",
    "ModuleEventKind",
    "ModuleHealth",
    "ModuleHealthChecked",
    "ModuleMetadata",
    "ModuleMetrics",
    "ModuleRegistered",
    "ModuleRegistry",
    "ModuleRequirements",
    "ModuleState",
    "OperationResult",
    "RegistrationFailure",
    "RegistrationReport",
    "RegistryReady",
    "RegistryStatistics",
    "install_logging_handlers",
]
