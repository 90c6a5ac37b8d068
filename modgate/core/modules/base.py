"""
模块基础定义

包含模块配置、运行时元数据、健康记录和统计结果的数据结构
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from modgate.core.exceptions import ModuleRegistryError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ModuleCategory(str, Enum):
    """模块分类"""

    CORE = "core"  # 系统核心
    FEATURE = "feature"  # 业务功能
    INTEGRATION = "integration"  # 第三方集成
    EXPERIMENTAL = "experimental"  # 实验功能


class ModuleState(str, Enum):
    """
    模块生命周期状态

    loading -> loaded | error        注册期间（loading 仅在注册锁内出现）
    loaded <-> disabled              enable / disable
    loaded -> error                  健康检查自动转换（可选）
    unloading                        保留状态，当前不会进入
    """

    LOADING = "loading"
    LOADED = "loaded"
    DISABLED = "disabled"
    ERROR = "error"
    UNLOADING = "unloading"


class ModuleHealth(str, Enum):
    """模块健康状态（仅作参考，不影响启用状态）"""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def _as_tuple(value: Any) -> Any:
    # 字符串本身可迭代，不做转换，留给注册校验报错
    if isinstance(value, (list, set, frozenset)):
        return tuple(value)
    return value


def _as_frozenset(value: Any) -> Any:
    if isinstance(value, (list, tuple, set)):
        return frozenset(value)
    return value


@dataclass(frozen=True)
class ModuleRequirements:
    """最低运行要求（描述性）"""

    runtime_version: Optional[str] = None
    memory_mb: Optional[int] = None
    features: tuple[str, ...] = ()


@dataclass(frozen=True)
class ModuleConfig:
    """
    模块配置 - 调用方提交的注册意图，不可变

    required_features / optional_features 为 None 表示未声明，
    与空集合区分；消费方统一使用 required_feature_set() 等方法读取。
    priority 只是给清单编写者的加载顺序提示，注册中心自身从不使用。
    """

    # 基本信息
    name: str  # 唯一标识: core, fee-management
    version: str  # 语义化版本: 1.0.0

    # 依赖
    dependencies: tuple[str, ...] = ()
    required_features: Optional[frozenset[str]] = None
    optional_features: Optional[frozenset[str]] = None

    # 分类与排序提示
    category: ModuleCategory = ModuleCategory.FEATURE
    priority: int = 0

    # 请求的初始状态
    enabled: bool = True

    # 描述信息
    description: str = ""
    routes: tuple[str, ...] = ()
    components: tuple[str, ...] = ()
    services: tuple[str, ...] = ()
    author: Optional[str] = None
    license: Optional[str] = None
    requirements: Optional[ModuleRequirements] = None

    def __post_init__(self) -> None:
        for name in ("dependencies", "routes", "components", "services"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))
        for name in ("required_features", "optional_features"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _as_frozenset(value))

    def required_feature_set(self) -> frozenset[str]:
        return self.required_features if self.required_features is not None else frozenset()

    def optional_feature_set(self) -> frozenset[str]:
        return self.optional_features if self.optional_features is not None else frozenset()


@dataclass
class ModuleMetrics:
    """模块运行指标"""

    load_time_ms: float = 0.0
    memory_usage: int = 0  # 估算字节数
    access_count: int = 0
    last_accessed: Optional[datetime] = None


@dataclass
class HealthRecord:
    """一次健康检查的结果"""

    status: ModuleHealth
    last_check: datetime = field(default_factory=utc_now)
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "last_check": self.last_check.isoformat(),
            "details": dict(self.details),
        }


@dataclass
class ModuleMetadata:
    """
    模块运行时元数据 - 注册中心独占修改权

    config.enabled 反映当前启用意图，enable/disable 时整体替换 config；
    error 仅在 status == ERROR 时有值。
    """

    config: ModuleConfig
    status: ModuleState
    loaded_at: datetime = field(default_factory=utc_now)
    error: Optional[str] = None
    metrics: ModuleMetrics = field(default_factory=ModuleMetrics)
    health: Optional[HealthRecord] = None

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def active(self) -> bool:
        return self.status == ModuleState.LOADED and self.config.enabled

    def to_dict(self) -> dict[str, Any]:
        cfg = self.config
        return {
            "name": cfg.name,
            "version": cfg.version,
            "description": cfg.description,
            "category": cfg.category.value,
            "priority": cfg.priority,
            "dependencies": list(cfg.dependencies),
            "required_features": sorted(cfg.required_feature_set()),
            "optional_features": sorted(cfg.optional_feature_set()),
            "enabled": cfg.enabled,
            "active": self.active,
            "status": self.status.value,
            "error": self.error,
            "loaded_at": self.loaded_at.isoformat(),
            "metrics": {
                "load_time_ms": self.metrics.load_time_ms,
                "memory_usage": self.metrics.memory_usage,
                "access_count": self.metrics.access_count,
                "last_accessed": (
                    self.metrics.last_accessed.isoformat() if self.metrics.last_accessed else None
                ),
            },
            "health": self.health.to_dict() if self.health else None,
        }


@dataclass
class RegistryStatistics:
    """注册中心聚合统计"""

    total: int = 0
    enabled: int = 0
    disabled: int = 0
    errors: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)
    total_memory_usage: int = 0
    average_load_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "enabled": self.enabled,
            "disabled": self.disabled,
            "errors": self.errors,
            "by_category": dict(self.by_category),
            "by_status": dict(self.by_status),
            "total_memory_usage": self.total_memory_usage,
            "average_load_time_ms": self.average_load_time_ms,
        }


@dataclass(frozen=True)
class OperationResult:
    """enable/disable 的结果：失败时携带类型化错误，而不是抛出"""

    module_name: str
    ok: bool
    error: Optional["ModuleRegistryError"] = None
    changed: bool = False

    @classmethod
    def success(cls, module_name: str, changed: bool = True) -> OperationResult:
        return cls(module_name=module_name, ok=True, changed=changed)

    @classmethod
    def failure(cls, module_name: str, error: "ModuleRegistryError") -> OperationResult:
        return cls(module_name=module_name, ok=False, error=error)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class RegistrationFailure:
    """批量注册中的一次失败，按清单位置记录（同名模块可能失败多次）"""

    index: int
    module_name: Optional[str]  # 配置无合法名称时为 None
    error: "ModuleRegistryError"

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, **self.error.to_dict(), "module": self.module_name}


@dataclass
class RegistrationReport:
    """批量注册结果"""

    registered: list[str] = field(default_factory=list)
    failed: list[RegistrationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def failed_names(self) -> list[str]:
        return [f.module_name or f"<invalid:{f.index}>" for f in self.failed]


def estimate_memory_usage(config: ModuleConfig) -> int:
    """按模块规模粗略估算内存占用（字节）"""
    estimate = 1024
    estimate += len(config.routes) * 512
    estimate += len(config.components) * 2048
    estimate += len(config.services) * 4096
    estimate += len(config.dependencies) * 256
    return estimate


def sort_by_priority(configs: Iterable[ModuleConfig]) -> list[ModuleConfig]:
    """按 priority 降序排列（同优先级保持原顺序），仅用于展示"""
    return sorted(configs, key=lambda c: -c.priority)
