"""
功能开关

注册中心只依赖 is_enabled(flag) -> bool，提供两种实现：
- StaticFeatureFlagProvider：内存字典，可在运行时修改（测试、管理端覆盖）
- EnvFeatureFlagProvider：启动时读取 FEATURE_* 环境变量并缓存，reload() 重新读取，
  查询路径不访问环境变量
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from modgate.core.logger import logger

_TRUE_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off", "disabled"})


@runtime_checkable
class FeatureFlagProvider(Protocol):
    """功能开关查询接口（同步）"""

    def is_enabled(self, flag: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class FeatureFlagDefinition:
    name: str
    env_key: str
    default: bool
    category: str


FEATURE_FLAG_DEFINITIONS: tuple[FeatureFlagDefinition, ...] = (
    # 核心功能
    FeatureFlagDefinition("real_time_collaboration", "FEATURE_REALTIME", False, "core"),
    FeatureFlagDefinition("advanced_reporting", "FEATURE_REPORTING", True, "core"),
    FeatureFlagDefinition("ai_personalization", "FEATURE_AI", False, "core"),
    FeatureFlagDefinition("mobile_optimization", "FEATURE_MOBILE", True, "core"),
    # 安全
    FeatureFlagDefinition("two_factor_auth", "FEATURE_2FA", False, "security"),
    FeatureFlagDefinition("audit_logging", "FEATURE_AUDIT", True, "security"),
    FeatureFlagDefinition("rate_limiting", "FEATURE_RATE_LIMIT", True, "security"),
    FeatureFlagDefinition("input_validation", "FEATURE_INPUT_VALIDATION", True, "security"),
    # 性能
    FeatureFlagDefinition("caching", "FEATURE_CACHE", True, "performance"),
    FeatureFlagDefinition("lazy_loading", "FEATURE_LAZY_LOAD", True, "performance"),
    FeatureFlagDefinition("image_optimization", "FEATURE_IMAGE_OPT", True, "performance"),
    FeatureFlagDefinition("database_optimization", "FEATURE_DB_OPT", True, "performance"),
    # 用户体验
    FeatureFlagDefinition("dark_mode", "FEATURE_DARK_MODE", False, "user_experience"),
    FeatureFlagDefinition(
        "accessibility_enhancements", "FEATURE_A11Y", True, "user_experience"
    ),
    FeatureFlagDefinition("offline_support", "FEATURE_OFFLINE", False, "user_experience"),
    FeatureFlagDefinition("push_notifications", "FEATURE_PUSH", False, "user_experience"),
    # 开发
    FeatureFlagDefinition("beta_features", "FEATURE_BETA", False, "development"),
    FeatureFlagDefinition("debug_mode", "FEATURE_DEBUG", False, "development"),
    FeatureFlagDefinition("performance_monitoring", "FEATURE_PERF_MON", True, "development"),
    FeatureFlagDefinition("error_tracking", "FEATURE_ERROR_TRACK", True, "development"),
    # 集成
    FeatureFlagDefinition("email_notifications", "FEATURE_EMAIL", False, "integration"),
    FeatureFlagDefinition("sms_notifications", "FEATURE_SMS", False, "integration"),
    FeatureFlagDefinition(
        "third_party_integrations", "FEATURE_THIRD_PARTY", False, "integration"
    ),
    FeatureFlagDefinition("webhook_support", "FEATURE_WEBHOOKS", False, "integration"),
)


def parse_flag_value(raw: str | None, default: bool) -> bool:
    """解析环境变量取值，无法识别时使用 default"""
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Invalid feature flag value: {!r}. Using default: {}", raw, default)
    return default


class StaticFeatureFlagProvider:
    """内存功能开关，未定义的开关视为关闭"""

    def __init__(self, flags: Mapping[str, bool] | None = None) -> None:
        self._flags: dict[str, bool] = dict(flags or {})
        self._lock = threading.Lock()

    def is_enabled(self, flag: str) -> bool:
        return self._flags.get(flag, False)

    def set_flag(self, flag: str, enabled: bool) -> None:
        with self._lock:
            self._flags[flag] = bool(enabled)

    def set_flags(self, flags: Mapping[str, bool]) -> None:
        with self._lock:
            self._flags.update({k: bool(v) for k, v in flags.items()})

    def get_all_flags(self) -> dict[str, bool]:
        return dict(self._flags)


class EnvFeatureFlagProvider:
    """基于 FEATURE_* 环境变量的功能开关（带缓存）"""

    def __init__(
        self,
        definitions: Iterable[FeatureFlagDefinition] = FEATURE_FLAG_DEFINITIONS,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.definitions = {d.name: d for d in definitions}
        self._environ = environ
        self._values: dict[str, bool] = {}
        self._lock = threading.Lock()
        self.reload()

    def reload(self) -> None:
        environ = self._environ if self._environ is not None else os.environ
        values = {
            name: parse_flag_value(environ.get(d.env_key), d.default)
            for name, d in self.definitions.items()
        }
        # 未显式配置时，debug_mode 在开发环境默认打开
        debug = self.definitions.get("debug_mode")
        if debug is not None and debug.env_key not in environ:
            values["debug_mode"] = environ.get("ENVIRONMENT", "development") == "development"
        with self._lock:
            self._values = values

    def is_enabled(self, flag: str) -> bool:
        return self._values.get(flag, False)

    def get_all_flags(self) -> dict[str, bool]:
        return dict(self._values)

    def get_enabled_flags(self) -> list[str]:
        return [name for name, enabled in self._values.items() if enabled]


def validate_feature_flags(provider: FeatureFlagProvider, environment: str) -> list[str]:
    """返回配置警告列表，空列表表示配置合理"""
    warnings: list[str] = []

    if environment == "production":
        if provider.is_enabled("debug_mode"):
            warnings.append("Debug mode should not be enabled in production")
        if provider.is_enabled("beta_features"):
            warnings.append("Beta features should not be enabled in production")

    if provider.is_enabled("real_time_collaboration") and not provider.is_enabled("caching"):
        warnings.append("Real-time collaboration requires caching to be enabled")

    if provider.is_enabled("push_notifications") and not provider.is_enabled(
        "email_notifications"
    ):
        warnings.append("Push notifications typically require email notifications as fallback")

    return warnings


def feature_flag_analytics(
    provider: FeatureFlagProvider,
    definitions: Iterable[FeatureFlagDefinition] = FEATURE_FLAG_DEFINITIONS,
) -> dict[str, Any]:
    """已启用开关的总数与分类统计"""
    defs = list(definitions)
    enabled = [d for d in defs if provider.is_enabled(d.name)]
    by_category: dict[str, int] = {}
    for d in defs:
        by_category.setdefault(d.category, 0)
        if provider.is_enabled(d.name):
            by_category[d.category] += 1

    total = len(defs)
    return {
        "total_flags": total,
        "enabled_flags": len(enabled),
        "disabled_flags": total - len(enabled),
        "enabled_percentage": round(len(enabled) / total * 100) if total else 0,
        "flags_by_category": by_category,
    }
