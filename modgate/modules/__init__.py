"""
功能模块注册清单

所有应用模块在此按依赖顺序声明：
core -> feature -> integration -> experimental

清单顺序就是注册顺序，注册中心只校验、不重排。
"""

from __future__ import annotations

from typing import Any

from modgate.core.exceptions import ManifestRegistrationError
from modgate.core.feature_flags import FeatureFlagProvider
from modgate.core.logger import logger
from modgate.core.modules import ModuleConfig, ModuleRegistry, ModuleState, RegistrationReport
from modgate.modules.core import core_modules
from modgate.modules.experimental import experimental_modules
from modgate.modules.features import feature_modules
from modgate.modules.integrations import integration_modules


def build_manifest(flags: FeatureFlagProvider) -> list[ModuleConfig]:
    """按依赖顺序生成全部模块配置（请求的 enabled 依赖当前开关）"""
    return [
        *core_modules(flags),
        *feature_modules(flags),
        *integration_modules(flags),
        *experimental_modules(flags),
    ]


def register_modules(
    registry: ModuleRegistry,
    manifest: list[ModuleConfig] | None = None,
) -> RegistrationReport:
    """
    注册全部应用模块

    每个模块都会尝试注册；任一失败时在全部尝试结束后抛出 ManifestRegistrationError，
    已成功注册的模块保留。
    """
    configs = manifest if manifest is not None else build_manifest(registry.flags)
    logger.info("Registering {} application modules...", len(configs))

    report = registry.register_many(configs)

    stats = registry.get_statistics()
    logger.info(
        "Module statistics: total={}, enabled={}, disabled={}, errors={}, categories={}",
        stats.total,
        stats.enabled,
        stats.disabled,
        stats.errors,
        stats.by_category,
    )

    if not report.ok:
        logger.error("Failed to register modules: {}", report.failed_names())
        raise ManifestRegistrationError(report.failed)

    logger.info("All modules registered successfully")
    return report


def get_module_status(registry: ModuleRegistry) -> dict[str, Any]:
    """模块状态摘要：统计 + 各状态的模块名"""
    modules = registry.get_all_modules()
    return {
        "statistics": registry.get_statistics().to_dict(),
        "enabled_modules": [m.name for m in modules if m.active],
        "disabled_modules": [
            m.name for m in modules if not m.active and m.status != ModuleState.ERROR
        ],
        "error_modules": [m.name for m in modules if m.status == ModuleState.ERROR],
    }


__all__ = ["build_manifest", "get_module_status", "register_modules"]
