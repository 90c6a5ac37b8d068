"""
模块注册中心错误定义

注册期结构错误（重复、未知依赖、循环依赖、配置校验）直接抛出；
启用/禁用的操作错误由 OperationResult 携带返回，不抛出。
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from modgate.core.modules.base import RegistrationFailure


class ModuleErrorKind(str, Enum):
    """错误种类"""

    VALIDATION = "validation_error"
    DUPLICATE_MODULE = "duplicate_module"
    UNKNOWN_DEPENDENCY = "unknown_dependency"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    MODULE_NOT_FOUND = "module_not_found"
    DEPENDENCY_NOT_ENABLED = "dependency_not_enabled"
    REQUIRED_FEATURE_DISABLED = "required_feature_disabled"
    DEPENDENTS_STILL_ENABLED = "dependents_still_enabled"
    MODULE_IN_ERROR = "module_in_error"
    MANIFEST_REGISTRATION = "manifest_registration"


class ModuleRegistryError(Exception):
    """模块注册中心错误基类"""

    kind: ModuleErrorKind

    def __init__(
        self,
        message: str,
        module_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.module_name = module_name
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "module": self.module_name,
            "details": self.details,
        }


# ========== 注册期错误 ==========


class ModuleValidationError(ModuleRegistryError):
    """模块配置格式错误"""

    kind = ModuleErrorKind.VALIDATION


class DuplicateModuleError(ModuleRegistryError):
    """模块名已注册"""

    kind = ModuleErrorKind.DUPLICATE_MODULE

    def __init__(self, module_name: str):
        super().__init__(f"Module {module_name} is already registered", module_name)


class UnknownDependencyError(ModuleRegistryError):
    """依赖的模块尚未注册"""

    kind = ModuleErrorKind.UNKNOWN_DEPENDENCY

    def __init__(self, module_name: str, dependency: str):
        super().__init__(
            f"Dependency {dependency} not found for module {module_name}",
            module_name,
            {"dependency": dependency},
        )
        self.dependency = dependency


class CircularDependencyError(ModuleRegistryError):
    """注册后会形成依赖环"""

    kind = ModuleErrorKind.CIRCULAR_DEPENDENCY

    def __init__(self, module_name: str, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"Circular dependency detected for module {module_name}: "
            f"{' -> '.join(self.cycle)}",
            module_name,
            {"cycle": self.cycle},
        )


# ========== 运行期操作错误（通过 OperationResult 返回）==========


class ModuleNotRegisteredError(ModuleRegistryError):
    """模块不存在"""

    kind = ModuleErrorKind.MODULE_NOT_FOUND

    def __init__(self, module_name: str):
        super().__init__(f"Module {module_name} not found", module_name)


class DependencyNotEnabledError(ModuleRegistryError):
    """依赖模块未启用"""

    kind = ModuleErrorKind.DEPENDENCY_NOT_ENABLED

    def __init__(self, module_name: str, dependency: str):
        super().__init__(
            f"Cannot enable {module_name}: dependency {dependency} is not enabled",
            module_name,
            {"dependency": dependency},
        )
        self.dependency = dependency


class RequiredFeatureDisabledError(ModuleRegistryError):
    """必需的功能开关处于关闭状态"""

    kind = ModuleErrorKind.REQUIRED_FEATURE_DISABLED

    def __init__(self, module_name: str, feature: str):
        super().__init__(
            f"Cannot enable {module_name}: required feature {feature} is not enabled",
            module_name,
            {"feature": feature},
        )
        self.feature = feature


class DependentsStillEnabledError(ModuleRegistryError):
    """仍有已启用的模块依赖它"""

    kind = ModuleErrorKind.DEPENDENTS_STILL_ENABLED

    def __init__(self, module_name: str, dependents: Sequence[str]):
        self.dependents = sorted(dependents)
        super().__init__(
            f"Cannot disable {module_name}: enabled modules depend on it "
            f"({', '.join(self.dependents)})",
            module_name,
            {"dependents": self.dependents},
        )


class ModuleInErrorStateError(ModuleRegistryError):
    """模块处于 error 状态，不再接受启用/禁用"""

    kind = ModuleErrorKind.MODULE_IN_ERROR

    def __init__(self, module_name: str, reason: str):
        super().__init__(
            f"Module {module_name} is in error state: {reason}",
            module_name,
            {"reason": reason},
        )


class ManifestRegistrationError(ModuleRegistryError):
    """清单中有模块注册失败（其余模块已尝试注册）"""

    kind = ModuleErrorKind.MANIFEST_REGISTRATION

    def __init__(self, failures: Sequence[RegistrationFailure]):
        self.failures = list(failures)
        names = [f.module_name or f"<invalid:{f.index}>" for f in self.failures]
        super().__init__(
            f"{len(self.failures)} module(s) failed to register: {', '.join(names)}",
            details={"failures": [f.to_dict() for f in self.failures]},
        )

