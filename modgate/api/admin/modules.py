"""模块管理 API 端点"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from modgate.api.deps import get_health_monitor, get_registry
from modgate.core.exceptions import ModuleErrorKind
from modgate.core.modules import HealthMonitor, ModuleMetadata, ModuleRegistry
from modgate.core.modules.base import sort_by_priority

router = APIRouter(prefix="/api/admin/modules", tags=["Admin - Modules"])


# ========== Response Models ==========


class ModuleHealthResponse(BaseModel):
    """模块健康状态"""

    status: str
    last_check: str
    details: Dict[str, Any]


class ModuleStatusResponse(BaseModel):
    """模块状态响应"""

    name: str
    version: str
    description: str
    category: str
    priority: int
    dependencies: List[str]
    dependents: List[str]
    required_features: List[str]
    optional_features: List[str]
    enabled: bool
    active: bool
    status: str
    error: Optional[str]
    access_count: int
    load_time_ms: float
    memory_usage: int
    health: Optional[ModuleHealthResponse]

    @classmethod
    def from_metadata(
        cls, metadata: ModuleMetadata, dependents: List[str]
    ) -> "ModuleStatusResponse":
        data = metadata.to_dict()
        metrics = data.pop("metrics")
        return cls(
            name=data["name"],
            version=data["version"],
            description=data["description"],
            category=data["category"],
            priority=data["priority"],
            dependencies=data["dependencies"],
            dependents=dependents,
            required_features=data["required_features"],
            optional_features=data["optional_features"],
            enabled=data["enabled"],
            active=data["active"],
            status=data["status"],
            error=data["error"],
            access_count=metrics["access_count"],
            load_time_ms=metrics["load_time_ms"],
            memory_usage=metrics["memory_usage"],
            health=ModuleHealthResponse(**data["health"]) if data["health"] else None,
        )


class RegistryStatisticsResponse(BaseModel):
    """注册中心统计"""

    total: int
    enabled: int
    disabled: int
    errors: int
    by_category: Dict[str, int]
    by_status: Dict[str, int]
    total_memory_usage: int
    average_load_time_ms: float


class SetModuleEnabledRequest(BaseModel):
    """设置模块启用状态请求"""

    enabled: bool


def _status_response(registry: ModuleRegistry, name: str) -> ModuleStatusResponse:
    metadata = registry.get_module(name)
    if metadata is None:
        raise HTTPException(
            status_code=404,
            detail={"kind": ModuleErrorKind.MODULE_NOT_FOUND.value, "module": name},
        )
    return ModuleStatusResponse.from_metadata(metadata, registry.get_dependents(name))


# ========== API Endpoints ==========


@router.get("/status", response_model=List[ModuleStatusResponse])
async def get_all_modules_status(registry: ModuleRegistry = Depends(get_registry)):
    """
    获取所有模块状态

    按 priority 降序返回（仅用于展示，注册中心本身不使用 priority）。
    """
    modules = {m.name: m for m in registry.get_all_modules()}
    ordered = sort_by_priority(m.config for m in modules.values())
    return [
        ModuleStatusResponse.from_metadata(modules[c.name], registry.get_dependents(c.name))
        for c in ordered
    ]


@router.get("/statistics", response_model=RegistryStatisticsResponse)
async def get_registry_statistics(registry: ModuleRegistry = Depends(get_registry)):
    """获取注册中心聚合统计"""
    return RegistryStatisticsResponse(**registry.get_statistics().to_dict())


@router.get("/status/{module_name}", response_model=ModuleStatusResponse)
async def get_module_status(module_name: str, registry: ModuleRegistry = Depends(get_registry)):
    """
    获取单个模块状态

    **路径参数**:
    - `module_name`: 模块名称
    """
    return _status_response(registry, module_name)


@router.post("/status/{module_name}/health-check", response_model=ModuleHealthResponse)
async def check_module_health(
    module_name: str, monitor: HealthMonitor = Depends(get_health_monitor)
):
    """立即对指定模块执行一次健康检查"""
    record = monitor.check_module(module_name)
    if record is None:
        raise HTTPException(
            status_code=404,
            detail={"kind": ModuleErrorKind.MODULE_NOT_FOUND.value, "module": module_name},
        )
    return ModuleHealthResponse(**record.to_dict())


@router.put("/status/{module_name}/enabled", response_model=ModuleStatusResponse)
async def set_module_enabled(
    module_name: str,
    body: SetModuleEnabledRequest,
    registry: ModuleRegistry = Depends(get_registry),
):
    """
    设置模块启用状态

    启用要求依赖已启用且必需开关打开；禁用要求没有已启用的依赖方。

    **请求体**:
    - `enabled`: 是否启用

    **错误**:
    - 404: 模块不存在
    - 409: 依赖/开关/依赖方校验未通过，detail.kind 为错误种类
    """
    result = registry.enable(module_name) if body.enabled else registry.disable(module_name)
    if not result.ok:
        assert result.error is not None
        status_code = 404 if result.error.kind == ModuleErrorKind.MODULE_NOT_FOUND else 409
        raise HTTPException(status_code=status_code, detail=result.error.to_dict())
    return _status_response(registry, module_name)
