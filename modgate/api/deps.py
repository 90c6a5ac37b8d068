"""
FastAPI 依赖

注册中心等组件挂在 app.state 上，由 create_app 显式创建，
路由通过依赖获取，不访问全局实例。
"""

from fastapi import Request

from modgate.core.modules import HealthMonitor, ModuleRegistry


def get_registry(request: Request) -> ModuleRegistry:
    return request.app.state.module_registry


def get_health_monitor(request: Request) -> HealthMonitor:
    return request.app.state.health_monitor
