"""
模块生命周期事件

事件种类是封闭枚举；每个事件是只携带自身字段的不可变 dataclass，
EventBus 通过 match 把事件映射到种类后分发给订阅者。
单个订阅者抛错只记录日志，不影响同一事件的其余订阅者。
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Union

from modgate.core.logger import logger
from modgate.core.modules.base import HealthRecord, utc_now


class ModuleEventKind(str, Enum):
    """事件种类"""

    REGISTERED = "module:registered"
    ENABLED = "module:enabled"
    DISABLED = "module:disabled"
    ERROR = "module:error"
    HEALTH_CHECKED = "module:health-check"
    READY = "registry:ready"


class EventLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ModuleRegistered:
    module_name: str
    version: str
    dependencies: tuple[str, ...]
    enabled: bool
    load_time_ms: float
    level: EventLevel = EventLevel.INFO
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ModuleEnabled:
    module_name: str
    version: str
    dependencies: tuple[str, ...]
    level: EventLevel = EventLevel.INFO
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ModuleDisabled:
    module_name: str
    version: str
    reason: str  # manual / feature_gated
    missing_features: tuple[str, ...] = ()
    level: EventLevel = EventLevel.INFO
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ModuleErrored:
    module_name: str
    error: str
    error_kind: str
    level: EventLevel = EventLevel.ERROR
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ModuleHealthChecked:
    module_name: str
    health: HealthRecord
    level: EventLevel = EventLevel.INFO
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class RegistryReady:
    registry_version: str
    level: EventLevel = EventLevel.INFO
    timestamp: datetime = field(default_factory=utc_now)


ModuleEvent = Union[
    ModuleRegistered,
    ModuleEnabled,
    ModuleDisabled,
    ModuleErrored,
    ModuleHealthChecked,
    RegistryReady,
]

EventHandler = Callable[[ModuleEvent], Any]


def event_kind(event: ModuleEvent) -> ModuleEventKind:
    """事件 -> 种类"""
    match event:
        case ModuleRegistered():
            return ModuleEventKind.REGISTERED
        case ModuleEnabled():
            return ModuleEventKind.ENABLED
        case ModuleDisabled():
            return ModuleEventKind.DISABLED
        case ModuleErrored():
            return ModuleEventKind.ERROR
        case ModuleHealthChecked():
            return ModuleEventKind.HEALTH_CHECKED
        case RegistryReady():
            return ModuleEventKind.READY
    raise TypeError(f"Unsupported module event: {type(event).__name__}")


class EventBus:
    """进程内发布/订阅"""

    def __init__(self) -> None:
        self._handlers: dict[ModuleEventKind, list[EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, kind: ModuleEventKind, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.setdefault(kind, []).append(handler)

    def unsubscribe(self, kind: ModuleEventKind, handler: EventHandler) -> bool:
        with self._lock:
            handlers = self._handlers.get(kind)
            if not handlers or handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def subscriber_count(self, kind: ModuleEventKind) -> int:
        with self._lock:
            return len(self._handlers.get(kind, ()))

    def publish(self, event: ModuleEvent) -> int:
        """
        分发事件，返回成功处理的订阅者数量

        订阅者列表先复制再在锁外调用，订阅者可以安全地重入注册中心或增删订阅。
        """
        kind = event_kind(event)
        with self._lock:
            handlers = list(self._handlers.get(kind, ()))

        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.exception("Error in event handler for {}: {}", kind.value, e)
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()


def _log_event(event: ModuleEvent) -> None:
    match event:
        case ModuleErrored(module_name=name, error=error):
            logger.error("Module error in {}: {}", name, error)
        case ModuleEnabled(module_name=name):
            logger.info("Module enabled: {}", name)
        case ModuleDisabled(module_name=name, reason="feature_gated", missing_features=missing):
            logger.warning(
                "Module {} disabled: required feature(s) not enabled: {}",
                name,
                ", ".join(missing),
            )
        case ModuleDisabled(module_name=name, reason=reason):
            logger.info("Module disabled: {} ({})", name, reason)


def install_logging_handlers(bus: EventBus) -> None:
    """挂载默认的日志订阅者"""
    for kind in (ModuleEventKind.ERROR, ModuleEventKind.ENABLED, ModuleEventKind.DISABLED):
        bus.subscribe(kind, _log_event)
