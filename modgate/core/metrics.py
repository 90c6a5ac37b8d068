"""
模块注册中心 Prometheus 指标
"""

from prometheus_client import Counter, Gauge, Histogram

# 模块注册结果
module_registration_total = Counter(
    "module_registration_total",
    "Total number of module registration attempts",
    ["outcome"],  # outcome: success / error kind value
)

# 启用/禁用操作结果
module_state_change_total = Counter(
    "module_state_change_total",
    "Total number of module enable/disable operations",
    ["action", "outcome"],  # action: enable/disable
)

# 当前各状态模块数
modules_by_status = Gauge(
    "modules_by_status",
    "Current number of registered modules per status",
    ["status"],
)

# 健康检查结果
module_health_check_total = Counter(
    "module_health_check_total",
    "Total number of module health checks",
    ["health"],
)

module_health_sweep_duration_seconds = Histogram(
    "module_health_sweep_duration_seconds",
    "Duration of a full module health sweep in seconds",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1],
)
