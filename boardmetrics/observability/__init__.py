"""
Observability Module — Metrics, count updater, and health checks.
"""

from .health import ComponentHealth, HealthChecker, HealthStatus, SystemHealth
from .metrics import (
    InstanceInfo,
    MetricsRegistrationError,
    MetricsRegistry,
    NullMetrics,
    metrics_or_null,
)
from .updater import (
    CountSnapshot,
    CountSource,
    FileCountSource,
    MetricsUpdater,
    StaticCountSource,
)

__all__ = [
    "InstanceInfo",
    "MetricsRegistry",
    "MetricsRegistrationError",
    "NullMetrics",
    "metrics_or_null",
    "MetricsUpdater",
    "CountSnapshot",
    "CountSource",
    "StaticCountSource",
    "FileCountSource",
    "HealthChecker",
    "HealthStatus",
    "SystemHealth",
    "ComponentHealth",
]
