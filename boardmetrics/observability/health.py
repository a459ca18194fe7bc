"""
Health Check — Status of the metrics pipeline for monitoring.

## Usage

    from boardmetrics.observability.health import HealthChecker

    checker = HealthChecker(metrics, updater)
    status = checker.check()

    if status.healthy:
        print("All systems operational")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .metrics import Metrics, metrics_or_null
from .updater import MetricsUpdater

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SystemHealth:
    """Overall system health status."""

    status: HealthStatus
    timestamp: str
    uptime_seconds: float
    components: List[ComponentHealth]

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp,
            "uptime_seconds": self.uptime_seconds,
            "healthy": self.healthy,
            "components": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                    "details": c.details,
                }
                for c in self.components
            ],
        }


class HealthChecker:
    """
    Checks the metrics registry and the count updater.

    An updater is optional; without one only the registry is checked.
    """

    def __init__(
        self,
        metrics: Optional[Metrics],
        updater: Optional[MetricsUpdater] = None,
    ):
        self.metrics = metrics_or_null(metrics)
        self.updater = updater
        self._start_time = time.time()

    def check(self) -> SystemHealth:
        """Run all health checks and return status."""
        components = [self._check_registry()]
        if self.updater is not None:
            components.append(self._check_updater())

        statuses = [c.status for c in components]
        if HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY

        return SystemHealth(
            status=overall,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            uptime_seconds=time.time() - self._start_time,
            components=components,
        )

    def _check_registry(self) -> ComponentHealth:
        """Check the registry renders."""
        if not self.metrics.enabled:
            return ComponentHealth(
                name="metrics_registry",
                status=HealthStatus.DEGRADED,
                message="Metrics disabled",
            )

        start = time.time()
        try:
            payload = self.metrics.export_prometheus()
        except Exception as e:
            logger.error(f"Metrics exposition failed: {e}")
            return ComponentHealth(
                name="metrics_registry",
                status=HealthStatus.UNHEALTHY,
                message=f"Exposition failed: {e}",
            )

        return ComponentHealth(
            name="metrics_registry",
            status=HealthStatus.HEALTHY,
            message="Exposition rendered",
            latency_ms=(time.time() - start) * 1000,
            details={"size_bytes": len(payload)},
        )

    def _check_updater(self) -> ComponentHealth:
        """Check the count updater ran recently and without error."""
        updater = self.updater
        details: Dict[str, Any] = {
            "running": updater.running,
            "run_count": updater.run_count,
            "interval_seconds": updater.interval_seconds,
        }

        if updater.last_error:
            return ComponentHealth(
                name="metrics_updater",
                status=HealthStatus.UNHEALTHY,
                message=f"Last refresh failed: {updater.last_error}",
                details=details,
            )

        if updater.last_run_at is None:
            return ComponentHealth(
                name="metrics_updater",
                status=HealthStatus.DEGRADED,
                message="Counts not refreshed yet",
                details=details,
            )

        age = time.time() - updater.last_run_at
        details["last_run_age_seconds"] = round(age, 1)
        if age > 2 * updater.interval_seconds:
            return ComponentHealth(
                name="metrics_updater",
                status=HealthStatus.DEGRADED,
                message=f"Counts stale ({age:.0f}s old)",
                details=details,
            )

        return ComponentHealth(
            name="metrics_updater",
            status=HealthStatus.HEALTHY,
            message="Counts up to date",
            details=details,
        )
