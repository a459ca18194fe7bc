"""
Metrics — Prometheus instruments for the board server.

Registers counters and gauges for logins, block inserts/deletes,
block and workspace counts, plus process and runtime collectors.
Every registry owns its own ``CollectorRegistry``; nothing is
registered on the prometheus_client global default.

## Usage

    from boardmetrics.observability.metrics import InstanceInfo, MetricsRegistry

    metrics = MetricsRegistry(InstanceInfo(version="7.1.0", build_num="42"))

    metrics.increment_login_count(1)
    metrics.observe_block_count("card", 120)

    # Export for Prometheus
    output = metrics.export_prometheus()

Calling code that may run with metrics disabled should hold an
``Optional[MetricsRegistry]`` and go through ``metrics_or_null()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

logger = logging.getLogger(__name__)


METRICS_NAMESPACE = "focalboard"
METRICS_SUBSYSTEM_BLOCKS = "blocks"
METRICS_SUBSYSTEM_WORKSPACES = "workspaces"
METRICS_SUBSYSTEM_SYSTEM = "system"

METRICS_CLOUD_INSTALLATION_LABEL = "installationId"
INSTALLATION_ID_ENV = "MM_CLOUD_INSTALLATION_ID"


class MetricsRegistrationError(RuntimeError):
    """An instrument or collector could not be registered."""


@dataclass(frozen=True)
class InstanceInfo:
    """Static snapshot of the running build."""

    version: str = ""
    build_num: str = ""
    edition: str = ""
    installation_id: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "version": self.version,
            "build_num": self.build_num,
            "edition": self.edition,
            "installation_id": self.installation_id,
        }


class MetricsRegistry:
    """
    Owns the server's instruments and exposes narrow update methods.

    Registration is fail-fast: a duplicate or invalid instrument raises
    MetricsRegistrationError from the constructor.
    """

    enabled = True

    def __init__(
        self,
        info: InstanceInfo,
        registry: Optional[CollectorRegistry] = None,
    ):
        self.info = info
        self._registry = registry if registry is not None else CollectorRegistry()

        self._const_labels: Dict[str, str] = {}
        if info.installation_id:
            self._const_labels[METRICS_CLOUD_INSTALLATION_LABEL] = info.installation_id

        self._register_collectors()

        self.login_count = self._counter(
            METRICS_SUBSYSTEM_SYSTEM, "login_total", "Total number of logins.",
        )
        self.login_fail_count = self._counter(
            METRICS_SUBSYSTEM_SYSTEM, "login_fail_total", "Total number of failed logins.",
        )

        self.instance = self._gauge(
            METRICS_SUBSYSTEM_SYSTEM,
            "focalboard_instance_info",
            "Instance information for Focalboard.",
            labelnames=("Version", "BuildNum", "Edition"),
        )
        self._child(
            self.instance,
            Version=info.version,
            BuildNum=info.build_num,
            Edition=info.edition,
        ).set(1)

        self.start_time = self._gauge(
            METRICS_SUBSYSTEM_SYSTEM, "server_start_time", "The time the server started.",
        )
        self.start_time.set_to_current_time()

        self.blocks_inserted_count = self._counter(
            METRICS_SUBSYSTEM_BLOCKS, "blocks_inserted_total", "Total number of blocks inserted.",
        )
        self.blocks_deleted_count = self._counter(
            METRICS_SUBSYSTEM_BLOCKS, "blocks_deleted_total", "Total number of blocks deleted.",
        )
        self.block_count = self._gauge(
            METRICS_SUBSYSTEM_BLOCKS,
            "blocks_total",
            "Total number of blocks.",
            labelnames=("BlockType",),
        )
        self.workspace_count = self._gauge(
            METRICS_SUBSYSTEM_WORKSPACES, "workspaces_total", "Total number of workspaces.",
        )
        self.block_last_activity = self._gauge(
            METRICS_SUBSYSTEM_BLOCKS,
            "blocks_last_activity",
            "Time of last block insert, update, delete.",
        )

        logger.debug(
            f"Metrics registered (version={info.version}, "
            f"installation_label={bool(self._const_labels)})",
            extra={"installation_id": info.installation_id},
        )

    # ── Registration ──────────────────────────────────────────────

    def _register_collectors(self) -> None:
        """Process resource usage plus Python runtime internals."""
        try:
            ProcessCollector(namespace=METRICS_NAMESPACE, registry=self._registry)
            PlatformCollector(registry=self._registry)
            GCCollector(registry=self._registry)
        except ValueError as e:
            logger.critical(f"Failed to register runtime collectors: {e}")
            raise MetricsRegistrationError(f"Failed to register runtime collectors: {e}") from e

    def _build(
        self,
        kind: type,
        subsystem: str,
        name: str,
        help_text: str,
        labelnames: Sequence[str] = (),
    ) -> Any:
        try:
            metric = kind(
                name,
                help_text,
                labelnames=tuple(labelnames) + tuple(self._const_labels),
                namespace=METRICS_NAMESPACE,
                subsystem=subsystem,
                registry=self._registry,
            )
        except ValueError as e:
            full_name = f"{METRICS_NAMESPACE}_{subsystem}_{name}"
            logger.critical(f"Failed to register metric {full_name}: {e}")
            raise MetricsRegistrationError(f"Failed to register metric {full_name}: {e}") from e

        # Vectors hand out children per call; scalars are bound to the
        # constant labels once.
        if labelnames or not self._const_labels:
            return metric
        return metric.labels(**self._const_labels)

    def _counter(self, subsystem: str, name: str, help_text: str) -> Any:
        return self._build(Counter, subsystem, name, help_text)

    def _gauge(
        self,
        subsystem: str,
        name: str,
        help_text: str,
        labelnames: Sequence[str] = (),
    ) -> Any:
        return self._build(Gauge, subsystem, name, help_text, labelnames)

    def _child(self, vector: Any, **labels: str) -> Any:
        return vector.labels(**labels, **self._const_labels)

    # ── Updates ───────────────────────────────────────────────────

    def increment_login_count(self, num: int) -> None:
        self.login_count.inc(num)

    def increment_login_fail_count(self, num: int) -> None:
        self.login_fail_count.inc(num)

    def increment_blocks_inserted(self, num: int) -> None:
        self.blocks_inserted_count.inc(num)
        self.block_last_activity.set_to_current_time()

    def increment_blocks_deleted(self, num: int) -> None:
        self.blocks_deleted_count.inc(num)
        self.block_last_activity.set_to_current_time()

    def observe_block_count(self, block_type: str, count: int) -> None:
        """Set the absolute number of blocks of one type."""
        self._child(self.block_count, BlockType=block_type).set(count)

    def observe_workspace_count(self, count: int) -> None:
        self.workspace_count.set(count)

    # ── Exposition ────────────────────────────────────────────────

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @property
    def const_labels(self) -> Dict[str, str]:
        return dict(self._const_labels)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def export_prometheus(self) -> bytes:
        """Render every registered metric in Prometheus text format."""
        return generate_latest(self._registry)

    def get_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """
        Read one sample of an application instrument.

        The installation label is merged in automatically, so callers
        pass only the instrument's own labels.
        """
        merged = dict(labels or {})
        merged.update(self._const_labels)
        return self._registry.get_sample_value(name, merged)


class NullMetrics:
    """Stand-in used when metrics are disabled. Every update is a no-op."""

    enabled = False
    info: Optional[InstanceInfo] = None
    registry = None
    content_type = CONTENT_TYPE_LATEST

    @property
    def const_labels(self) -> Dict[str, str]:
        return {}

    def increment_login_count(self, num: int) -> None:
        pass

    def increment_login_fail_count(self, num: int) -> None:
        pass

    def increment_blocks_inserted(self, num: int) -> None:
        pass

    def increment_blocks_deleted(self, num: int) -> None:
        pass

    def observe_block_count(self, block_type: str, count: int) -> None:
        pass

    def observe_workspace_count(self, count: int) -> None:
        pass

    def export_prometheus(self) -> bytes:
        return b""

    def get_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        return None


Metrics = Union[MetricsRegistry, NullMetrics]


def metrics_or_null(metrics: Optional[Metrics]) -> Metrics:
    """Return ``metrics`` itself, or a NullMetrics when it is None."""
    if metrics is None:
        return NullMetrics()
    return metrics
