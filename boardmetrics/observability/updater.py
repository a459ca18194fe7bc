"""
Metrics Updater — Periodically refresh block and workspace counts.

Counts are absolute values owned by the store, so they are polled on an
interval rather than tracked incrementally.

## Usage

    from boardmetrics.observability.updater import MetricsUpdater, StaticCountSource

    source = StaticCountSource(block_counts={"card": 10}, workspace_count=2)
    updater = MetricsUpdater(metrics, source, interval_seconds=60)
    updater.start()
    ...
    updater.stop()
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

import yaml

from .metrics import Metrics, metrics_or_null

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_INTERVAL = 15 * 60


@dataclass(frozen=True)
class CountSnapshot:
    """Block and workspace totals taken at the same moment."""

    block_counts: Mapping[str, int] = field(default_factory=dict)
    workspace_count: int = 0


class CountSource(Protocol):
    """Anything that can report current block and workspace totals."""

    def read_counts(self) -> CountSnapshot:
        ...


class StaticCountSource:
    """In-memory counts, updated by whoever owns them."""

    def __init__(
        self,
        block_counts: Optional[Mapping[str, int]] = None,
        workspace_count: int = 0,
    ):
        self.block_counts: Dict[str, int] = dict(block_counts or {})
        self.workspace_count = workspace_count

    def read_counts(self) -> CountSnapshot:
        return CountSnapshot(dict(self.block_counts), self.workspace_count)


class FileCountSource:
    """
    Counts read from a YAML snapshot on every poll.

    Expected shape:

        workspaces: 3
        blocks:
          board: 4
          card: 120
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def read_counts(self) -> CountSnapshot:
        """Load the file once so both totals come from the same write."""
        with self.path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Count snapshot {self.path} must be a mapping")

        blocks = data.get("blocks") or {}
        if not isinstance(blocks, dict):
            raise ValueError(f"'blocks' in {self.path} must be a mapping")

        return CountSnapshot(
            block_counts={str(block_type): int(count) for block_type, count in blocks.items()},
            workspace_count=int(data.get("workspaces", 0)),
        )


class MetricsUpdater:
    """Background thread that observes counts from a CountSource."""

    def __init__(
        self,
        metrics: Optional[Metrics],
        source: CountSource,
        interval_seconds: float = DEFAULT_UPDATE_INTERVAL,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.metrics = metrics_or_null(metrics)
        self.source = source
        self.interval_seconds = interval_seconds

        self.last_run_at: Optional[float] = None
        self.last_error: Optional[str] = None
        self.run_count = 0

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> bool:
        """
        Poll the source once and observe what it reports.

        Returns False when reading or observing failed; the failure is
        recorded in ``last_error`` and the previous run time is kept.
        Types observed before a bad value keep their new count.
        """
        try:
            snapshot = self.source.read_counts()
            for block_type, count in snapshot.block_counts.items():
                self.metrics.observe_block_count(block_type, count)
            self.metrics.observe_workspace_count(snapshot.workspace_count)
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Failed to refresh counts for metrics: {e}")
            return False

        self.last_run_at = time.time()
        self.last_error = None
        self.run_count += 1

        logger.debug(
            f"Metrics counts refreshed: {len(snapshot.block_counts)} block types, "
            f"{snapshot.workspace_count} workspaces"
        )
        return True

    def start(self) -> None:
        """Start polling in a daemon thread. No-op if already running."""
        if self.running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="metrics-updater",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Metrics updater started (interval={self.interval_seconds}s)")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Metrics updater stopped")

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self.interval_seconds)
