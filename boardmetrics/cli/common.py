"""
Shared CLI helpers — build the registry and updater from config.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..config.loader import ServerConfig
from ..observability.metrics import MetricsRegistrationError, MetricsRegistry
from ..observability.updater import FileCountSource, MetricsUpdater


def build_metrics(config: ServerConfig) -> Optional[MetricsRegistry]:
    """Registry from config, or None when metrics are disabled. Exits on registration failure."""
    if not config.metrics.enabled:
        return None

    try:
        return MetricsRegistry(config.instance_info())
    except MetricsRegistrationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        raise SystemExit(1)


def build_updater(
    config: ServerConfig,
    metrics: Optional[MetricsRegistry],
    counts_file: Optional[str] = None,
) -> Optional[MetricsUpdater]:
    """Updater polling the counts snapshot, if one is configured."""
    path = counts_file or config.metrics.counts_file
    if not path:
        return None

    return MetricsUpdater(
        metrics,
        FileCountSource(Path(path)),
        interval_seconds=config.metrics.update_interval_seconds,
    )
