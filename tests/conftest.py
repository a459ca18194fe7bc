"""
Shared fixtures for metrics tests.

Each fixture builds its registry on a fresh CollectorRegistry, so tests
never share instrument state.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from boardmetrics.config.loader import ENV_OVERRIDES
from boardmetrics.observability.metrics import InstanceInfo, MetricsRegistry


INSTALLATION_ID = "inst-8f3a2c"


@pytest.fixture
def instance_info():
    """Build info without an installation id."""
    return InstanceInfo(version="7.1.0", build_num="1234", edition="oss")


@pytest.fixture
def cloud_instance_info():
    """Build info for a cloud installation."""
    return InstanceInfo(
        version="7.1.0",
        build_num="1234",
        edition="cloud",
        installation_id=INSTALLATION_ID,
    )


@pytest.fixture
def metrics(instance_info):
    """A registry with no constant labels."""
    return MetricsRegistry(instance_info)


@pytest.fixture
def cloud_metrics(cloud_instance_info):
    """A registry carrying the installation label."""
    return MetricsRegistry(cloud_instance_info)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every env var the config loader reads."""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def counts_file(tmp_path: Path) -> Path:
    """YAML count snapshot."""
    path = tmp_path / "counts.yaml"
    path.write_text(
        "workspaces: 3\n"
        "blocks:\n"
        "  board: 4\n"
        "  card: 12\n",
        encoding="utf-8",
    )
    return path


def write_config(path: Path, text: str) -> Path:
    """Helper to write a YAML config file."""
    path.write_text(text, encoding="utf-8")
    return path
