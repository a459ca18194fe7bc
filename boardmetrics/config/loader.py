"""
Config Loader — Load server configuration from YAML and env vars.

Sources, lowest to highest priority:
1. Model defaults
2. Optional YAML file (``--config``)
3. Environment variables

## Usage

    export FOCALBOARD_VERSION="7.1.0"
    export MM_CLOUD_INSTALLATION_ID="abc123"
    export METRICS_PORT="9092"

    config = load_config(Path("config.yaml"))
    metrics = MetricsRegistry(config.instance_info())

Example YAML:

    instance:
      version: "7.1.0"
      edition: "oss"
    metrics:
      enabled: true
      port: 9092
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .. import __version__
from ..observability.metrics import INSTALLATION_ID_ENV, InstanceInfo
from ..observability.updater import DEFAULT_UPDATE_INTERVAL

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration could not be loaded or failed validation."""


class InstanceConfig(BaseModel):
    """Build identity reported through the instance-info gauge."""

    version: str = __version__
    build_num: str = ""
    edition: str = ""
    installation_id: str = ""


class MetricsConfig(BaseModel):
    """Metrics exposition settings."""

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = Field(9092, ge=1, le=65535)
    update_interval_seconds: float = Field(DEFAULT_UPDATE_INTERVAL, gt=0)
    counts_file: Optional[str] = None


class ServerConfig(BaseModel):
    """Top-level configuration schema."""

    instance: InstanceConfig = Field(default_factory=InstanceConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    log_level: str = "INFO"
    log_format: str = "text"

    def instance_info(self) -> InstanceInfo:
        return InstanceInfo(
            version=self.instance.version,
            build_num=self.instance.build_num,
            edition=self.instance.edition,
            installation_id=self.instance.installation_id,
        )


# env var -> (section, key); section None means top level
ENV_OVERRIDES = {
    "FOCALBOARD_VERSION": ("instance", "version"),
    "FOCALBOARD_BUILD_NUM": ("instance", "build_num"),
    "FOCALBOARD_EDITION": ("instance", "edition"),
    INSTALLATION_ID_ENV: ("instance", "installation_id"),
    "METRICS_ENABLED": ("metrics", "enabled"),
    "METRICS_HOST": ("metrics", "host"),
    "METRICS_PORT": ("metrics", "port"),
    "METRICS_UPDATE_INTERVAL": ("metrics", "update_interval_seconds"),
    "METRICS_COUNTS_FILE": ("metrics", "counts_file"),
    "LOG_LEVEL": (None, "log_level"),
    "LOG_FORMAT": (None, "log_format"),
}


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return its contents."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _apply_env(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Overlay environment variables onto raw config data."""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        if section is None:
            data[key] = value
        else:
            target = data.get(section)
            if not isinstance(target, dict):
                target = {}
                data[section] = target
            target[key] = value
    return data


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServerConfig:
    """
    Load configuration from an optional YAML file plus env vars.

    Args:
        path: YAML config file; skipped when None
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated ServerConfig

    Raises:
        ConfigError: unreadable file, bad YAML, or failed validation
    """
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if path is not None:
        data = load_yaml(Path(path))
        logger.info(f"Loaded configuration from {path}")

    data = _apply_env(data, env)

    try:
        return ServerConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
