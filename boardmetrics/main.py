"""
Board Metrics — CLI Entry Point

Usage:
    python -m boardmetrics.main serve [--host H] [--port P] [--counts-file F]
    python -m boardmetrics.main metrics
    python -m boardmetrics.main info
    python -m boardmetrics.main health
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import logging
from typing import Optional

import click

from .cli.common import build_metrics, build_updater
from .cli.ops import health, info, metrics_cmd
from .config.loader import ConfigError, load_config
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """Board Metrics — Prometheus instrumentation for the board server."""
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        raise SystemExit(1)

    setup_logging(config.log_level, config.log_format)
    ctx.obj["config"] = config


@cli.command()
@click.option("--host", default=None, help="Bind address (default: metrics.host)")
@click.option("--port", type=int, default=None, help="Port (default: metrics.port)")
@click.option("--counts-file", default=None, help="YAML snapshot of block/workspace counts")
@click.pass_context
def serve(
    ctx: click.Context,
    host: Optional[str],
    port: Optional[int],
    counts_file: Optional[str],
) -> None:
    """Serve /metrics and /health for scraping."""
    from .observability.health import HealthChecker
    from .web.server import create_app, run_server

    config = ctx.obj["config"]
    metrics = build_metrics(config)
    if metrics is None:
        logger.warning("Metrics disabled; /metrics will return 404")

    updater = build_updater(config, metrics, counts_file)
    app = create_app(metrics, HealthChecker(metrics, updater))

    if updater is not None:
        updater.start()
    try:
        run_server(app, host=host or config.metrics.host, port=port or config.metrics.port)
    finally:
        if updater is not None:
            updater.stop()


cli.add_command(metrics_cmd)
cli.add_command(info)
cli.add_command(health)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
