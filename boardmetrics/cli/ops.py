"""
CLI ops commands — metrics, info, health.

Usage:
    python -m boardmetrics.main metrics [--counts-file counts.yaml]
    python -m boardmetrics.main info [--json]
    python -m boardmetrics.main health [--json] [--counts-file counts.yaml]
"""

from __future__ import annotations

import json

import click

from .common import build_metrics, build_updater


@click.command("metrics")
@click.option("--counts-file", default=None, help="YAML snapshot of block/workspace counts")
@click.pass_context
def metrics_cmd(ctx: click.Context, counts_file: str | None) -> None:
    """Print the current exposition once."""
    config = ctx.obj["config"]
    metrics = build_metrics(config)
    if metrics is None:
        click.secho("Metrics are disabled (METRICS_ENABLED=false)", fg="yellow", err=True)
        raise SystemExit(1)

    updater = build_updater(config, metrics, counts_file)
    if updater is not None and not updater.run_once():
        click.secho(f"⚠️  Could not read counts: {updater.last_error}", fg="yellow", err=True)

    click.echo(metrics.export_prometheus().decode("utf-8"), nl=False)


@click.command("info")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def info(ctx: click.Context, as_json: bool) -> None:
    """Show the instance info reported to Prometheus."""
    config = ctx.obj["config"]
    instance = config.instance_info()

    if as_json:
        data = instance.to_dict()
        data["metrics_enabled"] = config.metrics.enabled
        click.echo(json.dumps(data, indent=2))
        return

    click.echo()
    click.secho("📊 Instance Info", bold=True)
    click.echo()
    click.echo(f"  Version:         {instance.version or '-'}")
    click.echo(f"  Build:           {instance.build_num or '-'}")
    click.echo(f"  Edition:         {instance.edition or '-'}")
    click.echo(f"  Installation ID: {instance.installation_id or '-'}")
    click.echo(f"  Metrics:         {'enabled' if config.metrics.enabled else 'disabled'}")
    click.echo()


@click.command("health")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--counts-file", default=None, help="YAML snapshot of block/workspace counts")
@click.pass_context
def health(ctx: click.Context, as_json: bool, counts_file: str | None) -> None:
    """Check metrics pipeline health."""
    from ..observability.health import HealthChecker, HealthStatus

    config = ctx.obj["config"]
    metrics = build_metrics(config)
    updater = build_updater(config, metrics, counts_file)
    if updater is not None:
        updater.run_once()

    result = HealthChecker(metrics, updater).check()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        status_colors = {
            HealthStatus.HEALTHY: ("✅", "green"),
            HealthStatus.DEGRADED: ("⚠️", "yellow"),
            HealthStatus.UNHEALTHY: ("❌", "red"),
        }
        icon, color = status_colors.get(result.status, ("❓", "white"))

        click.echo()
        click.secho(f"{icon} Metrics Health: {result.status.value.upper()}", fg=color, bold=True)
        click.echo()

        click.echo("Components:")
        for component in result.components:
            c_icon, c_color = status_colors.get(component.status, ("❓", "white"))
            click.echo(f"  {c_icon} ", nl=False)
            click.secho(f"{component.name}", fg=c_color, bold=True, nl=False)
            click.echo(f": {component.message}")
        click.echo()

    if result.status == HealthStatus.UNHEALTHY:
        raise SystemExit(1)
