"""
Metrics API — Prometheus scrape and health endpoints.

Blueprint: metrics_bp
Routes:
    /metrics
    /health
"""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify

metrics_bp = Blueprint("metrics", __name__)


def _metrics():
    return current_app.config["METRICS"]


@metrics_bp.route("/metrics")
def scrape():
    """Serve the registry in Prometheus text format."""
    metrics = _metrics()
    if not metrics.enabled:
        return jsonify({"error": "Metrics are disabled"}), 404

    return Response(metrics.export_prometheus(), content_type=metrics.content_type)


@metrics_bp.route("/health")
def health():
    """Health JSON; 503 when any component is unhealthy."""
    from ..observability.health import HealthStatus

    checker = current_app.config["HEALTH_CHECKER"]
    result = checker.check()
    status_code = 503 if result.status == HealthStatus.UNHEALTHY else 200
    return jsonify(result.to_dict()), status_code
