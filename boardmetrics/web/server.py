"""
Metrics Server — Flask app exposing the registry for scraping.

Kept separate from the main application listener so it can be bound
to an internal interface.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from flask import Flask, jsonify, request

from ..observability.health import HealthChecker
from ..observability.metrics import Metrics, metrics_or_null
from .routes import metrics_bp

logger = logging.getLogger(__name__)

# Scrapers hit these constantly
POLL_PATHS = ("/metrics", "/health")


def create_app(
    metrics: Optional[Metrics],
    health_checker: Optional[HealthChecker] = None,
) -> Flask:
    """Create the Flask application."""
    app = Flask(__name__)

    app.config["METRICS"] = metrics_or_null(metrics)
    app.config["HEALTH_CHECKER"] = health_checker or HealthChecker(app.config["METRICS"])

    app.register_blueprint(metrics_bp)

    # ── Error Handlers ────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": f"Not found: {request.path}"}), 404

    @app.errorhandler(500)
    def internal_server_error(e):
        """Return JSON for any unhandled 500."""
        logger.error(f"Unhandled 500 on {request.method} {request.path}: {e}", exc_info=True)
        return jsonify({"error": f"Internal server error: {e}"}), 500

    # ── Request Logging ───────────────────────────────────────────

    @app.before_request
    def log_request_start():
        request._start_time = time.time()

    @app.after_request
    def log_request_end(response):
        duration_ms = 0
        if hasattr(request, "_start_time"):
            duration_ms = int((time.time() - request._start_time) * 1000)

        log_fn = logger.debug if request.path in POLL_PATHS else logger.info
        log_fn(
            f"{request.method} {request.path} → {response.status_code} ({duration_ms}ms)",
            extra={
                "request_path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

    logger.info(f"Metrics server initialized (enabled={app.config['METRICS'].enabled})")

    return app


def run_server(app: Flask, host: str = "0.0.0.0", port: int = 9092) -> None:
    """
    Run the metrics server until interrupted.

    Args:
        app: App from create_app()
        host: Bind address
        port: Port to listen on
    """
    logger.info(f"Serving metrics on http://{host}:{port}/metrics")
    app.run(host=host, port=port, debug=False, use_reloader=False)
