"""
Board Metrics — Prometheus instrumentation for the board server.
"""

__version__ = "0.1.0"
