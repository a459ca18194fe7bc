"""
CLI Module — Click commands for the metrics server.
"""
