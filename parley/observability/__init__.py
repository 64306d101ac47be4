"""Observability: structured logging and Prometheus metrics.

structlog for logging, prometheus_client for metrics.
"""
