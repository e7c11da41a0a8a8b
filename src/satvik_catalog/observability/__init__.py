"""Observability module for metrics and logging."""

from satvik_catalog.observability.logging import LogContext, configure_logging
from satvik_catalog.observability.metrics import MetricsRegistry, get_metrics_registry

__all__ = [
    # Metrics
    "MetricsRegistry",
    "get_metrics_registry",
    # Logging
    "LogContext",
    "configure_logging",
]
