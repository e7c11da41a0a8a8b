"""OpenTelemetry metrics for catalog fetches and cache behaviour."""

import logging
from typing import Any

from opentelemetry import metrics

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: "MetricsRegistry | None" = None


class MetricsRegistry:
    """
    Registry for catalog metrics.

    Instruments are created on the global meter provider; with no SDK
    installed they are no-ops.
    """

    def __init__(self, meter_name: str = "satvik_catalog", enabled: bool = True) -> None:
        self._meter = metrics.get_meter(meter_name) if enabled else metrics.NoOpMeter(meter_name)
        self._instruments: dict[str, Any] = {}
        self._create_instruments()

    def _create_instruments(self) -> None:
        self._instruments["fetch_total"] = self._meter.create_counter(
            name="catalog_fetch_total",
            description="Catalog fetches by source and outcome",
            unit="1",
        )
        self._instruments["fetch_duration"] = self._meter.create_histogram(
            name="catalog_fetch_duration_seconds",
            description="Duration of a full source fetch and transform",
            unit="s",
        )
        self._instruments["cache_events"] = self._meter.create_counter(
            name="catalog_cache_events_total",
            description="Snapshot cache hits, misses and clears",
            unit="1",
        )
        self._instruments["fallback_total"] = self._meter.create_counter(
            name="catalog_fallback_total",
            description="Fetches answered by the bundled catalog after a source failure",
            unit="1",
        )

    def record_fetch(self, source: str, duration_seconds: float, status: str = "success") -> None:
        """
        Record a source fetch.

        Args:
            source: Data source name.
            duration_seconds: Time spent fetching and transforming.
            status: success or error.
        """
        labels = {"source": source, "status": status}
        self._instruments["fetch_total"].add(1, labels)
        self._instruments["fetch_duration"].record(duration_seconds, labels)

    def record_cache_event(self, event: str) -> None:
        self._instruments["cache_events"].add(1, {"event": event})

    def record_fallback(self, failed_source: str) -> None:
        self._instruments["fallback_total"].add(1, {"failed_source": failed_source})


def get_metrics_registry() -> MetricsRegistry:
    """
    Get the global metrics registry.

    Creates one if it doesn't exist.

    Returns:
        The global MetricsRegistry instance.
    """
    global _metrics_registry
    if _metrics_registry is None:
        _metrics_registry = MetricsRegistry()
    return _metrics_registry
