"""
Prometheus metrics for the query cache.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry


PAYLOAD_SIZE_BUCKETS = (256, 1024, 4096, 16384, 65536, 262144, 1048576, 5000000)


class CacheMetrics:
    """Collectors for cache operations, latencies and payload sizes."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache metrics."""
        self._metrics["requests_total"] = Counter(
            "query_cache_requests_total",
            "Total cache operations",
            ["operation", "result"],
            registry=self.registry
        )

        self._metrics["operation_duration_seconds"] = Histogram(
            "query_cache_operation_duration_seconds",
            "Cache operation duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["invalidated_keys_total"] = Counter(
            "query_cache_invalidated_keys_total",
            "Total cache keys removed by dependency invalidation",
            registry=self.registry
        )

        self._metrics["payload_bytes"] = Histogram(
            "query_cache_payload_bytes",
            "Payload size in bytes before and after encoding",
            ["stage"],
            buckets=PAYLOAD_SIZE_BUCKETS,
            registry=self.registry
        )

    def record_operation(self, operation: str, result: str, duration: float):
        """Record an operation outcome and its duration in seconds."""
        self._metrics["requests_total"].labels(operation=operation, result=result).inc()
        self._metrics["operation_duration_seconds"].labels(operation=operation).observe(duration)

    def record_invalidated(self, count: int):
        """Record keys removed by an invalidation."""
        if count > 0:
            self._metrics["invalidated_keys_total"].inc(count)

    def record_payload(self, raw_size: int, stored_size: int):
        """Record payload size before and after encoding."""
        self._metrics["payload_bytes"].labels(stage="raw").observe(raw_size)
        self._metrics["payload_bytes"].labels(stage="stored").observe(stored_size)
