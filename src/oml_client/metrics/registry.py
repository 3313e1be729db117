"""
Prometheus metrics for measurement injection and channel delivery.
Registered in the global prometheus_client REGISTRY on import.
"""

from prometheus_client import Counter, Histogram


# --- Producer side ---

OML_SAMPLES_INJECTED_TOTAL = Counter(
    "oml_samples_injected_total",
    "Total number of samples injected per measurement point",
    ["mp"],
)

# --- Channel side ---

OML_LINES_ENQUEUED_TOTAL = Counter(
    "oml_lines_enqueued_total",
    "Total number of data lines accepted into a channel queue",
    ["channel"],
)

OML_LINES_DROPPED_TOTAL = Counter(
    "oml_lines_dropped_total",
    "Data lines dropped because the channel was closed or its sender failed",
    ["channel"],
)

OML_BATCHES_WRITTEN_TOTAL = Counter(
    "oml_batches_written_total",
    "Total number of batched writes delivered to a channel sink",
    ["channel"],
)

OML_RECONNECTS_TOTAL = Counter(
    "oml_reconnects_total",
    "Reconnect attempts per channel",
    ["channel", "outcome"],
)

OML_WRITE_LATENCY_MS = Histogram(
    "oml_write_latency_ms",
    "Batch write latency in milliseconds (including reconnects)",
    ["channel"],
    buckets=[0.1, 0.5, 1, 2.5, 5, 10, 25, 50, 100, 250, 1000, 5000],
)


class MetricsRegistry:
    """Centralized access to client metrics."""

    samples_injected_total = OML_SAMPLES_INJECTED_TOTAL
    lines_enqueued_total = OML_LINES_ENQUEUED_TOTAL
    lines_dropped_total = OML_LINES_DROPPED_TOTAL
    batches_written_total = OML_BATCHES_WRITTEN_TOTAL
    reconnects_total = OML_RECONNECTS_TOTAL
    write_latency_ms = OML_WRITE_LATENCY_MS


# Singleton instance
metrics_registry = MetricsRegistry()
