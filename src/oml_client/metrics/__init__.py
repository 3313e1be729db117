from .registry import (
    OML_BATCHES_WRITTEN_TOTAL,
    OML_LINES_DROPPED_TOTAL,
    OML_LINES_ENQUEUED_TOTAL,
    OML_RECONNECTS_TOTAL,
    OML_SAMPLES_INJECTED_TOTAL,
    OML_WRITE_LATENCY_MS,
    MetricsRegistry,
    metrics_registry,
)

__all__ = [
    "OML_BATCHES_WRITTEN_TOTAL",
    "OML_LINES_DROPPED_TOTAL",
    "OML_LINES_ENQUEUED_TOTAL",
    "OML_RECONNECTS_TOTAL",
    "OML_SAMPLES_INJECTED_TOTAL",
    "OML_WRITE_LATENCY_MS",
    "MetricsRegistry",
    "metrics_registry",
]
