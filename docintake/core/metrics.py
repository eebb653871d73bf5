from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
)

# ---------------------------------------------------------------------------
# Extraction attempts (one per strategy call, primary or fallback)
# ---------------------------------------------------------------------------
extraction_attempts_total = Counter(
    "docintake_extraction_attempts_total",
    "Extraction strategy calls by format family, method and outcome",
    ["family", "method", "status"],
)
extraction_duration_seconds = Histogram(
    "docintake_extraction_duration_seconds",
    "Time spent extracting a single file",
    ["family"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

# ---------------------------------------------------------------------------
# Batch totals
# ---------------------------------------------------------------------------
batch_files_total = Counter(
    "docintake_batch_files_total",
    "Files seen by the orchestrator by final outcome",
    ["outcome"],
)
batches_processed_total = Counter(
    "docintake_batches_processed_total",
    "Total number of batches processed",
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()
