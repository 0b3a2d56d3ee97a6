"""Prometheus metrics for ledger writes, balance reads and stat materialization"""

from prometheus_client import Counter, Gauge, Histogram

# Ledger metrics
transactions_created_counter = Counter(
    "btcount_transactions_created_total",
    "Transactions accepted into the ledger",
)

transactions_rejected_counter = Counter(
    "btcount_transactions_rejected_total",
    "Transactions refused before reaching storage",
    ["reason"],  # invalid | storage
)

# Read metrics
balance_history_counter = Counter(
    "btcount_balance_history_requests_total",
    "Balance history queries by outcome",
    ["outcome"],  # ok | invalid | storage
)

balance_history_points_histogram = Histogram(
    "btcount_balance_history_points",
    "Number of snapshots returned per balance history query",
    buckets=[0, 1, 6, 24, 168, 720, 8760],
)

# Stat maker worker metrics
stat_sync_counter = Counter(
    "btcount_stat_sync_total",
    "Stat maker sync attempts",
    ["outcome"],  # success | failure
)

stat_sync_inserted_counter = Counter(
    "btcount_stat_sync_inserted_total",
    "History stats written by the stat maker",
)

stat_sync_latency_histogram = Histogram(
    "btcount_stat_sync_seconds",
    "Stat maker sync duration",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
)

stat_checkpoint_gauge = Gauge(
    "btcount_stat_checkpoint_timestamp_seconds",
    "Hour boundary the stat maker last synced up to",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sync(success: bool, inserted: int = 0) -> None:
    """Record a stat maker sync attempt"""
    stat_sync_counter.labels(outcome="success" if success else "failure").inc()
    if inserted:
        stat_sync_inserted_counter.inc(inserted)
