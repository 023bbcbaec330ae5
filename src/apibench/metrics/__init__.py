from __future__ import annotations

from apibench.metrics.aggregator import EmptyBatchError, analyze, is_success, latency_stats, percentile
from apibench.metrics.models import BenchReport, ErrorType, LatencyStats, RequestBatch, RequestOutcome

__all__ = [
    "BenchReport",
    "EmptyBatchError",
    "ErrorType",
    "LatencyStats",
    "RequestBatch",
    "RequestOutcome",
    "analyze",
    "is_success",
    "latency_stats",
    "percentile",
]
