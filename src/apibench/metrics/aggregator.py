from __future__ import annotations

import math
from collections import Counter
from typing import Sequence

import numpy as np

from apibench.config import BenchConfig
from apibench.metrics.models import BenchReport, LatencyStats, RequestBatch, RequestOutcome


class EmptyBatchError(ValueError):
    """Raised when asked to summarize a batch with no outcomes."""


def is_success(outcome: RequestOutcome) -> bool:
    return outcome.error is None and 200 <= outcome.status < 400


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile over an ascending sequence.

    Picks ``sorted_values[ceil(p / 100 * n) - 1]`` without interpolating, so
    p95 of the values 1..100 is exactly 95.
    """
    n = len(sorted_values)
    if n == 0:
        msg = "percentile of an empty sequence"
        raise EmptyBatchError(msg)
    idx = math.ceil(p * n / 100) - 1
    return float(sorted_values[min(n - 1, max(0, idx))])


def latency_stats(latencies: Sequence[float]) -> LatencyStats:
    ordered = np.sort(np.asarray(latencies, dtype=float))
    if ordered.size == 0:
        msg = "no latencies to summarize"
        raise EmptyBatchError(msg)
    mean = float(ordered.mean())
    return LatencyStats(
        min=float(ordered[0]),
        max=float(ordered[-1]),
        mean=mean,
        median=percentile(ordered, 50),
        p95=percentile(ordered, 95),
        p99=percentile(ordered, 99),
        stddev=float(np.sqrt(np.mean((ordered - mean) ** 2))),
    )


def analyze(batch: RequestBatch, config: BenchConfig) -> BenchReport:
    outcomes = batch.outcomes
    total = len(outcomes)
    if total == 0:
        msg = f"Cannot build a report for {config.url}: the batch has no outcomes"
        raise EmptyBatchError(msg)

    success_count = sum(1 for o in outcomes if is_success(o))
    error_count = total - success_count
    status_codes = dict(Counter(o.status for o in outcomes))
    elapsed_sec = batch.elapsed_ms / 1000.0
    rps = total / elapsed_sec if elapsed_sec > 0 else 0.0

    return BenchReport(
        url=config.url,
        method=config.method,
        concurrency=config.concurrency,
        total_requests=total,
        total_time_ms=batch.elapsed_ms,
        success_count=success_count,
        error_count=error_count,
        error_rate=error_count / total * 100.0,
        rps=rps,
        latency=latency_stats([o.latency_ms for o in outcomes]),
        status_codes=status_codes,
        total_bytes=sum(o.bytes_received for o in outcomes),
    )
