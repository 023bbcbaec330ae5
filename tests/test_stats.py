from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from apibench.config import BenchConfig
from apibench.metrics import EmptyBatchError, RequestBatch, RequestOutcome, analyze, percentile


def _batch(statuses: list[int], latency_ms: float = 10.0, elapsed_ms: float = 1000.0) -> RequestBatch:
    outcomes = tuple(
        RequestOutcome(
            status=s,
            latency_ms=latency_ms,
            error="connect failed" if s == 0 else None,
            bytes_received=0 if s == 0 else 100,
        )
        for s in statuses
    )
    return RequestBatch(outcomes=outcomes, elapsed_ms=elapsed_ms)


CONFIG = BenchConfig(url="http://bench.local/health", concurrency=4)


def test_nearest_rank_percentiles() -> None:
    values = [float(v) for v in range(1, 101)]
    assert percentile(values, 95) == 95.0
    assert percentile(values, 99) == 99.0
    assert percentile(values, 50) == 50.0
    assert percentile(values, 0) == 1.0
    assert percentile(values, 100) == 100.0


def test_percentile_small_sample_rounds_up() -> None:
    assert percentile([5.0, 7.0, 9.0], 50) == 7.0
    assert percentile([5.0, 7.0, 9.0], 95) == 9.0
    assert percentile([42.0], 99) == 42.0


def test_identical_latencies_have_zero_stddev() -> None:
    report = analyze(_batch([200] * 8, latency_ms=42.0), CONFIG)
    assert report.latency.stddev == 0.0
    assert report.latency.min == report.latency.max == report.latency.mean == 42.0


def test_population_stddev() -> None:
    outcomes = tuple(RequestOutcome(status=200, latency_ms=v) for v in (2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0))
    report = analyze(RequestBatch(outcomes=outcomes, elapsed_ms=100.0), CONFIG)
    assert report.latency.mean == 5.0
    assert report.latency.stddev == 2.0


def test_rps_uses_batch_wall_clock() -> None:
    report = analyze(_batch([200] * 100, latency_ms=500.0, elapsed_ms=2000.0), CONFIG)
    assert report.rps == 50.0
    assert report.total_time_ms == 2000.0


def test_status_tally_and_error_rate() -> None:
    report = analyze(_batch([200, 200, 404, 500]), CONFIG)
    assert report.success_count == 2
    assert report.error_count == 2
    assert report.error_rate == 50.0
    assert report.status_codes == {200: 2, 404: 1, 500: 1}


def test_no_response_is_tallied_under_zero() -> None:
    report = analyze(_batch([200, 200, 404, 0]), CONFIG)
    assert report.status_codes == {200: 2, 404: 1, 0: 1}
    assert report.success_count == 2
    assert report.total_bytes == 300


def test_redirects_count_as_success() -> None:
    report = analyze(_batch([301, 302, 399, 400]), CONFIG)
    assert report.success_count == 3
    assert report.error_count == 1


def test_report_echoes_config() -> None:
    config = BenchConfig(url="http://bench.local/items", method="post", concurrency=7)
    report = analyze(_batch([201]), config)
    assert report.url == "http://bench.local/items"
    assert report.method == "POST"
    assert report.concurrency == 7
    assert report.total_requests == 1


def test_empty_batch_is_rejected() -> None:
    with pytest.raises(EmptyBatchError):
        analyze(RequestBatch(outcomes=(), elapsed_ms=0.0), CONFIG)


@given(statuses=st.lists(st.sampled_from([0, 200, 204, 302, 404, 500, 503]), min_size=1, max_size=200))
def test_success_and_error_counts_cover_batch(statuses: list[int]) -> None:
    report = analyze(_batch(statuses), CONFIG)
    assert report.success_count + report.error_count == report.total_requests == len(statuses)
    assert sum(report.status_codes.values()) == len(statuses)


@given(latencies=st.lists(st.floats(min_value=0.0, max_value=60_000.0), min_size=1, max_size=300))
def test_latency_distribution_is_ordered(latencies: list[float]) -> None:
    outcomes = tuple(RequestOutcome(status=200, latency_ms=v) for v in latencies)
    lat = analyze(RequestBatch(outcomes=outcomes, elapsed_ms=1000.0), CONFIG).latency
    assert 0.0 <= lat.min <= lat.median <= lat.p95 <= lat.p99 <= lat.max
    assert lat.stddev >= 0.0
