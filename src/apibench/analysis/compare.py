from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
import pandas as pd

from apibench.config import BenchConfig
from apibench.loadgen.runner import ProgressCallback, run_bench
from apibench.metrics import BenchReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiffRow:
    metric: str
    base: float
    candidate: float
    delta_pct: float | None


@dataclass(frozen=True, slots=True)
class Comparison:
    base: BenchReport
    candidate: BenchReport
    rows: list[DiffRow]


def percent_change(base: float, candidate: float) -> float | None:
    if base == 0:
        return None
    return (candidate - base) / base * 100.0


def diff_reports(base: BenchReport, candidate: BenchReport) -> list[DiffRow]:
    pairs = [
        ("avg_latency_ms", base.latency.mean, candidate.latency.mean),
        ("p95_latency_ms", base.latency.p95, candidate.latency.p95),
        ("p99_latency_ms", base.latency.p99, candidate.latency.p99),
        ("rps", base.rps, candidate.rps),
    ]
    rows = [DiffRow(metric, a, b, percent_change(a, b)) for metric, a, b in pairs]
    # error rate is shown side by side, never diffed
    rows.append(DiffRow("error_rate", base.error_rate, candidate.error_rate, None))
    return rows


async def run_compare(
    config: BenchConfig,
    compare_url: str,
    progress: ProgressCallback | None = None,
    client: httpx.AsyncClient | None = None,
) -> Comparison:
    """Benchmark ``config.url`` then ``compare_url``, one after the other."""
    logger.info("compare leg 1: %s", config.url)
    base = await run_bench(config, progress, client)
    logger.info("compare leg 2: %s", compare_url)
    candidate = await run_bench(config.with_url(compare_url), progress, client)
    return Comparison(base=base, candidate=candidate, rows=diff_reports(base, candidate))


def diff_frame(comparison: Comparison) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "metric": row.metric,
                "url1": row.base,
                "url2": row.candidate,
                "diff_pct": row.delta_pct,
            }
            for row in comparison.rows
        ]
    )
