from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from apibench.config import BenchConfig
from apibench.loadgen.runner import ProgressCallback, run_batch
from apibench.metrics import BenchReport, RequestBatch, analyze

logger = logging.getLogger(__name__)

StepCallback = Callable[[int, int], None]


@dataclass(frozen=True, slots=True)
class RampStep:
    index: int
    concurrency: int
    requests: int
    elapsed_ms: float
    mean_latency_ms: float


@dataclass(frozen=True, slots=True)
class RampResult:
    report: BenchReport
    steps: list[RampStep]


def step_concurrency(total_concurrency: int, steps: int, index: int) -> int:
    step = math.ceil(total_concurrency / steps)
    return min(step * index, total_concurrency)


def ramp_plan(config: BenchConfig) -> list[tuple[int, int]]:
    """(concurrency, requests) for each step, first to last.

    Every step sends ``ceil(requests / steps)``, so the run may send up to
    ``steps - 1`` more requests than configured.
    """
    per_step = math.ceil(config.requests / config.ramp_steps)
    return [
        (step_concurrency(config.concurrency, config.ramp_steps, i), per_step)
        for i in range(1, config.ramp_steps + 1)
    ]


async def run_ramp(
    config: BenchConfig,
    progress: ProgressCallback | None = None,
    client: httpx.AsyncClient | None = None,
    on_step: StepCallback | None = None,
) -> RampResult:
    batches: list[RequestBatch] = []
    steps: list[RampStep] = []
    started = time.perf_counter()
    for index, (concurrency, requests) in enumerate(ramp_plan(config), start=1):
        logger.info("ramp step %d/%d concurrency=%d", index, config.ramp_steps, concurrency)
        if on_step:
            on_step(index, concurrency)
        batch = await run_batch(config, requests, concurrency, progress, client)
        batches.append(batch)
        steps.append(
            RampStep(
                index=index,
                concurrency=concurrency,
                requests=len(batch),
                elapsed_ms=batch.elapsed_ms,
                mean_latency_ms=_mean_latency(batch),
            )
        )
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    report = analyze(RequestBatch.concat(batches, elapsed_ms), config)
    return RampResult(report=report, steps=steps)


def _mean_latency(batch: RequestBatch) -> float:
    if not batch.outcomes:
        return 0.0
    return sum(o.latency_ms for o in batch.outcomes) / len(batch.outcomes)
