from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

import httpx

from apibench.config import BenchConfig
from apibench.loadgen.client import send_request
from apibench.metrics import BenchReport, RequestBatch, RequestOutcome, analyze

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


async def run_bench(
    config: BenchConfig,
    progress: ProgressCallback | None = None,
    client: httpx.AsyncClient | None = None,
) -> BenchReport:
    batch = await run_batch(config, config.requests, config.concurrency, progress, client)
    return analyze(batch, config)


async def run_batch(
    config: BenchConfig,
    count: int,
    concurrency: int,
    progress: ProgressCallback | None = None,
    client: httpx.AsyncClient | None = None,
) -> RequestBatch:
    """Send ``count`` requests keeping at most ``concurrency`` in flight.

    Outcomes are returned in completion order. A replacement request is only
    dispatched once an in-flight one resolves.
    """
    if count < 0:
        msg = f"count must be >= 0, got {count}"
        raise ValueError(msg)
    if concurrency < 1:
        msg = f"concurrency must be >= 1, got {concurrency}"
        raise ValueError(msg)
    if count == 0:
        return RequestBatch(outcomes=(), elapsed_ms=0.0)

    window = min(concurrency, count)
    logger.debug("batch start url=%s count=%d window=%d", config.url, count, window)
    outcomes: list[RequestOutcome] = []
    started = time.perf_counter()
    async with _client_scope(client, window) as http:
        await _closed_loop(http, config, count, window, outcomes, progress)
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.debug("batch done url=%s count=%d elapsed_ms=%.1f", config.url, count, elapsed_ms)
    return RequestBatch(outcomes=tuple(outcomes), elapsed_ms=elapsed_ms)


async def _closed_loop(
    client: httpx.AsyncClient,
    config: BenchConfig,
    count: int,
    window: int,
    outcomes: list[RequestOutcome],
    progress: ProgressCallback | None,
) -> None:
    in_flight: set[asyncio.Task[RequestOutcome]] = set()
    dispatched = 0
    completed = 0
    try:
        while completed < count:
            while len(in_flight) < window and dispatched < count:
                in_flight.add(asyncio.create_task(send_request(client, config)))
                dispatched += 1
            done, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                outcomes.append(task.result())
                completed += 1
                if progress:
                    progress(completed, count)
    finally:
        # only reached with tasks left when something escaped send_request
        for task in in_flight:
            task.cancel()
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)


@asynccontextmanager
async def _client_scope(
    client: httpx.AsyncClient | None,
    window: int,
) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    # httpx caps the pool at 100 connections unless told otherwise
    limits = httpx.Limits(max_connections=window, max_keepalive_connections=window)
    async with httpx.AsyncClient(limits=limits) as owned:
        yield owned
