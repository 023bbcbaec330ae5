from __future__ import annotations

import asyncio
import time

import httpx

from apibench.config import BenchConfig
from apibench.metrics import ErrorType, RequestOutcome

TIMEOUT_MESSAGE = "timeout"


def build_headers(config: BenchConfig) -> dict[str, str]:
    headers = dict(config.headers)
    if config.body is not None and not any(k.lower() == "content-length" for k in headers):
        headers["Content-Length"] = str(len(config.body.encode("utf-8")))
    return headers


async def _exchange(
    client: httpx.AsyncClient,
    config: BenchConfig,
    headers: dict[str, str],
) -> tuple[int, int]:
    content = config.body.encode("utf-8") if config.body is not None else None
    async with client.stream(
        config.method,
        config.url,
        headers=headers,
        content=content,
        timeout=config.timeout_sec,
    ) as resp:
        received = 0
        async for chunk in resp.aiter_raw():
            received += len(chunk)
        return resp.status_code, received


async def send_request(client: httpx.AsyncClient, config: BenchConfig) -> RequestOutcome:
    """Issue one request and return its outcome; transport failures become data."""
    headers = build_headers(config)
    start = time.perf_counter()
    try:
        status, received = await asyncio.wait_for(
            _exchange(client, config, headers),
            timeout=config.timeout_sec,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        return _failure(start, TIMEOUT_MESSAGE, ErrorType.TIMEOUT)
    except httpx.ConnectError as exc:
        return _failure(start, _describe(exc), ErrorType.CONNECT)
    except httpx.ReadError as exc:
        return _failure(start, _describe(exc), ErrorType.READ)
    except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, UnicodeEncodeError) as exc:
        return _failure(start, _describe(exc), ErrorType.OTHER)
    return RequestOutcome(
        status=status,
        latency_ms=(time.perf_counter() - start) * 1000.0,
        bytes_received=received,
    )


def _failure(start: float, message: str, error_type: ErrorType) -> RequestOutcome:
    return RequestOutcome(
        status=0,
        latency_ms=(time.perf_counter() - start) * 1000.0,
        error=message,
        bytes_received=0,
        error_type=error_type,
    )


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__
