from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    status: int  # 0 when no response was ever received
    latency_ms: float
    error: str | None = None
    bytes_received: int = 0
    error_type: ErrorType | None = None

    @property
    def is_transport_failure(self) -> bool:
        return self.status == 0


@dataclass(frozen=True, slots=True)
class RequestBatch:
    """Outcomes in completion order plus the batch wall-clock time."""

    outcomes: tuple[RequestOutcome, ...]
    elapsed_ms: float

    def __len__(self) -> int:
        return len(self.outcomes)

    @classmethod
    def concat(cls, batches: Iterable[RequestBatch], elapsed_ms: float) -> RequestBatch:
        outcomes: list[RequestOutcome] = []
        for batch in batches:
            outcomes.extend(batch.outcomes)
        return cls(outcomes=tuple(outcomes), elapsed_ms=elapsed_ms)


@dataclass(frozen=True, slots=True)
class LatencyStats:
    min: float
    max: float
    mean: float
    median: float
    p95: float
    p99: float
    stddev: float


@dataclass(frozen=True, slots=True)
class BenchReport:
    url: str
    method: str
    concurrency: int
    total_requests: int
    total_time_ms: float
    success_count: int
    error_count: int
    error_rate: float  # percent
    rps: float
    latency: LatencyStats
    status_codes: dict[int, int]
    total_bytes: int
