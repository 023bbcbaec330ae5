from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping
from urllib.parse import urlsplit


class ConfigError(ValueError):
    """Raised for a configuration that can never produce a run."""


@dataclass(frozen=True, slots=True)
class BenchConfig:
    url: str
    requests: int = 100
    concurrency: int = 10
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | None = None
    timeout_ms: float = 10_000.0
    ramp: bool = False
    ramp_steps: int = 5

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000.0

    def validate(self) -> BenchConfig:
        if not self.url:
            msg = "No URL provided."
            raise ConfigError(msg)
        parts = urlsplit(self.url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            msg = f"Invalid URL {self.url!r}: expected an http:// or https:// address"
            raise ConfigError(msg)
        if self.requests < 0:
            msg = f"Request count must be >= 0, got {self.requests}"
            raise ConfigError(msg)
        if self.concurrency < 1:
            msg = f"Concurrency must be >= 1, got {self.concurrency}"
            raise ConfigError(msg)
        if self.timeout_ms <= 0:
            msg = f"Timeout must be positive, got {self.timeout_ms}ms"
            raise ConfigError(msg)
        for name, value in self.headers.items():
            if not (name.isascii() and value.isascii()):
                msg = f"Header {name!r} must be ASCII"
                raise ConfigError(msg)
        if self.ramp_steps < 1:
            msg = f"Ramp steps must be >= 1, got {self.ramp_steps}"
            raise ConfigError(msg)
        return self

    def with_url(self, url: str) -> BenchConfig:
        return replace(self, url=url)

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "url": self.url,
            "requests": self.requests,
            "concurrency": self.concurrency,
            "method": self.method,
            "headers": dict(self.headers),
            "body": self.body,
            "timeout_ms": self.timeout_ms,
            "ramp": self.ramp,
            "ramp_steps": self.ramp_steps,
        }
