from __future__ import annotations

from apibench.config.models import BenchConfig, ConfigError

__all__ = ["BenchConfig", "ConfigError"]
