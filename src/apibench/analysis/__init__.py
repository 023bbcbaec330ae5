from __future__ import annotations

from apibench.analysis.compare import Comparison, DiffRow, diff_frame, diff_reports, percent_change, run_compare

__all__ = [
    "Comparison",
    "DiffRow",
    "diff_frame",
    "diff_reports",
    "percent_change",
    "run_compare",
]
