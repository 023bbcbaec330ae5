from __future__ import annotations

from dataclasses import asdict
from typing import Any, Iterable

import pandas as pd
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from apibench.analysis import Comparison, diff_frame
from apibench.loadgen.ramp import RampStep
from apibench.metrics import BenchReport


def format_ms(ms: float) -> str:
    if ms < 1:
        return f"{ms * 1000:.0f}us"
    if ms < 1000:
        return f"{ms:.1f}ms"
    return f"{ms / 1000:.2f}s"


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def report_to_dict(report: BenchReport) -> dict[str, Any]:
    data = asdict(report)
    data["status_codes"] = {str(code): count for code, count in report.status_codes.items()}
    return data


def comparison_to_dict(comparison: Comparison) -> dict[str, Any]:
    return {
        "url1": report_to_dict(comparison.base),
        "url2": report_to_dict(comparison.candidate),
        "diff": [asdict(row) for row in comparison.rows],
    }


def ramp_to_dict(report: BenchReport, steps: Iterable[RampStep]) -> dict[str, Any]:
    return {"report": report_to_dict(report), "steps": [asdict(step) for step in steps]}


def status_style(code: int) -> str:
    return "green" if code < 400 else "red"


def render_report(console: Console, report: BenchReport) -> None:
    error_style = "red" if report.error_rate > 0 else "green"
    lat = report.latency

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column(style="bold")
    table.add_column()
    table.add_row("URL", report.url)
    table.add_row("Method", report.method)
    table.add_row("Requests", str(report.total_requests))
    table.add_row("Concurrency", str(report.concurrency))
    table.add_row("Total Time", format_ms(report.total_time_ms))
    table.add_section()
    table.add_row("[yellow]Latency[/yellow]", "")
    table.add_row("Min", format_ms(lat.min))
    table.add_row("Max", format_ms(lat.max))
    table.add_row("Avg", format_ms(lat.mean))
    table.add_row("Median", format_ms(lat.median))
    table.add_row("p95", f"[yellow]{format_ms(lat.p95)}[/yellow]")
    table.add_row("p99", f"[red]{format_ms(lat.p99)}[/red]")
    table.add_row("Std Dev", format_ms(lat.stddev))
    table.add_section()
    table.add_row("[cyan]Throughput[/cyan]", "")
    table.add_row("RPS", f"[green]{report.rps:.1f}[/green] req/s")
    table.add_row("Data", format_bytes(report.total_bytes))
    table.add_section()
    table.add_row("[magenta]Results[/magenta]", "")
    table.add_row("Success", f"[green]{report.success_count}[/green]")
    table.add_row("Errors", f"[{error_style}]{report.error_count}[/{error_style}]")
    table.add_row("Error Rate", f"[{error_style}]{report.error_rate:.1f}%[/{error_style}]")
    table.add_row("Status Codes", "")
    for code, count in sorted(report.status_codes.items()):
        style = status_style(code)
        table.add_row(f"  [{style}]{code}[/{style}]", str(count))

    console.print(Panel(table, title="BENCHMARK RESULTS", title_align="left", border_style="blue"))


def render_ramp_steps(console: Console, steps: Iterable[RampStep]) -> None:
    table = Table(title="Ramp-up")
    table.add_column("Step", justify="right")
    table.add_column("Concurrency", justify="right")
    table.add_column("Requests", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Avg", justify="right")
    for step in steps:
        table.add_row(
            str(step.index),
            str(step.concurrency),
            str(step.requests),
            format_ms(step.elapsed_ms),
            format_ms(step.mean_latency_ms),
        )
    console.print(table)


def render_comparison(console: Console, comparison: Comparison) -> None:
    frame = diff_frame(comparison)
    table = Table(title="COMPARISON")
    table.add_column("Metric")
    table.add_column("URL 1", justify="right")
    table.add_column("URL 2", justify="right")
    table.add_column("Diff", justify="right")
    for row in frame.itertuples(index=False):
        table.add_row(
            _METRIC_LABELS[row.metric],
            _format_metric(row.metric, row.url1),
            _format_metric(row.metric, row.url2),
            _format_diff(row.diff_pct),
        )
    console.print(table)


_METRIC_LABELS = {
    "avg_latency_ms": "Avg Latency",
    "p95_latency_ms": "p95 Latency",
    "p99_latency_ms": "p99 Latency",
    "rps": "RPS",
    "error_rate": "Error Rate",
}


def _format_metric(metric: str, value: float) -> str:
    if metric.endswith("_ms"):
        return format_ms(value)
    if metric == "error_rate":
        return f"{value:.1f}%"
    return f"{value:.1f}"


def _format_diff(delta: float | None) -> str:
    if delta is None or pd.isna(delta):
        return "-"
    style = "green" if delta < 0 else "red"
    return f"[{style}]{delta:.1f}%[/{style}]"
