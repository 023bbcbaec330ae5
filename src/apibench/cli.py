from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from importlib.metadata import PackageNotFoundError, version

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskProgressColumn, TextColumn

from apibench.analysis import run_compare
from apibench.config import BenchConfig, ConfigError
from apibench.loadgen.ramp import run_ramp
from apibench.loadgen.runner import run_bench
from apibench.metrics import EmptyBatchError
from apibench.report import (
    comparison_to_dict,
    ramp_to_dict,
    render_comparison,
    render_ramp_steps,
    render_report,
    report_to_dict,
)

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return version("apibench")
    except PackageNotFoundError:
        return "0.0.0"


def parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        msg = f"Invalid header {raw!r}: expected 'Name: value'"
        raise ConfigError(msg)
    return name.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="apibench", description="Benchmark API endpoint performance")
    parser.add_argument("url", nargs="?", default="", help="Target URL")
    parser.add_argument("-n", "--requests", type=int, default=100, help="Number of requests")
    parser.add_argument("-c", "--concurrency", type=int, default=10, help="Concurrent requests")
    parser.add_argument("-m", "--method", default="GET", help="HTTP method")
    parser.add_argument("-H", "--header", action="append", default=[], help="Add header (repeatable)")
    parser.add_argument("-b", "--body", default=None, help="Request body")
    parser.add_argument("-t", "--timeout", type=float, default=10_000.0, help="Request timeout in ms")
    parser.add_argument("--compare", default="", help="Compare against second URL")
    parser.add_argument("--ramp", action="store_true", help="Gradually increase concurrency")
    parser.add_argument("--ramp-steps", type=int, default=5, help="Number of ramp steps")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    parser.add_argument("--version", action="version", version=f"apibench v{_version()}")
    return parser


def build_config(args: argparse.Namespace) -> BenchConfig:
    headers = dict(parse_header(h) for h in args.header)
    config = BenchConfig(
        url=args.url,
        requests=args.requests,
        concurrency=args.concurrency,
        method=args.method,
        headers=headers,
        body=args.body,
        timeout_ms=args.timeout,
        ramp=args.ramp,
        ramp_steps=args.ramp_steps,
    )
    config.validate()
    if args.compare and not args.ramp:
        config.with_url(args.compare).validate()
    return config


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _emit_json(data: dict) -> None:
    print(json.dumps(data, indent=2))


async def _run(args: argparse.Namespace, config: BenchConfig, out: Console, err: Console) -> None:
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        console=err,
        transient=True,
    ) as bar:
        task = bar.add_task("benchmarking", total=None)

        def progress(completed: int, total: int) -> None:
            bar.update(task, completed=completed, total=total)

        def on_step(index: int, concurrency: int) -> None:
            bar.reset(task, description=f"step {index}/{config.ramp_steps} c={concurrency}")

        if config.ramp:
            result = await run_ramp(config, progress, on_step=on_step)
            if args.json:
                _emit_json(ramp_to_dict(result.report, result.steps))
            else:
                render_ramp_steps(out, result.steps)
                render_report(out, result.report)
        elif args.compare:
            comparison = await run_compare(config, args.compare, progress)
            if args.json:
                _emit_json(comparison_to_dict(comparison))
            else:
                render_report(out, comparison.base)
                render_report(out, comparison.candidate)
                render_comparison(out, comparison)
        else:
            report = await run_bench(config, progress)
            if args.json:
                _emit_json(report_to_dict(report))
            else:
                render_report(out, report)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    err = Console(stderr=True)
    out = Console()
    try:
        config = build_config(args)
        logger.debug("config %s", config.to_metadata())
        asyncio.run(_run(args, config, out, err))
    except (ConfigError, EmptyBatchError) as exc:
        err.print(f"[red]Error:[/red] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
