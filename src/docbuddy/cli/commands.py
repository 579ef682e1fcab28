"""
Diagnostic CLI.

    docbuddy discover checkout --env prod
    docbuddy operations checkout --time-range 24h
    docbuddy health checkout

Runs the same discovery and tool code the agent uses, against the backend
configured through DOCBUDDY_* settings.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Sequence

from docbuddy import __version__
from docbuddy.cli import ux
from docbuddy.config import get_settings
from docbuddy.context import AppContext
from docbuddy.core.errors import DocBuddyError, ErrorKind, ExitCode, ToolResult, format_error_message
from docbuddy.core.validation import require_environment, require_service_name
from docbuddy.discovery.models import DiscoveredMetrics
from docbuddy.logging import configure_logging
from docbuddy.operations.models import DataSource
from docbuddy.tools import get_service_health, get_service_operations

EXIT_CODES = {
    ErrorKind.NOT_INSTRUMENTED: ExitCode.NO_DATA,
    ErrorKind.INSUFFICIENT_METRICS: ExitCode.NO_DATA,
    ErrorKind.NO_DATA_IN_WINDOW: ExitCode.NO_DATA,
    ErrorKind.TRANSIENT_BACKEND_ERROR: ExitCode.PROVIDER_ERROR,
    ErrorKind.BACKEND_ERROR: ExitCode.PROVIDER_ERROR,
    ErrorKind.INVALID_INPUT: ExitCode.VALIDATION_ERROR,
    ErrorKind.CONFIGURATION_ERROR: ExitCode.CONFIG_ERROR,
}


def _exit_code(result: ToolResult[Any]) -> int:
    if result.success:
        return ExitCode.SUCCESS
    return EXIT_CODES.get(result.error_kind, ExitCode.UNKNOWN_ERROR)


def _print_json(payload: Any) -> None:
    ux.console.print_json(json.dumps(payload, default=str))


def _show_discovery(discovered: DiscoveredMetrics) -> None:
    ux.header(f"Metrics for {discovered.service}")
    ux.print_key_value(
        {
            "Source": discovered.source,
            "Primary pattern": discovered.primary_pattern or "(none)",
            "Latency": discovered.primary.latency or "-",
            "Throughput": discovered.primary.throughput or "-",
            "Errors": discovered.primary.errors or "-",
        }
    )
    ux.print_table(
        "Pattern groups",
        ["Pattern", "Direction", "Metrics"],
        [
            [g.base_pattern, "server" if g.is_server_side else "client", ", ".join(g.metrics)]
            for g in discovered.groups
        ],
    )


async def _discover(ctx: AppContext, args: argparse.Namespace) -> int:
    service = require_service_name(args.service)
    environment = require_environment(args.env)
    discovered = await ctx.discovery.discover(service, environment)
    if discovered is None:
        ux.warning(f"No metrics found for {service}; the service may not be instrumented")
        return ExitCode.NO_DATA
    if args.json:
        _print_json(discovered.model_dump(mode="json"))
    else:
        _show_discovery(discovered)
    return ExitCode.SUCCESS


async def _operations(ctx: AppContext, args: argparse.Namespace) -> int:
    result = await get_service_operations(
        ctx, service=args.service, environment=args.env, time_range=args.time_range
    )
    if args.json:
        _print_json(result.to_dict())
    elif result.success:
        data = result.data
        ux.print_table(
            f"{data.service} operations ({data.data_source.value}, {data.time_range})",
            ["Operation", "Requests", "Errors", "Error %", "p50 ms", "p95 ms", "p99 ms"],
            [
                [
                    op.name,
                    str(op.metrics.request_count),
                    str(op.metrics.error_count),
                    f"{op.metrics.error_rate:.2f}",
                    f"{op.metrics.p50_latency:.2f}",
                    f"{op.metrics.p95_latency:.2f}",
                    f"{op.metrics.p99_latency:.2f}",
                ]
                for op in data.operations
            ],
        )
        if data.data_source == DataSource.TRACE_METRICS:
            ux.info("Pre-aggregated trace metrics only carry p95 latency; counts and other percentiles show as 0")
    else:
        ux.error(result.error or "Unknown error")
    return _exit_code(result)


async def _health(ctx: AppContext, args: argparse.Namespace) -> int:
    result = await get_service_health(ctx, service=args.service, environment=args.env)
    if args.json:
        _print_json(result.to_dict())
    elif result.success:
        data = result.data
        show = ux.success if data.status == "healthy" else ux.warning
        show(f"{data.service}: {data.status}")
        ux.print_key_value(
            {
                "Error rate": f"{data.metrics.error_rate:.2f}%",
                "p95 latency": f"{data.metrics.p95_latency:.2f}",
                "Throughput": f"{data.metrics.throughput:.2f}",
                "Active alerts": str(data.active_alerts),
            }
        )
    else:
        ux.error(result.error or "Unknown error")
    return _exit_code(result)


COMMANDS = {
    "discover": _discover,
    "operations": _operations,
    "health": _health,
}


async def _run(args: argparse.Namespace) -> int:
    ctx = AppContext.from_settings(get_settings())
    try:
        return await COMMANDS[args.command](ctx, args)
    finally:
        await ctx.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docbuddy", description="docbuddy telemetry diagnostics")
    parser.add_argument("--version", action="version", version=f"docbuddy {__version__}")
    parser.add_argument("--log-level", default=None, help="Override DOCBUDDY_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    def service_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("service", help="Service name")
        sub.add_argument("--env", default=None, help="Environment tag value")
        sub.add_argument("--json", action="store_true", help="Print raw JSON")
        return sub

    service_command("discover", "Show which metrics carry data for a service")
    operations_parser = service_command("operations", "Per-operation request, error and latency figures")
    operations_parser.add_argument("--time-range", default="1h", help="e.g. 30m, 1h, 7d")
    service_command("health", "Overall service health over the last hour")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    try:
        configure_logging(args.log_level or get_settings().log_level)
    except ValueError as exc:
        ux.error(str(exc))
        return ExitCode.VALIDATION_ERROR
    try:
        return asyncio.run(_run(args))
    except DocBuddyError as exc:
        ux.error(format_error_message(exc))
        return exc.exit_code


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
