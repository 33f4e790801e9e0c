"""CLI command registration and handlers for inthash."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, cast

from inthash.analysis import format_trace_lines, table_stats, trace_probe_get, trace_probe_insert
from inthash.contracts.error import BadInputError, Exit


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    build_table: Callable[..., Any]
    parse_int: Callable[[str, str], int]
    run_csv: Callable[..., Dict[str, Any]]
    logger: logging.Logger
    json_enabled: Callable[[], bool]
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "run-csv",
        "Replay a CSV workload of insert/get rows and print a summary.",
        lambda parser: _configure_run_csv(parser, ctx),
    )
    _register(
        "probe-visualize",
        "Trace probe paths for GET/INSERT operations (text/JSON).",
        lambda parser: _configure_probe_visualize(parser, ctx),
    )
    _register(
        "stats",
        "Seed a table and report occupancy statistics.",
        lambda parser: _configure_stats(parser, ctx),
    )

    return handlers


def _configure_run_csv(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--csv", required=True)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the CSV workload and exit without executing it",
    )
    parser.add_argument(
        "--csv-max-rows",
        type=int,
        default=5_000_000,
        help="Abort if CSV rows exceed this count (0 disables check)",
    )
    parser.add_argument(
        "--json-summary-out", type=str, default=None, help="Write final run stats to JSON for CI"
    )

    def handler(args: argparse.Namespace) -> int:
        result = ctx.run_csv(
            args.csv,
            args.backend,
            capacity=args.capacity,
            json_summary_out=args.json_summary_out,
            csv_max_rows=args.csv_max_rows,
            dry_run=args.dry_run,
        )
        text = None
        if not ctx.json_enabled():
            if result.get("status") == "validated":
                text = f"Validated {result['rows']} rows from {result['csv']}"
            else:
                stats = result["stats"]
                ops = result["ops"]
                text = (
                    f"{result['backend']}: {ops['insert']} inserts, {ops['get']} gets "
                    f"({ops['hits']} hits, {ops['misses']} misses); "
                    f"size={stats['size']} capacity={stats['capacity']}"
                )
        ctx.emit_success("run-csv", text=text, data=result)
        return int(Exit.OK)

    return handler


def _configure_probe_visualize(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument(
        "--operation",
        choices=["get", "insert"],
        required=True,
        help="Operation to trace",
    )
    parser.add_argument("--key", required=True, help="Integer key to probe")
    parser.add_argument("--value", help="Integer value for INSERT operations")
    parser.add_argument(
        "--seed",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Seed the table with entries before tracing (repeatable)",
    )
    parser.add_argument(
        "--export-json",
        help="Write the trace payload to a JSON file (indent=2)",
    )

    def handler(args: argparse.Namespace) -> int:
        if args.operation == "insert" and args.value is None:
            raise BadInputError("INSERT operation requires --value")

        table = ctx.build_table(args.backend, args.capacity)
        try:
            _seed_table(table, args.seed, ctx)
            key = ctx.parse_int(args.key, "--key")
            if args.operation == "get":
                trace = trace_probe_get(table, key)
            else:
                trace = trace_probe_insert(table, key, ctx.parse_int(args.value, "--value"))
        finally:
            table.release()

        export_path: Optional[Path] = None
        if args.export_json:
            export_path = Path(args.export_json).expanduser().resolve()
            export_path.parent.mkdir(parents=True, exist_ok=True)
            export_path.write_text(json.dumps(trace, indent=2), encoding="utf-8")

        text_output = "\n".join(
            format_trace_lines(trace, seeds=args.seed, export_path=export_path)
        )

        payload: Dict[str, Any] = {"trace": cast(Any, trace)}
        if args.seed:
            payload["seed_entries"] = list(args.seed)
        if export_path is not None:
            payload["export_json"] = str(export_path)

        ctx.emit_success("probe-visualize", text=text_output, data=payload)
        return int(Exit.OK)

    return handler


def _configure_stats(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument(
        "--seed",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Insert an entry before reporting (repeatable)",
    )

    def handler(args: argparse.Namespace) -> int:
        table = ctx.build_table(args.backend, args.capacity)
        try:
            _seed_table(table, args.seed, ctx)
            stats = table_stats(table)
        finally:
            table.release()
        text = "\n".join(
            f"{name}: {value}" for name, value in stats.items() if name != "probe_histogram"
        )
        ctx.emit_success("stats", text=text, data={"stats": stats})
        return int(Exit.OK)

    return handler


def _seed_table(table: Any, seeds: List[str], ctx: CLIContext) -> None:
    for entry in seeds:
        if "=" not in entry:
            raise BadInputError(f"Seed entry '{entry}' must be KEY=VALUE")
        key, value = entry.split("=", 1)
        table.insert(ctx.parse_int(key, "seed key"), ctx.parse_int(value, "seed value"))
    if seeds:
        ctx.logger.debug("Seeded %d entries into %r", len(seeds), table)


__all__ = ["CLIContext", "register_subcommands"]
