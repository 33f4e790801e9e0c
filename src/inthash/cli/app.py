"""
app.py

Command-line driver for the inthash tables:
- ChainedTable (fixed capacity, newest-first chains)
- ProbingTable (linear probing, grows before crossing the load-factor threshold)
- CSV workload replay with a JSON summary for CI
- Probe-path visualisation and occupancy statistics

Success output is plain text by default or one JSON object per command with
--json. Failures are reported as a JSON error envelope on stderr with a stable
exit code.
"""

from __future__ import annotations

import argparse
import contextlib
import csv
import json
import logging
import os
import sys
import time
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from inthash.analysis import table_stats
from inthash.cli.commands import CLIContext, register_subcommands
from inthash.config import BACKENDS, AppConfig, load_app_config
from inthash.contracts.error import BadInputError, IOErrorEnvelope, PolicyError, guard_cli
from inthash.core.tables import ChainedTable, ProbingTable

# --------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------
logger = logging.getLogger("inthash")
logger.setLevel(logging.INFO)
logger.propagate = False

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 5_000_000
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_CSV_MAX_ROWS = 5_000_000


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, DEFAULT_LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    use_json: bool = False,
    log_file: str | None = None,
    *,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """Configure console (and optional rotating file) logging."""

    formatter: logging.Formatter
    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT)

    for handler in list(logger.handlers):
        with contextlib.suppress(Exception):
            handler.close()
        logger.removeHandler(handler)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


configure_logging()

APP_CONFIG: AppConfig = AppConfig()
OUTPUT_JSON: bool = False


def set_app_config(cfg: AppConfig) -> None:
    global APP_CONFIG
    APP_CONFIG = cfg


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False))
    else:
        if text is not None:
            print(text)


def build_table(backend: str, capacity: int | None = None) -> ChainedTable | ProbingTable:
    if capacity is not None and capacity <= 0:
        raise BadInputError(f"--capacity must be a positive integer, got {capacity}")
    return APP_CONFIG.build_table(backend, capacity)


def parse_int(raw: str, what: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise BadInputError(f"{what} must be an integer, got {raw!r}") from exc


def run_csv(
    path: str,
    backend: str,
    *,
    capacity: int | None = None,
    json_summary_out: str | None = None,
    csv_max_rows: int = DEFAULT_CSV_MAX_ROWS,
    dry_run: bool = False,
) -> dict[str, Any]:
    """
    Replay ``op,key,value`` rows against a fresh table. ``op`` is ``insert`` or
    ``get``; keys and values are integers. Returns a summary payload and
    optionally writes it to ``json_summary_out``.
    """
    csv_hint = "Expected header op,key,value with op in {insert, get} and integer key/value"
    row_counter = 0

    def load_ops() -> Iterator[tuple[str, int, int | None]]:
        nonlocal row_counter
        try:
            with open(path, newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f)
                fieldnames = reader.fieldnames or []
                required = {"op", "key", "value"}
                header = {fn.strip() for fn in fieldnames}
                missing = required - header
                if missing:
                    raise BadInputError(
                        f"Missing header columns: {', '.join(sorted(missing))}", hint=csv_hint
                    )
                for row in reader:
                    row_counter += 1
                    if csv_max_rows and csv_max_rows > 0 and row_counter > csv_max_rows:
                        raise BadInputError(
                            f"CSV row limit exceeded ({row_counter} > {csv_max_rows})",
                            hint=csv_hint,
                        )
                    line_no = reader.line_num
                    op_raw = (row.get("op") or "").strip().lower()
                    key_raw = (row.get("key") or "").strip()
                    value_raw = (row.get("value") or "").strip()
                    if op_raw not in {"insert", "get"}:
                        raise BadInputError(f"Unknown op '{op_raw}' at line {line_no}", hint=csv_hint)
                    if not key_raw:
                        raise BadInputError(f"Missing key at line {line_no}", hint=csv_hint)
                    key = parse_int(key_raw, f"key at line {line_no}")
                    value: int | None = None
                    if op_raw == "insert":
                        if not value_raw:
                            raise BadInputError(
                                f"INSERT missing value at line {line_no}", hint=csv_hint
                            )
                        value = parse_int(value_raw, f"value at line {line_no}")
                    yield op_raw, key, value
        except FileNotFoundError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        except BadInputError:
            raise
        except OSError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        except csv.Error as exc:
            raise BadInputError(str(exc), hint=csv_hint) from exc

    if dry_run:
        for _ in load_ops():
            pass
        logger.info("CSV validation successful (%d rows): %s", row_counter, path)
        return {"status": "validated", "csv": str(path), "backend": backend, "rows": row_counter}

    table = build_table(backend, capacity)
    initial_capacity = table.capacity
    counts = {"insert": 0, "get": 0, "hits": 0, "misses": 0}
    start = time.perf_counter()
    try:
        for op, key, value in load_ops():
            counts[op] += 1
            if op == "insert":
                assert value is not None
                table.insert(key, value)
            elif table.lookup(key) is None:
                counts["misses"] += 1
            else:
                counts["hits"] += 1
        elapsed = time.perf_counter() - start

        summary: dict[str, Any] = {
            "status": "completed",
            "csv": str(path),
            "backend": backend,
            "rows": row_counter,
            "ops": counts,
            "initial_capacity": initial_capacity,
            "elapsed_seconds": elapsed,
            "ops_per_second": (row_counter / elapsed) if elapsed > 0 else 0.0,
            "stats": table_stats(table),
        }
    finally:
        table.release()

    logger.info(
        "Replayed %d ops on %s table (size=%d, capacity=%d)",
        row_counter,
        backend,
        summary["stats"]["size"],
        summary["stats"]["capacity"],
    )
    if json_summary_out:
        out_path = Path(json_summary_out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        summary["json_summary_out"] = str(out_path)
    return summary


# --------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------
def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        description="Integer hash tables: separate chaining and linear probing with growth."
    )
    p.add_argument(
        "--backend",
        default="probing",
        choices=list(BACKENDS),
        help="Table implementation to use (default: %(default)s)",
    )
    p.add_argument(
        "--capacity",
        type=int,
        default=None,
        help="Initial capacity (defaults to the configured capacity for the backend)",
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to TOML config file (env: INTHASH_CONFIG)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ctx = CLIContext(
        emit_success=emit_success,
        build_table=build_table,
        parse_int=parse_int,
        run_csv=run_csv,
        logger=logger,
        json_enabled=lambda: OUTPUT_JSON,
        guard=guard_cli,
    )

    handlers = register_subcommands(sub, ctx)

    args = p.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    configure_logging(
        args.log_json,
        args.log_file,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )

    cfg_path = args.config or os.getenv("INTHASH_CONFIG")
    cfg = guard_cli(load_app_config)(cfg_path)
    set_app_config(cfg)
    if cfg_path:
        logger.info("Loaded config from %s", cfg_path)

    handler = handlers.get(args.cmd)
    if handler is None:
        raise PolicyError(f"Unknown command {args.cmd}")
    return handler(args)


def console_main() -> None:
    """Entry point for console_scripts."""

    try:
        raise SystemExit(main(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        raise SystemExit(2) from e


if __name__ == "__main__":
    console_main()
