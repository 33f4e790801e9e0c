"""Tracing and statistics helpers for inthash tables."""

from .probe import format_trace_lines, trace_probe_get, trace_probe_insert
from .stats import (
    collect_probe_histogram,
    collect_slot_heatmap,
    ensure_table_invariants,
    table_stats,
    verify_table,
)

__all__ = [
    "collect_probe_histogram",
    "collect_slot_heatmap",
    "ensure_table_invariants",
    "format_trace_lines",
    "table_stats",
    "trace_probe_get",
    "trace_probe_insert",
    "verify_table",
]
