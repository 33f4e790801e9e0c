"""Occupancy statistics and invariant checks for chained and probing tables."""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Any, Dict, List, Tuple, Union

from inthash.contracts.error import InvariantError
from inthash.core.hashing import next_slot, slot_index
from inthash.core.tables import ChainedTable, ProbingTable

AnyTable = Union[ChainedTable, ProbingTable]


def _slot_counts(table: AnyTable) -> List[int]:
    if isinstance(table, ChainedTable):
        return [table.chain_length(idx) for idx in range(table.capacity)]
    if isinstance(table, ProbingTable):
        return [0 if table.slot_at(idx) is None else 1 for idx in range(table.capacity)]
    raise TypeError(f"Unsupported table type: {type(table)!r}")


def collect_probe_histogram(table: AnyTable) -> List[List[int]]:
    """Return ``[[distance, count], ...]`` for a probing table (empty for chained)."""

    histogram: Dict[int, int] = defaultdict(int)
    if isinstance(table, ProbingTable):
        for idx in range(table.capacity):
            dist = table.probe_distance(idx)
            if dist is not None:
                histogram[dist] += 1
    return [[distance, count] for distance, count in sorted(histogram.items())]


def collect_slot_heatmap(table: AnyTable, target_cols: int = 32, max_cells: int = 512) -> Dict[str, Any]:
    base_counts = _slot_counts(table)
    original_slots = len(base_counts)
    total = sum(base_counts)
    group_width = max(1, math.ceil(original_slots / max(1, max_cells)))
    aggregated: List[int] = [
        sum(base_counts[idx : idx + group_width]) for idx in range(0, original_slots, group_width)
    ]

    cols = max(1, min(target_cols, len(aggregated)))
    rows = math.ceil(len(aggregated) / cols)
    aggregated.extend([0] * (rows * cols - len(aggregated)))
    matrix = [aggregated[r * cols : (r + 1) * cols] for r in range(rows)]

    return {
        "rows": rows,
        "cols": cols,
        "matrix": matrix,
        "max": max(aggregated) if aggregated else 0,
        "total": total,
        "slot_span": group_width,
        "original_slots": original_slots,
    }


def table_stats(table: AnyTable) -> Dict[str, Any]:
    stats: Dict[str, Any] = {
        "backend": "chained" if isinstance(table, ChainedTable) else "probing",
        "size": table.size,
        "capacity": table.capacity,
        "load_factor": table.load_factor(),
        "duplicate_policy": table.duplicate_policy,
    }
    if isinstance(table, ChainedTable):
        counts = _slot_counts(table)
        stats["max_chain_len"] = max(counts, default=0)
        stats["empty_slots"] = sum(1 for count in counts if count == 0)
    else:
        histogram = collect_probe_histogram(table)
        probes = sum(count for _, count in histogram)
        stats["growths"] = table.growths
        stats["load_factor_threshold"] = table.policy.load_factor_threshold
        stats["max_probe_distance"] = histogram[-1][0] if histogram else 0
        stats["avg_probe_distance"] = (
            sum(dist * count for dist, count in histogram) / probes if probes else 0.0
        )
        stats["probe_histogram"] = histogram
    return stats


def _verify_chained(table: ChainedTable, verbose: bool) -> Tuple[bool, List[str]]:
    msgs: List[str] = []
    ok = True
    total = 0
    for idx in range(table.capacity):
        for key, _ in table.chain(idx):
            total += 1
            home = slot_index(key, table.capacity)
            if home != idx:
                ok = False
                msgs.append(f"Key {key} stored in slot {idx}, expected {home}")
    if total != table.size:
        ok = False
        msgs.append(f"Size mismatch: size={table.size}, summed={total}")
    if verbose:
        msgs.append(
            f"Capacity={table.capacity}, Size={table.size}, MaxChainLen={table.max_chain_len()}"
        )
    return ok, msgs


def _verify_probing(table: ProbingTable, verbose: bool) -> Tuple[bool, List[str]]:
    msgs: List[str] = []
    ok = True
    cap = table.capacity
    total = 0
    for idx in range(cap):
        slot = table.slot_at(idx)
        if slot is None:
            continue
        total += 1
        key = slot[0]
        cursor = slot_index(key, cap)
        while cursor != idx:
            if table.slot_at(cursor) is None:
                ok = False
                msgs.append(f"Key {key} at slot {idx} is unreachable: empty slot {cursor} on its probe path")
                break
            cursor = next_slot(cursor, cap)
    if total != table.size:
        ok = False
        msgs.append(f"Item count={total} != size={table.size}")
    if table.size >= cap:
        ok = False
        msgs.append(f"Table is full: size={table.size}, capacity={cap}")
    if verbose:
        msgs.append(
            f"Cap={cap}, Size={table.size}, LF={table.load_factor():.3f}, Growths={table.growths}"
        )
    return ok, msgs


def verify_table(table: AnyTable, verbose: bool = False) -> Tuple[bool, List[str]]:
    """Check slot placement and size bookkeeping; returns ``(ok, messages)``."""

    if isinstance(table, ChainedTable):
        return _verify_chained(table, verbose)
    if isinstance(table, ProbingTable):
        return _verify_probing(table, verbose)
    raise TypeError(f"Unsupported table type: {type(table)!r}")


def ensure_table_invariants(table: AnyTable) -> None:
    ok, msgs = verify_table(table)
    if not ok:
        raise InvariantError("; ".join(msgs))


__all__ = [
    "collect_probe_histogram",
    "collect_slot_heatmap",
    "ensure_table_invariants",
    "table_stats",
    "verify_table",
]
