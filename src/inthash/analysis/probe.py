"""Probe-path tracing utilities for chained and probing tables."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from inthash.core.hashing import check_int, next_slot, probe_distance, slot_index
from inthash.core.tables import ChainedTable, ProbingTable, _cluster_order

ProbeTrace = Dict[str, Any]
_Slots = List[Optional[Tuple[int, int]]]


def trace_probing_get(table: ProbingTable, key: int) -> ProbeTrace:
    check_int("key", key)
    cap = table.capacity
    origin = slot_index(key, cap)
    idx = origin
    path: List[Dict[str, Any]] = []
    found = False
    terminal = "full-circle"
    for step_no in range(cap):
        slot = table.slot_at(idx)
        step: Dict[str, Any] = {"step": step_no, "slot": idx, "start_slot": origin}
        if slot is None:
            step["state"] = "empty"
            path.append(step)
            terminal = "empty"
            break
        occupant_key, occupant_value = slot
        matches = occupant_key == key
        step.update(
            {
                "state": "occupied",
                "key": occupant_key,
                "value": occupant_value,
                "ideal_slot": slot_index(occupant_key, cap),
                "probe_distance": table.probe_distance(idx),
                "matches": matches,
            }
        )
        path.append(step)
        if matches:
            found = True
            terminal = "match"
            break
        idx = next_slot(idx, cap)
    return {
        "backend": "probing",
        "operation": "get",
        "key": key,
        "found": found,
        "terminal": terminal,
        "capacity": cap,
        "path": path,
    }


def _simulate_growth(table: ProbingTable) -> Tuple[int, _Slots, bool]:
    """Return (capacity, slots, resized) as they would look right before the next insert."""

    cap = table.capacity
    current: _Slots = [table.slot_at(i) for i in range(cap)]
    if not table.policy.should_grow(table.size, cap):
        return cap, current, False
    new_cap = table.policy.next_capacity(cap)
    slots: _Slots = [None] * new_cap
    for item in _cluster_order(current):
        idx = slot_index(item[0], new_cap)
        while slots[idx] is not None:
            idx = next_slot(idx, new_cap)
        slots[idx] = item
    return new_cap, slots, True


def trace_probing_insert(table: ProbingTable, key: int, value: int) -> ProbeTrace:
    check_int("key", key)
    check_int("value", value)
    base: ProbeTrace = {
        "backend": "probing",
        "operation": "insert",
        "key": key,
        "value": value,
    }
    if table.duplicate_policy != "chain":
        existing = trace_probing_get(table, key)
        if existing["found"]:
            base.update(
                {
                    "terminal": "reject" if table.duplicate_policy == "reject" else "update",
                    "capacity": table.capacity,
                    "resized": False,
                    "path": existing["path"],
                }
            )
            return base

    cap, slots, resized = _simulate_growth(table)
    origin = slot_index(key, cap)
    idx = origin
    path: List[Dict[str, Any]] = []
    terminal = "overflow"
    for step_no in range(cap):
        slot = slots[idx]
        step: Dict[str, Any] = {"step": step_no, "slot": idx, "start_slot": origin}
        if slot is None:
            step.update({"state": "empty", "action": "insert"})
            path.append(step)
            terminal = "insert"
            break
        step.update(
            {
                "state": "occupied",
                "occupant_key": slot[0],
                "ideal_slot": slot_index(slot[0], cap),
                "probe_distance": probe_distance(slot_index(slot[0], cap), idx, cap),
                "matches": slot[0] == key,
                "action": "advance",
            }
        )
        path.append(step)
        idx = next_slot(idx, cap)
    base.update({"terminal": terminal, "capacity": cap, "resized": resized, "path": path})
    return base


def trace_chained_get(table: ChainedTable, key: int) -> ProbeTrace:
    check_int("key", key)
    idx = slot_index(key, table.capacity)
    entries: List[Dict[str, Any]] = []
    found = False
    for pos, (entry_key, entry_value) in enumerate(table.chain(idx)):
        matches = entry_key == key
        entries.append({"position": pos, "key": entry_key, "value": entry_value, "matches": matches})
        if matches:
            found = True
            break
    return {
        "backend": "chained",
        "operation": "get",
        "key": key,
        "slot": idx,
        "chain_length": table.chain_length(idx),
        "found": found,
        "terminal": "match" if found else "end-of-chain",
        "capacity": table.capacity,
        "path": entries,
    }


def trace_chained_insert(table: ChainedTable, key: int, value: int) -> ProbeTrace:
    check_int("value", value)
    trace = trace_chained_get(table, key)
    if trace["found"] and table.duplicate_policy == "reject":
        terminal = "reject"
    elif trace["found"] and table.duplicate_policy == "overwrite":
        terminal = "update"
    else:
        terminal = "prepend"
    trace.update({"operation": "insert", "value": value, "terminal": terminal})
    return trace


def trace_probe_get(table: Union[ChainedTable, ProbingTable], key: int) -> ProbeTrace:
    if isinstance(table, ProbingTable):
        return trace_probing_get(table, key)
    if isinstance(table, ChainedTable):
        return trace_chained_get(table, key)
    raise TypeError(f"Unsupported table type: {type(table)!r}")


def trace_probe_insert(table: Union[ChainedTable, ProbingTable], key: int, value: int) -> ProbeTrace:
    if isinstance(table, ProbingTable):
        return trace_probing_insert(table, key, value)
    if isinstance(table, ChainedTable):
        return trace_chained_insert(table, key, value)
    raise TypeError(f"Unsupported table type: {type(table)!r}")


def format_trace_lines(
    trace: Dict[str, Any],
    *,
    seeds: Optional[Sequence[str]] = None,
    export_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """Return a human-friendly rendering of a probe trace."""

    lines: List[str] = []
    backend = trace.get("backend", "?")
    operation = str(trace.get("operation", "?"))
    lines.append(f"Probe visualization [{backend}] {operation.upper()} key={trace.get('key', '?')}")
    lines.append(f"Found: {trace.get('found')} | Terminal: {trace.get('terminal')}")
    if "capacity" in trace:
        capacity_line = f"Capacity: {trace['capacity']}"
        if trace.get("resized"):
            capacity_line += " (after growth)"
        lines.append(capacity_line)
    if backend == "chained" and "slot" in trace:
        lines.append(f"Slot: {trace['slot']} (chain length {trace.get('chain_length', 0)})")
    if seeds:
        lines.append("Seed entries: " + ", ".join(seeds))
    lines.append("Steps:")
    path = trace.get("path")
    if not isinstance(path, list) or not path:
        lines.append("  (no path recorded)")
    else:
        for item in path:
            if not isinstance(item, dict):
                lines.append(f"  {item!r}")
                continue
            if "step" in item:
                prefix = f"  Step {item['step']}: "
            elif "position" in item:
                prefix = f"  Entry {item['position']}: "
            else:
                prefix = "  Item: "
            attrs: List[str] = []
            for name in (
                "slot",
                "start_slot",
                "state",
                "action",
                "ideal_slot",
                "probe_distance",
                "matches",
                "key",
                "value",
                "occupant_key",
            ):
                if name in item and item[name] is not None:
                    shown = item[name]
                    if isinstance(shown, bool):
                        shown = str(shown).lower()
                    attrs.append(f"{name}={shown}")
            if not attrs:
                attrs.append(", ".join(f"{k}={v}" for k, v in item.items()))
            lines.append(prefix + ", ".join(attrs))
    if export_path:
        lines.append(f"Trace JSON written to: {export_path}")
    return lines


__all__ = [
    "format_trace_lines",
    "trace_chained_get",
    "trace_chained_insert",
    "trace_probe_get",
    "trace_probe_insert",
    "trace_probing_get",
    "trace_probing_insert",
]
