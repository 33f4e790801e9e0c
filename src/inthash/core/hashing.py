"""Slot index computation shared by the chained and probing tables.

The hash is the key itself reduced modulo the slot count. Python's ``%`` is a
floored modulo, so for a positive ``capacity`` the index is always in
``[0, capacity)`` even for negative keys (``-3 % 10 == 7``). Callers should not
rely on any particular sign convention beyond that range guarantee. There is no
mixing step: sequential or strided keys cluster, which keeps probe sequences
easy to reason about.
"""

from __future__ import annotations

from typing import Any


def check_capacity(capacity: Any) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise TypeError(f"capacity must be an int, got {type(capacity).__name__}")
    if capacity < 1:
        raise ValueError("capacity must be a positive integer")
    return capacity


def check_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return value


def slot_index(key: int, capacity: int) -> int:
    """Return the home slot of ``key`` in a table of ``capacity`` slots."""

    return key % capacity


def next_slot(index: int, capacity: int) -> int:
    return (index + 1) % capacity


def probe_distance(home: int, index: int, capacity: int) -> int:
    """Wrap-aware number of steps from ``home`` to ``index``."""

    return index - home if index >= home else (index + capacity) - home


__all__ = ["check_capacity", "check_int", "next_slot", "probe_distance", "slot_index"]
