"""Functional surface over the chained and probing tables.

Lookups return ``NOT_FOUND`` (``None``) for absent keys, so a stored value of
``-1`` is never confused with a miss.
"""

from __future__ import annotations

from typing import Optional, Union

from .tables import ChainedTable, GrowthPolicy, ProbingTable

NOT_FOUND = None

Table = Union[ChainedTable, ProbingTable]


def _expect(table: object, kind: type) -> None:
    if not isinstance(table, kind):
        raise TypeError(f"Expected {kind.__name__}, got {type(table).__name__}")


def create_chained_table(capacity: int, *, duplicate_policy: str = "chain") -> ChainedTable:
    return ChainedTable(capacity, duplicate_policy=duplicate_policy)


def insert_chaining(table: ChainedTable, key: int, value: int) -> None:
    _expect(table, ChainedTable)
    table.insert(key, value)


def get_chaining(table: ChainedTable, key: int) -> Optional[int]:
    _expect(table, ChainedTable)
    return table.lookup(key)


def create_probing_table(
    capacity: int,
    *,
    policy: Optional[GrowthPolicy] = None,
    duplicate_policy: str = "chain",
) -> ProbingTable:
    return ProbingTable(capacity, policy=policy, duplicate_policy=duplicate_policy)


def insert_open_addressing(table: ProbingTable, key: int, value: int) -> None:
    _expect(table, ProbingTable)
    table.insert(key, value)


def get_open_addressing(table: ProbingTable, key: int) -> Optional[int]:
    _expect(table, ProbingTable)
    return table.lookup(key)


def release(table: Table) -> None:
    if not isinstance(table, (ChainedTable, ProbingTable)):
        raise TypeError(f"Unsupported table type: {type(table)!r}")
    table.release()


__all__ = [
    "NOT_FOUND",
    "Table",
    "create_chained_table",
    "create_probing_table",
    "get_chaining",
    "get_open_addressing",
    "insert_chaining",
    "insert_open_addressing",
    "release",
]
