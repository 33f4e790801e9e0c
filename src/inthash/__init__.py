"""Integer hash tables with separate chaining and linear probing."""

from . import analysis, contracts, core
from .core import (
    NOT_FOUND,
    ChainedTable,
    GrowthPolicy,
    ProbingTable,
    create_chained_table,
    create_probing_table,
    get_chaining,
    get_open_addressing,
    insert_chaining,
    insert_open_addressing,
    release,
)

__all__ = [
    "analysis",
    "contracts",
    "core",
    "NOT_FOUND",
    "ChainedTable",
    "GrowthPolicy",
    "ProbingTable",
    "create_chained_table",
    "create_probing_table",
    "get_chaining",
    "get_open_addressing",
    "insert_chaining",
    "insert_open_addressing",
    "release",
]
