from .api import (
    NOT_FOUND,
    Table,
    create_chained_table,
    create_probing_table,
    get_chaining,
    get_open_addressing,
    insert_chaining,
    insert_open_addressing,
    release,
)
from .hashing import slot_index
from .tables import (
    DEFAULT_CAPACITY,
    DUPLICATE_POLICIES,
    GROWTH_FACTOR,
    LOAD_FACTOR_THRESHOLD,
    ChainedTable,
    GrowthPolicy,
    ProbingTable,
)

__all__ = [
    "ChainedTable",
    "GrowthPolicy",
    "ProbingTable",
    "Table",
    "NOT_FOUND",
    "DEFAULT_CAPACITY",
    "DUPLICATE_POLICIES",
    "GROWTH_FACTOR",
    "LOAD_FACTOR_THRESHOLD",
    "create_chained_table",
    "create_probing_table",
    "get_chaining",
    "get_open_addressing",
    "insert_chaining",
    "insert_open_addressing",
    "release",
    "slot_index",
]
