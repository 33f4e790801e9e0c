from __future__ import annotations

import pytest

import inthash
from inthash.contracts.error import TableReleasedError
from inthash.core import (
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


def test_chaining_surface_scenario() -> None:
    table = create_chained_table(10)
    insert_chaining(table, 10, 100)
    insert_chaining(table, 20, 200)
    insert_chaining(table, 30, 300)
    assert get_chaining(table, 20) == 200
    assert get_chaining(table, 99) is NOT_FOUND
    release(table)
    assert table.released


def test_open_addressing_surface_scenario() -> None:
    table = create_probing_table(10)
    insert_open_addressing(table, 15, 150)
    insert_open_addressing(table, 25, 250)
    insert_open_addressing(table, 35, 350)
    assert get_open_addressing(table, 25) == 250
    assert [table.slot_at(i) for i in (5, 6, 7)] == [(15, 150), (25, 250), (35, 350)]
    release(table)
    with pytest.raises(TableReleasedError):
        get_open_addressing(table, 25)


def test_minus_one_value_is_distinguishable() -> None:
    chained = create_chained_table(5)
    probing = create_probing_table(5)
    insert_chaining(chained, 1, -1)
    insert_open_addressing(probing, 1, -1)
    assert get_chaining(chained, 1) == -1
    assert get_open_addressing(probing, 1) == -1
    assert get_chaining(chained, 2) is NOT_FOUND
    assert get_open_addressing(probing, 2) is NOT_FOUND


def test_handle_survives_growth() -> None:
    table = create_probing_table(2, policy=GrowthPolicy(load_factor_threshold=0.7))
    handle = table
    for key in range(40):
        insert_open_addressing(handle, key, -key)
    assert handle is table
    assert table.capacity > 2
    assert all(get_open_addressing(table, key) == -key for key in range(40))


def test_create_passes_duplicate_policy() -> None:
    assert create_chained_table(4, duplicate_policy="reject").duplicate_policy == "reject"
    assert create_probing_table(4, duplicate_policy="overwrite").duplicate_policy == "overwrite"


def test_kind_mismatch_is_a_type_error() -> None:
    chained = create_chained_table(4)
    probing = create_probing_table(4)
    with pytest.raises(TypeError):
        insert_chaining(probing, 1, 1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        get_open_addressing(chained, 1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        release({})  # type: ignore[arg-type]


def test_package_reexports_surface() -> None:
    assert inthash.ChainedTable is ChainedTable
    assert inthash.ProbingTable is ProbingTable
    assert inthash.get_chaining is get_chaining
