from __future__ import annotations

import pytest

from inthash.core.hashing import check_capacity, check_int, next_slot, probe_distance, slot_index


@pytest.mark.parametrize(
    ("key", "capacity", "expected"),
    [(15, 10, 5), (10, 10, 0), (0, 7, 0), (-3, 10, 7), (-10, 10, 0), (-11, 10, 9)],
)
def test_slot_index_is_floored_modulo(key: int, capacity: int, expected: int) -> None:
    assert slot_index(key, capacity) == expected


def test_next_slot_wraps() -> None:
    assert next_slot(3, 10) == 4
    assert next_slot(9, 10) == 0


def test_probe_distance_is_wrap_aware() -> None:
    assert probe_distance(5, 7, 10) == 2
    assert probe_distance(9, 1, 10) == 2
    assert probe_distance(4, 4, 10) == 0


def test_checks_reject_bad_types() -> None:
    assert check_capacity(3) == 3
    assert check_int("key", -5) == -5
    with pytest.raises(ValueError):
        check_capacity(0)
    with pytest.raises(TypeError):
        check_capacity(True)
    with pytest.raises(TypeError):
        check_int("value", False)
    with pytest.raises(TypeError):
        check_int("key", "12")
