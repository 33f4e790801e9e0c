from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from inthash.contracts.error import (
    DuplicateKeyError,
    InvariantError,
    OutOfMemoryError,
    TableReleasedError,
)

from .hashing import check_capacity, check_int, next_slot, probe_distance, slot_index

logger = logging.getLogger("inthash")

DEFAULT_CAPACITY: int = 10
LOAD_FACTOR_THRESHOLD: float = 0.7
GROWTH_FACTOR: int = 2

DUPLICATE_POLICIES: Tuple[str, ...] = ("chain", "overwrite", "reject")


def check_duplicate_policy(policy: str) -> str:
    if policy not in DUPLICATE_POLICIES:
        raise ValueError(f"duplicate_policy must be one of {', '.join(DUPLICATE_POLICIES)}")
    return policy


def _allocate_slots(capacity: int) -> List[Any]:
    try:
        return [None] * capacity
    except (MemoryError, OverflowError) as exc:
        raise OutOfMemoryError(f"Could not allocate {capacity} slots") from exc


@dataclass
class _ChainEntry:
    key: int
    value: int
    next: Optional["_ChainEntry"] = None


@dataclass
class _Entry:
    key: int
    value: int


class ChainedTable:
    """Fixed-capacity hash table resolving collisions with singly linked chains.

    New entries are prepended to their slot's chain, so when duplicate keys are
    allowed the most recently inserted value shadows older ones on lookup.
    """

    __slots__ = ("_heads", "_size", "_cap", "_duplicates", "_released")

    def __init__(self, capacity: int = DEFAULT_CAPACITY, duplicate_policy: str = "chain") -> None:
        self._cap = check_capacity(capacity)
        self._duplicates = check_duplicate_policy(duplicate_policy)
        self._heads: List[Optional[_ChainEntry]] = _allocate_slots(self._cap)
        self._size = 0
        self._released = False
        logger.debug("Created chained table (capacity=%d)", self._cap)

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        state = "released" if self._released else f"size={self._size}"
        return f"ChainedTable(capacity={self._cap}, {state})"

    @property
    def size(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._cap

    @property
    def duplicate_policy(self) -> str:
        return self._duplicates

    @property
    def released(self) -> bool:
        return self._released

    def load_factor(self) -> float:
        return self._size / self._cap if self._cap else 0.0

    def _ensure_live(self) -> None:
        if self._released:
            raise TableReleasedError("Chained table has been released")

    def _find(self, index: int, key: int) -> Optional[_ChainEntry]:
        node = self._heads[index]
        while node is not None:
            if node.key == key:
                return node
            node = node.next
        return None

    def insert(self, key: int, value: int) -> None:
        self._ensure_live()
        check_int("key", key)
        check_int("value", value)
        idx = slot_index(key, self._cap)
        if self._duplicates != "chain":
            existing = self._find(idx, key)
            if existing is not None:
                if self._duplicates == "reject":
                    raise DuplicateKeyError(f"Key {key} is already present")
                existing.value = value
                return
        try:
            node = _ChainEntry(key, value, self._heads[idx])
        except MemoryError as exc:
            raise OutOfMemoryError("Could not allocate chain entry") from exc
        self._heads[idx] = node
        self._size += 1

    def lookup(self, key: int) -> Optional[int]:
        self._ensure_live()
        check_int("key", key)
        node = self._find(slot_index(key, self._cap), key)
        return node.value if node is not None else None

    def chain(self, index: int) -> Iterator[Tuple[int, int]]:
        """Yield ``(key, value)`` pairs of one slot, head first."""

        self._ensure_live()
        node = self._heads[index]
        while node is not None:
            yield node.key, node.value
            node = node.next

    def chain_length(self, index: int) -> int:
        return sum(1 for _ in self.chain(index))

    def max_chain_len(self) -> int:
        self._ensure_live()
        return max((self.chain_length(i) for i in range(self._cap)), default=0)

    def items(self) -> Iterator[Tuple[int, int]]:
        self._ensure_live()
        for idx in range(self._cap):
            yield from self.chain(idx)

    def release(self) -> None:
        if self._released:
            return
        for idx, node in enumerate(self._heads):
            while node is not None:
                node.next, node = None, node.next
            self._heads[idx] = None
        self._heads = []
        self._size = 0
        self._released = True
        logger.debug("Released chained table (capacity=%d)", self._cap)


def _place(slots: List[Optional[_Entry]], entry: _Entry) -> int:
    """Put ``entry`` in the first free slot of its probe sequence and return the index."""

    capacity = len(slots)
    idx = slot_index(entry.key, capacity)
    for _ in range(capacity):
        if slots[idx] is None:
            slots[idx] = entry
            return idx
        idx = next_slot(idx, capacity)
    raise InvariantError(f"No empty slot on probe sequence (capacity={capacity})")


def _cluster_order(slots: List[Optional[Any]]) -> List[Any]:
    """Occupied slots walked from the first empty slot, so no probe cluster is split."""

    capacity = len(slots)
    start = next((idx for idx, slot in enumerate(slots) if slot is None), 0)
    ordered: List[Any] = []
    for step in range(1, capacity + 1):
        slot = slots[(start + step) % capacity]
        if slot is not None:
            ordered.append(slot)
    return ordered


@dataclass(frozen=True)
class GrowthPolicy:
    """Decides when a probing table grows and redistributes its entries."""

    load_factor_threshold: float = LOAD_FACTOR_THRESHOLD
    growth_factor: int = GROWTH_FACTOR

    def __post_init__(self) -> None:
        threshold = self.load_factor_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise BadInputError("tables.load_factor_threshold must be a number")
        if not 0.0 < threshold <= 1.0:
            raise ValueError("load_factor_threshold must be in (0, 1]")
        if isinstance(self.growth_factor, bool) or not isinstance(self.growth_factor, int):
            raise TypeError("growth_factor must be an int")
        if self.growth_factor < 2:
            raise ValueError("growth_factor must be >= 2")

    def should_grow(self, size: int, capacity: int) -> bool:
        # Never let an insert take the last free slot.
        return size >= self.load_factor_threshold * capacity or size + 1 >= capacity

    def next_capacity(self, capacity: int) -> int:
        return capacity * self.growth_factor

    def rehash(
        self,
        entries: Iterable[_Entry],
        new_capacity: int,
        place: Callable[[List[Optional[_Entry]], _Entry], int],
    ) -> List[Optional[_Entry]]:
        slots: List[Optional[_Entry]] = _allocate_slots(new_capacity)
        for entry in entries:
            place(slots, entry)
        return slots


class ProbingTable:
    """Open-addressing hash table with linear probing and pre-insert growth."""

    __slots__ = ("_slots", "_size", "_cap", "_policy", "_duplicates", "_growths", "_released")

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        policy: Optional[GrowthPolicy] = None,
        duplicate_policy: str = "chain",
    ) -> None:
        self._cap = check_capacity(capacity)
        self._policy = policy if policy is not None else GrowthPolicy()
        self._duplicates = check_duplicate_policy(duplicate_policy)
        self._slots: List[Optional[_Entry]] = _allocate_slots(self._cap)
        self._size = 0
        self._growths = 0
        self._released = False
        logger.debug(
            "Created probing table (capacity=%d, threshold=%.2f)",
            self._cap,
            self._policy.load_factor_threshold,
        )

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        state = "released" if self._released else f"size={self._size}"
        return f"ProbingTable(capacity={self._cap}, {state})"

    @property
    def size(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._cap

    @property
    def policy(self) -> GrowthPolicy:
        return self._policy

    @property
    def duplicate_policy(self) -> str:
        return self._duplicates

    @property
    def growths(self) -> int:
        return self._growths

    @property
    def released(self) -> bool:
        return self._released

    def load_factor(self) -> float:
        return self._size / self._cap if self._cap else 0.0

    def _ensure_live(self) -> None:
        if self._released:
            raise TableReleasedError("Probing table has been released")

    def _find(self, key: int) -> Optional[int]:
        origin = idx = slot_index(key, self._cap)
        while True:
            slot = self._slots[idx]
            if slot is None:
                return None
            if slot.key == key:
                return idx
            idx = next_slot(idx, self._cap)
            if idx == origin:
                return None

    def _grow(self) -> None:
        old_cap = self._cap
        new_cap = self._policy.next_capacity(old_cap)
        new_slots = self._policy.rehash(_cluster_order(self._slots), new_cap, _place)
        self._slots, self._cap = new_slots, new_cap
        self._growths += 1
        logger.info("Grew probing table %d -> %d (size=%d)", old_cap, new_cap, self._size)

    def insert(self, key: int, value: int) -> None:
        self._ensure_live()
        check_int("key", key)
        check_int("value", value)
        if self._duplicates != "chain":
            idx = self._find(key)
            if idx is not None:
                if self._duplicates == "reject":
                    raise DuplicateKeyError(f"Key {key} is already present")
                existing = self._slots[idx]
                assert existing is not None
                existing.value = value
                return
        try:
            entry = _Entry(key, value)
        except MemoryError as exc:
            raise OutOfMemoryError("Could not allocate table entry") from exc
        if self._policy.should_grow(self._size, self._cap):
            self._grow()
        _place(self._slots, entry)
        self._size += 1

    def lookup(self, key: int) -> Optional[int]:
        self._ensure_live()
        check_int("key", key)
        idx = self._find(key)
        if idx is None:
            return None
        slot = self._slots[idx]
        assert slot is not None
        return slot.value

    def slot_at(self, index: int) -> Optional[Tuple[int, int]]:
        self._ensure_live()
        slot = self._slots[index]
        return (slot.key, slot.value) if slot is not None else None

    def probe_distance(self, index: int) -> Optional[int]:
        """Steps between the entry at ``index`` and its home slot, or None when empty."""

        self._ensure_live()
        slot = self._slots[index]
        if slot is None:
            return None
        return probe_distance(slot_index(slot.key, self._cap), index, self._cap)

    def items(self) -> Iterator[Tuple[int, int]]:
        self._ensure_live()
        for slot in self._slots:
            if slot is not None:
                yield slot.key, slot.value

    def release(self) -> None:
        if self._released:
            return
        self._slots = []
        self._size = 0
        self._released = True
        logger.debug("Released probing table (capacity=%d)", self._cap)


__all__ = [
    "ChainedTable",
    "DEFAULT_CAPACITY",
    "DUPLICATE_POLICIES",
    "GROWTH_FACTOR",
    "GrowthPolicy",
    "LOAD_FACTOR_THRESHOLD",
    "ProbingTable",
    "check_duplicate_policy",
]
