"""Bounded stat collections with merge and eviction policies."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from placeport.records import EntryRecord, EntryValue, coerce_entry, is_recordable


class EvictionOrder(str, Enum):
    """Which record is dropped when a collection grows past its capacity."""

    RECENCY = "recency"
    FREQUENCY = "frequency"


@dataclass(frozen=True, slots=True)
class CollectionConfig:
    capacity: int | None = None
    merge: bool = True
    eviction: EvictionOrder = EvictionOrder.RECENCY

    def __post_init__(self) -> None:
        _check_capacity(self.capacity)


def _recency_key(record: EntryRecord) -> float:
    return record.timestamp


def _frequency_key(record: EntryRecord) -> tuple[int, float]:
    return (record.count, record.timestamp)


def _check_capacity(capacity: int | None) -> None:
    if capacity is not None and capacity < 0:
        raise ValueError(f"capacity must be >= 0 or None, got {capacity}")


_EVICTION_KEYS = {
    EvictionOrder.RECENCY: _recency_key,
    EvictionOrder.FREQUENCY: _frequency_key,
}

_UNSET: Any = object()


class Collection:
    """A named list of records that stays within its configured capacity.

    Collections are not thread-safe on their own; the analytics store
    serializes every call.
    """

    def __init__(
        self,
        name: str,
        config: CollectionConfig,
        records: Iterable[EntryRecord] | None = None,
    ) -> None:
        self.name = name
        self.config = config
        self._records: list[EntryRecord] = list(records or [])

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[EntryRecord]:
        return [record.copy() for record in self._records]

    def insert(
        self,
        value: Any,
        now: float,
        *,
        capacity: int | None = _UNSET,
        use_merge: bool | None = None,
    ) -> bool:
        """Merge or append ``value`` and evict down to capacity.

        Returns False when the value was rejected as empty and nothing changed.
        """

        if not is_recordable(value):
            return False

        entry = coerce_entry(value)
        merge = self.config.merge if use_merge is None else use_merge
        limit = self.config.capacity if capacity is _UNSET else capacity
        _check_capacity(limit)

        existing = self._find(entry) if merge else None
        if existing is not None:
            existing.touch(now)
        else:
            self._records.append(EntryRecord(entry=entry, timestamp=now, count=1))

        if limit is not None:
            while len(self._records) > limit:
                self._evict_one()
        return True

    def list(self, *, map_to_value: bool = True, order_by_time_desc: bool = True) -> list[Any]:
        records = self.records
        if order_by_time_desc:
            records.sort(key=_recency_key, reverse=True)
        if map_to_value:
            return [record.entry for record in records]
        return records

    def clear(self) -> None:
        self._records = []

    def replace(self, records: Iterable[EntryRecord]) -> None:
        self._records = [record.copy() for record in records]

    def _find(self, entry: EntryValue) -> EntryRecord | None:
        for record in self._records:
            if record.entry == entry:
                return record
        return None

    def _evict_one(self) -> EntryRecord:
        key = _EVICTION_KEYS[self.config.eviction]
        index = min(range(len(self._records)), key=lambda idx: key(self._records[idx]))
        return self._records.pop(index)
