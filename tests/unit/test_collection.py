import pytest

from placeport.collection import Collection, CollectionConfig, EvictionOrder
from placeport.records import EntryRecord, Size


def _recency(capacity: int | None = 10) -> Collection:
    return Collection("paths", CollectionConfig(capacity=capacity, merge=True))


def _frequency(capacity: int | None = 10) -> Collection:
    return Collection(
        "sizes-all",
        CollectionConfig(capacity=capacity, merge=True, eviction=EvictionOrder.FREQUENCY),
    )


def test_merge_counts_each_insert_once_per_distinct_value() -> None:
    collection = _recency(capacity=None)
    values = ["a", "b", "a", "c", "a", "b"]
    for tick, value in enumerate(values):
        collection.insert(value, float(tick))

    records = collection.list(map_to_value=False, order_by_time_desc=False)
    counts = {record.entry: record.count for record in records}
    assert counts == {"a": 3, "b": 2, "c": 1}
    assert len(records) == 3


def test_merge_refreshes_timestamp_and_reorders_recent_list() -> None:
    collection = _recency()
    collection.insert("first", 1.0)
    collection.insert("second", 2.0)
    collection.insert("first", 3.0)

    assert collection.list() == ["first", "second"]
    first = collection.list(map_to_value=False)[0]
    assert first.timestamp == 3.0
    assert first.count == 2


def test_merge_uses_structural_equality_for_sizes() -> None:
    collection = _recency()
    collection.insert({"w": 100, "h": 200}, 1.0)
    collection.insert(Size(w=100, h=200), 2.0)
    collection.insert({"h": 200, "w": 100}, 3.0)

    records = collection.list(map_to_value=False)
    assert len(records) == 1
    assert records[0].entry == Size(w=100, h=200)
    assert records[0].count == 3


def test_merge_disabled_keeps_every_insert() -> None:
    collection = Collection("hits", CollectionConfig(capacity=None, merge=False))
    for tick in range(4):
        collection.insert("/img/10/10", float(tick))
    assert len(collection) == 4
    assert all(record.count == 1 for record in collection.records)


def test_empty_values_are_ignored() -> None:
    collection = _recency()
    assert collection.insert(None, 1.0) is False
    assert collection.insert("", 1.0) is False
    assert collection.insert([], 1.0) is False
    assert len(collection) == 0


def test_capacity_is_never_exceeded() -> None:
    collection = _recency(capacity=3)
    for tick in range(50):
        collection.insert(f"value-{tick % 7}", float(tick))
        assert len(collection) <= 3


def test_recency_eviction_drops_oldest_entry() -> None:
    collection = _recency(capacity=10)
    for tick in range(11):
        collection.insert(f"/img/{tick}", float(tick))

    entries = collection.list()
    assert len(entries) == 10
    assert "/img/0" not in entries
    assert entries[0] == "/img/10"
    assert entries[-1] == "/img/1"


def test_frequency_eviction_drops_oldest_of_lowest_count() -> None:
    collection = _frequency(capacity=2)
    for tick in range(5):
        collection.insert("popular", float(tick))
    collection.insert("older", 10.0)
    collection.insert("newer", 11.0)

    counts = {record.entry: record.count for record in collection.records}
    assert counts == {"popular": 5, "newer": 1}


def test_frequency_eviction_keeps_high_count_over_recent_entries() -> None:
    collection = _frequency(capacity=3)
    for tick in range(3):
        collection.insert("steady", float(tick))
    for tick, value in enumerate(["a", "b", "c", "d"], start=10):
        collection.insert(value, float(tick))

    entries = {record.entry for record in collection.records}
    assert "steady" in entries
    assert len(entries) == 3


def test_insert_capacity_override() -> None:
    collection = _recency(capacity=None)
    for tick in range(5):
        collection.insert(str(tick), float(tick), capacity=2)
    assert collection.list() == ["4", "3"]


def test_list_returns_copies() -> None:
    collection = _recency()
    collection.insert("a", 1.0)
    view = collection.list(map_to_value=False)
    view[0].count = 99
    assert collection.records[0].count == 1


def test_clear_and_replace() -> None:
    collection = _recency()
    collection.insert("a", 1.0)
    collection.replace([EntryRecord(entry="b", timestamp=2.0, count=4)])
    assert collection.list() == ["b"]
    assert collection.records[0].count == 4

    collection.clear()
    assert collection.list() == []


def test_negative_capacity_is_rejected() -> None:
    with pytest.raises(ValueError):
        CollectionConfig(capacity=-1)

    collection = _recency(capacity=None)
    with pytest.raises(ValueError):
        collection.insert("a", 1.0, capacity=-2)
    assert len(collection) == 0


def test_zero_capacity_keeps_nothing() -> None:
    collection = _recency(capacity=0)
    assert collection.insert("a", 1.0) is True
    assert len(collection) == 0
