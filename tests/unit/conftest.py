from __future__ import annotations

import pytest

from placeport.analytics import AnalyticsStore
from placeport.records import EntryRecord


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemorySlotStorage:
    """Dict-backed slots that keep only the serialized JSON, like a real backend."""

    def __init__(self) -> None:
        self.slots: dict[str, list[dict]] = {}
        self.writes = 0

    def read(self, name: str) -> list[EntryRecord] | None:
        payload = self.slots.get(name)
        if payload is None:
            return None
        return [EntryRecord.from_json(item) for item in payload]

    def write(self, name: str, records: list[EntryRecord]) -> None:
        self.writes += 1
        self.slots[name] = [record.to_json() for record in records]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def slot_storage() -> MemorySlotStorage:
    return MemorySlotStorage()


@pytest.fixture(params=["memory", "durable"])
def store(request, clock, slot_storage) -> AnalyticsStore:
    storage = slot_storage if request.param == "durable" else None
    return AnalyticsStore(storage, clock=clock)
