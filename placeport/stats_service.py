"""Read-facing stats queries consumed by the HTTP layer."""

from __future__ import annotations

from typing import Any

from placeport.analytics import PATHS, REFERENCES, SIZES, SIZES_ALL, TEXTS, AnalyticsStore
from placeport.hit_counter import WindowedHitCounter
from placeport.records import EntryRecord, entry_to_json


def _by_count_desc(records: list[EntryRecord]) -> list[EntryRecord]:
    return sorted(records, key=lambda record: record.count, reverse=True)


class StatsQueryService:
    """JSON-ready views over the analytics store."""

    def __init__(self, store: AnalyticsStore, hit_counter: WindowedHitCounter | None = None) -> None:
        self.store = store
        self.hit_counter = hit_counter or WindowedHitCounter(store)

    def _recent(self, name: str) -> list[Any]:
        return [entry_to_json(entry) for entry in self.store.query(name)]

    def recent_texts(self) -> list[str]:
        return self._recent(TEXTS)

    def recent_paths(self) -> list[str]:
        return self._recent(PATHS)

    def recent_sizes(self) -> list[dict[str, int]]:
        return self._recent(SIZES)

    def top_sizes(self) -> list[dict[str, int]]:
        records = self.store.query(SIZES_ALL, map_to_value=False, order_by_time_desc=False)
        return [{"n": record.count, **entry_to_json(record.entry)} for record in _by_count_desc(records)]

    def top_references(self) -> list[dict[str, Any]]:
        records = self.store.query(REFERENCES, map_to_value=False, order_by_time_desc=False)
        return [{"ref": record.entry, "n": record.count} for record in _by_count_desc(records)]

    def second_hits(self) -> list[dict[str, str | int]]:
        return [window.to_json() for window in self.hit_counter.count()]

    def clear(self) -> None:
        self.store.clear_all()
