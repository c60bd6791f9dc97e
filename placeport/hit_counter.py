"""Rolling hit counts over the raw "hits" collection."""

from __future__ import annotations

from dataclasses import dataclass

from placeport.analytics import HITS, AnalyticsStore

WINDOW_SECONDS = (5, 10, 15)


@dataclass(frozen=True, slots=True)
class HitWindow:
    title: str
    count: int

    def to_json(self) -> dict[str, str | int]:
        return {"title": self.title, "count": self.count}


class WindowedHitCounter:
    """Count hits in trailing windows and compact the hits collection.

    Every window is anchored at the same ``now`` so the three boundaries
    cannot drift apart. Counting and compaction run under one store lock,
    so a hit recorded concurrently is either counted or kept, never lost.
    """

    def __init__(self, store: AnalyticsStore, windows: tuple[int, ...] = WINDOW_SECONDS) -> None:
        if not windows or any(window <= 0 for window in windows):
            raise ValueError("windows must be positive")
        self._store = store
        self._windows = tuple(sorted(windows))

    @property
    def retention_seconds(self) -> int:
        return self._windows[-1]

    def count(self) -> list[HitWindow]:
        with self._store.mutate(HITS) as hits:
            now = self._store.now()
            records = hits.records
            counts = [
                HitWindow(
                    title=f"{window}s",
                    count=sum(1 for record in records if now - window < record.timestamp <= now),
                )
                for window in self._windows
            ]
            cutoff = now - self.retention_seconds
            # Hits stamped after ``now`` by another instance on the same backend are kept.
            hits.replace(record for record in records if record.timestamp > cutoff)
        return counts
