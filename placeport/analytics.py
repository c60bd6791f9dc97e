"""Analytics store owning the named stat collections."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import logging
from threading import RLock
import time
from typing import Any
from urllib.parse import quote

from placeport.collection import Collection, CollectionConfig, EvictionOrder
from placeport.records import EntryRecord, Size
from placeport.storage import SlotStorage

HITS = "hits"
PATHS = "paths"
TEXTS = "texts"
SIZES = "sizes"
SIZES_ALL = "sizes-all"
REFERENCES = "references"

RECENT_LIMIT = 10

COLLECTION_CONFIGS: dict[str, CollectionConfig] = {
    HITS: CollectionConfig(capacity=None, merge=False),
    PATHS: CollectionConfig(capacity=RECENT_LIMIT, merge=True, eviction=EvictionOrder.RECENCY),
    TEXTS: CollectionConfig(capacity=RECENT_LIMIT, merge=True, eviction=EvictionOrder.RECENCY),
    SIZES: CollectionConfig(capacity=RECENT_LIMIT, merge=True, eviction=EvictionOrder.RECENCY),
    SIZES_ALL: CollectionConfig(capacity=RECENT_LIMIT, merge=True, eviction=EvictionOrder.FREQUENCY),
    REFERENCES: CollectionConfig(
        capacity=RECENT_LIMIT, merge=True, eviction=EvictionOrder.FREQUENCY
    ),
}
DEFAULT_CONFIG = CollectionConfig()

logger = logging.getLogger("placeport.stats")


@dataclass(slots=True)
class ImageStatsEvent:
    """A validated image request about to be served."""

    width: int
    height: int
    square: int | None = None
    text: str | None = None
    referrer: str | None = None
    base_path: str = "/img"

    @property
    def path(self) -> str:
        path = f"{self.base_path}/{self.width}/{self.height}"
        if self.square is not None:
            path += f"?square={self.square}"
            if self.text is not None:
                path += f"&text={quote(self.text)}"
        elif self.text is not None:
            path += f"?text={quote(self.text)}"
        return path


class AnalyticsStore:
    """Bounded, optionally durable store backing the stats endpoints.

    Without a storage backend all collections live in process memory. With
    one, every mutation is written through before returning and every read
    goes back to the backend, so a new store over the same backend sees the
    last successful write. A single lock serializes all collection access.
    """

    def __init__(
        self,
        storage: SlotStorage | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._collections: dict[str, Collection] = {}
        self._lock = RLock()

    @property
    def durable(self) -> bool:
        return self._storage is not None

    @property
    def collection_names(self) -> tuple[str, ...]:
        return tuple(COLLECTION_CONFIGS)

    def now(self) -> float:
        return self._clock()

    def _load(self, name: str) -> Collection:
        """Return a working copy of the collection; callers commit with ``_commit``."""

        config = COLLECTION_CONFIGS.get(name, DEFAULT_CONFIG)
        if self._storage is not None:
            records = self._storage.read(name) or []
            return Collection(name, config, records)
        cached = self._collections.get(name)
        return Collection(name, config, cached.records if cached else None)

    def _commit(self, collection: Collection) -> None:
        if self._storage is not None:
            self._storage.write(collection.name, collection.records)
        self._collections[collection.name] = collection

    @contextmanager
    def mutate(self, name: str) -> Iterator[Collection]:
        """Hold the store lock while the caller rewrites one collection.

        Changes are committed only if the block exits cleanly.
        """

        with self._lock:
            collection = self._load(name)
            yield collection
            self._commit(collection)

    def record(
        self,
        name: str,
        value: Any,
        capacity: int | None = None,
        use_merge: bool | None = None,
    ) -> bool:
        """Insert ``value`` into the named collection.

        ``capacity=None`` and ``use_merge=None`` mean the collection's configured
        defaults, so a bounded collection cannot be written unbounded through
        this call. Returns False when the value was empty and nothing changed.
        """

        with self._lock:
            collection = self._load(name)
            if capacity is None:
                changed = collection.insert(value, self.now(), use_merge=use_merge)
            else:
                changed = collection.insert(
                    value, self.now(), capacity=capacity, use_merge=use_merge
                )
            if changed:
                self._commit(collection)
            return changed

    def query(
        self,
        name: str,
        map_to_value: bool = True,
        order_by_time_desc: bool = True,
    ) -> list[Any]:
        with self._lock:
            return self._load(name).list(
                map_to_value=map_to_value,
                order_by_time_desc=order_by_time_desc,
            )

    def overwrite(self, name: str, records: Iterable[EntryRecord]) -> None:
        with self.mutate(name) as collection:
            collection.replace(records)

    def clear_all(self) -> None:
        with self._lock:
            for name in self.collection_names:
                collection = Collection(name, COLLECTION_CONFIGS[name])
                self._commit(collection)
        logger.info("stats_cleared durable=%s", self.durable)

    def record_image_request(self, event: ImageStatsEvent) -> None:
        """Record every stat derived from one served image."""

        path = event.path
        size = Size(w=event.width, h=event.height)
        with self._lock:
            self.record(HITS, path)
            self.record(PATHS, path)
            self.record(TEXTS, event.text)
            self.record(SIZES, size)
            self.record(SIZES_ALL, size)
            self.record(REFERENCES, event.referrer)
        logger.debug("stats_recorded path=%s referrer=%s", path, event.referrer or "-")
