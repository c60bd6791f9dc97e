"""Entry values and stat records kept by the analytics store."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class Size:
    """Image dimensions tracked by the size collections."""

    w: int
    h: int

    def to_json(self) -> dict[str, int]:
        return {"w": self.w, "h": self.h}


EntryValue = Union[str, Size]


def coerce_entry(value: Any) -> EntryValue:
    """Normalize a raw value into one of the permitted entry shapes."""

    if isinstance(value, (str, Size)):
        return value
    if isinstance(value, Mapping) and set(value.keys()) == {"w", "h"}:
        return Size(w=int(value["w"]), h=int(value["h"]))
    raise TypeError(f"Unsupported stats entry value: {value!r}")


def is_recordable(value: Any) -> bool:
    """Empty values are dropped rather than recorded."""

    if value is None:
        return False
    if isinstance(value, (str, list, tuple)) and len(value) == 0:
        return False
    return True


def entry_to_json(entry: EntryValue) -> str | dict[str, int]:
    if isinstance(entry, Size):
        return entry.to_json()
    return entry


@dataclass(slots=True)
class EntryRecord:
    """An entry plus its last-touch timestamp and occurrence count."""

    entry: EntryValue
    timestamp: float
    count: int = 1

    def touch(self, now: float) -> None:
        self.count += 1
        self.timestamp = max(self.timestamp, now)

    def copy(self) -> EntryRecord:
        return EntryRecord(entry=self.entry, timestamp=self.timestamp, count=self.count)

    def to_json(self) -> dict[str, Any]:
        return {
            "entry": entry_to_json(self.entry),
            "timestamp": self.timestamp,
            "count": self.count,
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> EntryRecord:
        count = int(payload.get("count", 1))
        if count < 1:
            raise ValueError(f"Record count must be >= 1, got {count}")
        return cls(
            entry=coerce_entry(payload["entry"]),
            timestamp=float(payload["timestamp"]),
            count=count,
        )
