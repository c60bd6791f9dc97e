"""Durable slot storage for stat collections, on local disk or shared Redis."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Protocol

from redis import Redis
from redis.exceptions import RedisError

from placeport.records import EntryRecord


class StatsStorageError(RuntimeError):
    """Raised when a durable stats slot cannot be read or written."""


class SlotStorage(Protocol):
    """Protocol implemented by all durable stats backends."""

    def read(self, name: str) -> list[EntryRecord] | None:
        """Return the stored records for ``name`` or None if never written."""

    def write(self, name: str, records: list[EntryRecord]) -> None:
        """Persist the full record sequence for ``name``."""


def encode_records(records: list[EntryRecord]) -> str:
    return json.dumps([record.to_json() for record in records], indent=4)


def decode_records(raw: str | bytes, *, name: str) -> list[EntryRecord]:
    try:
        payload = json.loads(raw)
        if not isinstance(payload, list):
            raise ValueError("slot payload is not a list")
        return [EntryRecord.from_json(item) for item in payload]
    except (ValueError, TypeError, KeyError) as exc:
        raise StatsStorageError(f"Stats slot {name!r} holds invalid data") from exc


class JsonFileStorage:
    """One ``<name>.json`` file per collection under a root directory."""

    file_type = "json"

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        return self.root / f"{name}.{self.file_type}"

    def read(self, name: str) -> list[EntryRecord] | None:
        path = self._path(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StatsStorageError(f"Unable to read stats slot {path}") from exc
        if not raw.strip():
            return []
        return decode_records(raw, name=name)

    def write(self, name: str, records: list[EntryRecord]) -> None:
        path = self._path(name)
        body = encode_records(records)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file so readers never see a partial slot.
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(body)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StatsStorageError(f"Unable to write stats slot {path}") from exc


class RedisSlotStorage:
    """Redis-backed slots shared across service instances."""

    def __init__(
        self,
        *,
        redis_url: str | None = None,
        prefix: str = "placeport:stats",
        client: Any = None,
    ) -> None:
        if client is None:
            if not redis_url:
                raise ValueError("RedisSlotStorage requires redis_url or client")
            client = Redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        self._client = client
        self._prefix = prefix

    def _redis_key(self, name: str) -> str:
        return f"{self._prefix}:{name}"

    def read(self, name: str) -> list[EntryRecord] | None:
        try:
            raw = self._client.get(self._redis_key(name))
        except RedisError as exc:
            raise StatsStorageError("Stats backend unavailable") from exc
        if raw is None:
            return None
        return decode_records(raw, name=name)

    def write(self, name: str, records: list[EntryRecord]) -> None:
        try:
            self._client.set(self._redis_key(name), encode_records(records))
        except RedisError as exc:
            raise StatsStorageError("Stats backend unavailable") from exc

    def close(self) -> None:
        self._client.close()


def create_slot_storage(
    *,
    backend: str,
    location: str | Path | None = None,
    redis_url: str | None = None,
    prefix: str = "placeport:stats",
    logger: logging.Logger | None = None,
) -> SlotStorage | None:
    """Create the configured durable storage, or None for memory-only stats."""

    normalized_backend = backend.strip().lower()
    if normalized_backend == "memory":
        return None

    if normalized_backend == "file":
        if location is None:
            raise RuntimeError("STATS_BACKEND=file requires STATS_LOCATION")
        return JsonFileStorage(location)

    if normalized_backend == "redis":
        if not redis_url:
            raise RuntimeError("STATS_BACKEND=redis requires REDIS_URL")
        return RedisSlotStorage(redis_url=redis_url, prefix=prefix)

    if normalized_backend == "auto":
        if redis_url:
            return RedisSlotStorage(redis_url=redis_url, prefix=prefix)
        if logger:
            logger.warning("stats_backend_auto_fallback backend=memory reason=redis_url_missing")
        return None

    raise ValueError(f"Unsupported STATS_BACKEND value: {backend}")
