"""Key-value storage for diary records."""

import asyncio
import json
import weakref
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from nutrisnap.domain.meals import DiaryRecord
from nutrisnap.services.meals import MealRepository

GUEST_SCOPE = "guest"


class KeyValueStore(Protocol):
    """Interface for simple string key-value storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value under the key."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local key-value store."""

    entries: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self.entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value under the key."""
        self.entries[key] = value


@dataclass
class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store keeping one JSON file per key in a directory."""

    directory: Path

    def get(self, key: str) -> str | None:
        """Return the file contents for the key, if the file exists."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write the value, replacing the previous file atomically."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"


def storage_key(scope: str | None) -> str:
    """Return the storage key holding a scope's diary."""
    return f"nutrisnap_meals_{scope or GUEST_SCOPE}"


@dataclass
class KeyValueMealRepository(MealRepository):
    """Repository storing each scope's diary as one JSON list."""

    store: KeyValueStore
    _locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
        field(default_factory=weakref.WeakKeyDictionary, repr=False)
    )

    async def get_all(self, scope: str | None) -> list[DiaryRecord]:
        """Return every record stored for the scope."""
        return await asyncio.to_thread(self._read, scope)

    async def add(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Prepend a record to the scope's list."""
        async with self._loop_lock():
            records = await asyncio.to_thread(self._read, scope)
            await asyncio.to_thread(self._write, scope, [record, *records])
        return record

    async def update(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Overwrite the record with the same id."""
        async with self._loop_lock():
            records = await asyncio.to_thread(self._read, scope)
            if not any(item.id == record.id for item in records):
                raise LookupError(f"Meal {record.id} is not stored")
            updated = [record if item.id == record.id else item for item in records]
            await asyncio.to_thread(self._write, scope, updated)
        return record

    async def delete(self, scope: str | None, record_id: str) -> None:
        """Delete the record with the id, if stored."""
        async with self._loop_lock():
            records = await asyncio.to_thread(self._read, scope)
            remaining = [item for item in records if item.id != record_id]
            await asyncio.to_thread(self._write, scope, remaining)

    def _loop_lock(self) -> asyncio.Lock:
        # A lock binds to the loop that first waits on it.
        loop = asyncio.get_running_loop()
        lock = self._locks.get(loop)
        if lock is None:
            lock = self._locks[loop] = asyncio.Lock()
        return lock

    def _read(self, scope: str | None) -> list[DiaryRecord]:
        raw = self.store.get(storage_key(scope))
        if not raw:
            return []
        return [DiaryRecord.model_validate(item) for item in json.loads(raw)]

    def _write(self, scope: str | None, records: list[DiaryRecord]) -> None:
        payload = [record.to_payload() for record in records]
        self.store.set(storage_key(scope), json.dumps(payload))
