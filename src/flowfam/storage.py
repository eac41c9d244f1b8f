"""
Flow Fam - Local key-value store.

Durable string storage used as a cache of onboarding completion flags and
for the persisted auth session. Same shape as the app's device storage:
get/set/remove a string by key.
"""

import asyncio
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path


class StorageError(Exception):
    """Store could not be read or written (corrupt file, disk full, ...)."""


class KeyValueStore(ABC):
    """Async string key-value store."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """In-process store. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object on disk.

    Every write rewrites the file through a temp file + os.replace so a crash
    mid-write never leaves a truncated store behind. Calls arrive from worker
    threads (asyncio.to_thread, the Supabase refresh thread), so each
    read-modify-write holds the store lock.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Corrupt store file {self.path}: expected an object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, sort_keys=True)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get_sync(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set_sync(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_sync(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    async def get_item(self, key: str) -> str | None:
        return await asyncio.to_thread(self.get_sync, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self.set_sync, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self.remove_sync, key)
