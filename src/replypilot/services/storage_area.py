"""Asynchronous key-value storage areas with quota reporting."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping

from ..errors import StorageError
from ..utils.file_io import read_json, write_json

__all__ = ["DEFAULT_QUOTA_BYTES", "StorageArea", "MemoryStorageArea", "JsonFileStorageArea", "measure_bytes"]

LOGGER = logging.getLogger(__name__)
DEFAULT_QUOTA_BYTES = 10 * 1024 * 1024


def measure_bytes(items: Mapping[str, Any]) -> int:
    """Return the UTF-8 size of every key plus its JSON-encoded value."""

    total = 0
    for key, value in items.items():
        encoded = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        total += len(key.encode("utf-8")) + len(encoded.encode("utf-8"))
    return total


class StorageArea(ABC):
    """Durable key-value medium. Values must be JSON-serializable."""

    def __init__(self, *, quota: int = DEFAULT_QUOTA_BYTES) -> None:
        if quota <= 0:
            raise ValueError("quota must be positive")
        self._quota = int(quota)

    @property
    def quota(self) -> int:
        return self._quota

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return a copy of the value stored under ``key`` or ``None``."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete ``key``; missing keys are ignored."""

    @abstractmethod
    async def bytes_in_use(self) -> int:
        """Return the number of bytes currently stored."""

    def _check_quota(self, items: Mapping[str, Any]) -> None:
        used = measure_bytes(items)
        if used > self._quota:
            raise StorageError(f"Storage quota exceeded ({used} > {self._quota} bytes)")


class MemoryStorageArea(StorageArea):
    """Process-local storage area, mainly for tests and dry runs."""

    def __init__(self, initial: Mapping[str, Any] | None = None, *, quota: int = DEFAULT_QUOTA_BYTES) -> None:
        super().__init__(quota=quota)
        self._items: dict[str, Any] = copy.deepcopy(dict(initial or {}))

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._items.get(key))

    async def set(self, key: str, value: Any) -> None:
        candidate = dict(self._items)
        candidate[key] = _ensure_serializable(key, value)
        self._check_quota(candidate)
        self._items = candidate

    async def remove(self, key: str) -> None:
        self._items.pop(key, None)

    async def bytes_in_use(self) -> int:
        return measure_bytes(self._items)


class JsonFileStorageArea(StorageArea):
    """Storage area persisted as a single JSON object.

    Every write rewrites the whole file through a temp file and an atomic
    rename, so an interrupted write leaves the previous contents intact.
    Blocking file IO runs in a worker thread.
    """

    def __init__(self, path: Path | str, *, quota: int = DEFAULT_QUOTA_BYTES) -> None:
        super().__init__(quota=quota)
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, key: str) -> Any | None:
        items = await self._load()
        return items.get(key)

    async def set(self, key: str, value: Any) -> None:
        items = await self._load()
        items[key] = _ensure_serializable(key, value)
        self._check_quota(items)
        await self._store(items)

    async def remove(self, key: str) -> None:
        items = await self._load()
        if key not in items:
            return
        items.pop(key)
        await self._store(items)

    async def bytes_in_use(self) -> int:
        return measure_bytes(await self._load())

    async def _load(self) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(read_json, self._path)
        except OSError as exc:
            raise StorageError(f"Unable to read {self._path}: {exc}") from exc

    async def _store(self, items: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(write_json, self._path, items)
        except OSError as exc:
            raise StorageError(f"Unable to write {self._path}: {exc}") from exc
        LOGGER.debug("Storage written to %s (%d key(s))", self._path, len(items))


def _ensure_serializable(key: str, value: Any) -> Any:
    try:
        return json.loads(json.dumps(value, ensure_ascii=False))
    except (TypeError, ValueError) as exc:
        raise StorageError(f"Value for {key!r} is not JSON-serializable: {exc}") from exc
