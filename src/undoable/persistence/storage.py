"""Key-value storage backends for persisted history."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import msgpack

logger = logging.getLogger(__name__)

# File format version (for forward compatibility)
STORAGE_FORMAT_VERSION = 1

_SUFFIXES = {"json": ".json", "msgpack": ".msgpack"}


# ---------------------------------------------------------------------------
# Storage Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class StoragePersistor(Protocol):
    """Async string key-value store."""

    async def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, mainly for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """One file per key under *directory*.

    File format (msgpack or JSON)::

        {"version": 1, "key": "<key>", "value": "<stored string>"}

    Blocking file I/O runs in a worker thread.
    """

    def __init__(self, directory: str | Path, fmt: str = "json") -> None:
        if fmt not in _SUFFIXES:
            raise ValueError(f"fmt must be one of {sorted(_SUFFIXES)}, got {fmt!r}")
        self._directory = Path(directory)
        self._fmt = fmt

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / (quote(key, safe="") + _SUFFIXES[self._fmt])

    async def get_item(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    # ------------------------------------------------------------------
    # Blocking helpers
    # ------------------------------------------------------------------

    def _read(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        raw = path.read_bytes()
        data: dict[str, Any]
        if self._fmt == "msgpack":
            data = msgpack.unpackb(raw, raw=False)
        else:
            data = json.loads(raw.decode("utf-8"))

        version = data.get("version", 1)
        if version > STORAGE_FORMAT_VERSION:
            logger.warning(
                "File version %d > supported %d, some data may be lost",
                version,
                STORAGE_FORMAT_VERSION,
            )
        return data.get("value")

    def _write(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        data = {"version": STORAGE_FORMAT_VERSION, "key": key, "value": value}
        raw: bytes
        if self._fmt == "msgpack":
            raw = msgpack.packb(data, use_bin_type=True)
        else:
            raw = json.dumps(data).encode("utf-8")
        self.path_for(key).write_bytes(raw)
        logger.debug("Stored %s (%d bytes)", key, len(raw))

    def _remove(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
