"""Persistence configuration."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from undoable.persistence.storage import FileStorage, MemoryStorage, StoragePersistor


@dataclass
class PersistenceSettings:
    """Declarative persistence options (the YAML ``persistence`` section)."""

    reducer_key: str = "history"
    storage_key: str = "history"
    dispatch_after_maybe_loading: str | None = None
    dispatch_after_delay: float = 0.1

    # Storage
    backend: str = "memory"  # "memory" or "file"
    storage_directory: str = "data/history"
    storage_format: str = "json"  # "json" or "msgpack"

    @classmethod
    def from_omegaconf(cls, cfg: Any) -> PersistenceSettings:
        """Build from OmegaConf dict or plain dict."""
        if cfg is None:
            return cls()

        # Handle OmegaConf containers
        from omegaconf import OmegaConf

        if OmegaConf.is_config(cfg):
            cfg = OmegaConf.to_container(cfg, resolve=True)

        if not isinstance(cfg, dict):
            cfg = dict(cfg)

        storage = cfg.get("storage", {}) or {}
        after = cfg.get("dispatch_after_maybe_loading")

        return cls(
            reducer_key=str(cfg.get("reducer_key", "history")),
            storage_key=str(cfg.get("storage_key", "history")),
            dispatch_after_maybe_loading=str(after) if after else None,
            dispatch_after_delay=max(0.0, float(cfg.get("dispatch_after_delay", 0.1))),
            backend=str(storage.get("backend", "memory")),
            storage_directory=str(storage.get("directory", "data/history")),
            storage_format=str(storage.get("format", "json")),
        )


def build_storage(settings: PersistenceSettings) -> StoragePersistor:
    """Instantiate the configured storage backend."""
    if settings.backend == "memory":
        return MemoryStorage()
    if settings.backend == "file":
        return FileStorage(settings.storage_directory, fmt=settings.storage_format)
    raise ValueError(f"Unknown storage backend: {settings.backend!r}")


@dataclass
class Persistence:
    """Runtime wiring for :class:`PersistenceMiddleware`.

    ``get_storage_key`` receives the store's ``get_state`` and returns the
    key to read/write, so one store can persist per-document histories.
    """

    reducer_key: str
    get_storage_key: Callable[[Callable[[], Any]], str]
    storage: StoragePersistor
    dispatch_after_maybe_loading: str | None = None
    dispatch_after_delay: float = 0.1

    @classmethod
    def from_settings(
        cls,
        settings: PersistenceSettings,
        storage: StoragePersistor | None = None,
        get_storage_key: Callable[[Callable[[], Any]], str] | None = None,
    ) -> Persistence:
        key = settings.storage_key
        return cls(
            reducer_key=settings.reducer_key,
            get_storage_key=get_storage_key or (lambda _get_state: key),
            storage=storage if storage is not None else build_storage(settings),
            dispatch_after_maybe_loading=settings.dispatch_after_maybe_loading,
            dispatch_after_delay=settings.dispatch_after_delay,
        )
