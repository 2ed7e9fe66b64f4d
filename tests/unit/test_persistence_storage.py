"""Tests for undoable.persistence.storage and codec."""

from __future__ import annotations

import json

import msgpack
import numpy as np
import pytest

from undoable.core.types import ExportedHistory, HistoryAction
from undoable.persistence.codec import decode_history, encode_history
from undoable.persistence.config import (
    Persistence,
    PersistenceSettings,
    build_storage,
)
from undoable.persistence.storage import (
    STORAGE_FORMAT_VERSION,
    FileStorage,
    MemoryStorage,
    StoragePersistor,
)


def _exported() -> ExportedHistory:
    return ExportedHistory(
        actions=(
            HistoryAction({"type": "counter/increment", "payload": 2}),
            HistoryAction({"type": "counter/increment"}, skipped=True),
        ),
        tracking=True,
    )


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class TestCodec:
    def test_encode_is_json(self):
        data = json.loads(encode_history(_exported()))
        assert data["tracking"] is True
        assert data["actions"][1] == {
            "action": {"type": "counter/increment"},
            "skipped": True,
        }

    def test_decode_encoded(self):
        assert decode_history(encode_history(_exported())) == _exported()

    def test_decode_bytes(self):
        assert decode_history(encode_history(_exported()).encode()) == _exported()

    def test_numpy_payloads(self):
        exported = ExportedHistory(
            actions=(
                HistoryAction(
                    {
                        "type": "grid/paint",
                        "payload": {
                            "cells": np.array([[1, 2], [3, 4]], dtype=np.int32),
                            "alpha": np.float64(0.5),
                        },
                    }
                ),
            )
        )
        decoded = decode_history(encode_history(exported))
        payload = decoded.actions[0].action["payload"]
        assert isinstance(payload["cells"], np.ndarray)
        assert payload["cells"].dtype == np.int32
        np.testing.assert_array_equal(payload["cells"], [[1, 2], [3, 4]])
        assert payload["alpha"] == 0.5

    def test_unserializable_payload(self):
        exported = ExportedHistory(actions=(HistoryAction({"type": "a", "payload": object()}),))
        with pytest.raises(TypeError):
            encode_history(exported)

    def test_malformed_input(self):
        with pytest.raises(ValueError):
            decode_history("{not json")
        with pytest.raises(ValueError):
            decode_history("[1, 2]")

    def test_partial_input_defaults(self):
        assert decode_history("{}") == ExportedHistory(actions=(), tracking=True)


# ---------------------------------------------------------------------------
# Memory storage
# ---------------------------------------------------------------------------


class TestMemoryStorage:
    def test_is_storage_persistor(self):
        assert isinstance(MemoryStorage(), StoragePersistor)

    @pytest.mark.asyncio
    async def test_set_get_remove(self):
        storage = MemoryStorage()
        assert await storage.get_item("k") is None
        await storage.set_item("k", "v")
        assert await storage.get_item("k") == "v"
        assert "k" in storage
        await storage.remove_item("k")
        assert await storage.get_item("k") is None
        # Removing a missing key is fine
        await storage.remove_item("k")

    @pytest.mark.asyncio
    async def test_initial_items(self):
        storage = MemoryStorage({"a": "1"})
        assert len(storage) == 1
        assert await storage.get_item("a") == "1"


# ---------------------------------------------------------------------------
# File storage
# ---------------------------------------------------------------------------


class TestFileStorage:
    def test_rejects_unknown_format(self, tmp_path):
        with pytest.raises(ValueError):
            FileStorage(tmp_path, fmt="yaml")

    def test_is_storage_persistor(self, tmp_path):
        assert isinstance(FileStorage(tmp_path), StoragePersistor)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fmt", ["json", "msgpack"])
    async def test_set_get_remove(self, tmp_path, fmt):
        storage = FileStorage(tmp_path / "store", fmt=fmt)
        assert await storage.get_item("doc/1") is None
        await storage.set_item("doc/1", "value")
        assert await storage.get_item("doc/1") == "value"
        assert storage.path_for("doc/1").parent == tmp_path / "store"
        await storage.remove_item("doc/1")
        assert await storage.get_item("doc/1") is None
        await storage.remove_item("doc/1")

    @pytest.mark.asyncio
    async def test_json_envelope(self, tmp_path):
        storage = FileStorage(tmp_path)
        await storage.set_item("k", "v")
        data = json.loads(storage.path_for("k").read_text())
        assert data == {"version": STORAGE_FORMAT_VERSION, "key": "k", "value": "v"}

    @pytest.mark.asyncio
    async def test_msgpack_envelope(self, tmp_path):
        storage = FileStorage(tmp_path, fmt="msgpack")
        await storage.set_item("k", "v")
        data = msgpack.unpackb(storage.path_for("k").read_bytes(), raw=False)
        assert data["value"] == "v"

    @pytest.mark.asyncio
    async def test_newer_version_warns(self, tmp_path, caplog):
        storage = FileStorage(tmp_path)
        storage.path_for("k").write_text(json.dumps({"version": 99, "value": "v"}))
        assert await storage.get_item("k") == "v"
        assert "File version 99" in caplog.text

    @pytest.mark.asyncio
    async def test_keys_do_not_collide(self, tmp_path):
        storage = FileStorage(tmp_path)
        await storage.set_item("a/b", "1")
        await storage.set_item("a_b", "2")
        assert await storage.get_item("a/b") == "1"
        assert await storage.get_item("a_b") == "2"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestPersistenceSettings:
    def test_defaults(self):
        s = PersistenceSettings()
        assert s.reducer_key == "history"
        assert s.backend == "memory"
        assert s.storage_format == "json"
        assert s.dispatch_after_delay == 0.1

    def test_from_dict(self):
        s = PersistenceSettings.from_omegaconf(
            {
                "reducer_key": "doc",
                "dispatch_after_maybe_loading": "doc/loaded",
                "dispatch_after_delay": -1,
                "storage": {"backend": "file", "directory": "/tmp/h", "format": "msgpack"},
            }
        )
        assert s.reducer_key == "doc"
        assert s.dispatch_after_maybe_loading == "doc/loaded"
        assert s.dispatch_after_delay == 0.0
        assert s.backend == "file"
        assert s.storage_directory == "/tmp/h"
        assert s.storage_format == "msgpack"

    def test_from_default_yaml(self, default_config):
        s = PersistenceSettings.from_omegaconf(default_config.undoable.persistence)
        assert s == PersistenceSettings()

    def test_build_storage(self, tmp_path):
        assert isinstance(build_storage(PersistenceSettings()), MemoryStorage)
        file_storage = build_storage(
            PersistenceSettings(backend="file", storage_directory=str(tmp_path))
        )
        assert isinstance(file_storage, FileStorage)
        assert file_storage.directory == tmp_path
        with pytest.raises(ValueError):
            build_storage(PersistenceSettings(backend="redis"))

    def test_persistence_from_settings(self):
        p = Persistence.from_settings(PersistenceSettings(storage_key="doc-1"))
        assert p.get_storage_key(lambda: None) == "doc-1"
        assert isinstance(p.storage, MemoryStorage)
