"""History persistence: storage backends, codec and store middleware."""

from undoable.persistence.codec import decode_history, encode_history
from undoable.persistence.config import (
    Persistence,
    PersistenceSettings,
    build_storage,
)
from undoable.persistence.middleware import (
    InvalidActionError,
    PersistedUndoable,
    PersistenceMiddleware,
    UnexpectedStateError,
    persisted_undoable_actions,
)
from undoable.persistence.storage import FileStorage, MemoryStorage, StoragePersistor

__all__ = [
    "FileStorage",
    "InvalidActionError",
    "MemoryStorage",
    "PersistedUndoable",
    "Persistence",
    "PersistenceMiddleware",
    "PersistenceSettings",
    "StoragePersistor",
    "UnexpectedStateError",
    "build_storage",
    "decode_history",
    "encode_history",
    "persisted_undoable_actions",
]
