"""Undo/redo for reducer-style state by recording and replaying actions."""

from undoable.core.store import Store, combine_reducers
from undoable.core.types import (
    ExportedHistory,
    History,
    HistoryAction,
    HistoryState,
    is_action,
)
from undoable.history import (
    ActionCreators,
    ActionTypes,
    UndoableConfig,
    export_history,
    get_config,
    undoable_actions,
)
from undoable.persistence import (
    FileStorage,
    MemoryStorage,
    Persistence,
    persisted_undoable_actions,
)

__version__ = "0.1.0"

__all__ = [
    "ActionCreators",
    "ActionTypes",
    "ExportedHistory",
    "FileStorage",
    "History",
    "HistoryAction",
    "HistoryState",
    "MemoryStorage",
    "Persistence",
    "Store",
    "UndoableConfig",
    "combine_reducers",
    "export_history",
    "get_config",
    "is_action",
    "persisted_undoable_actions",
    "undoable_actions",
]
