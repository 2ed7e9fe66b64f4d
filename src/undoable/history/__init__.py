"""Action-history undo/redo for reducer-style state."""

from undoable.history.actions import ActionCreators, ActionTypes
from undoable.history.config import UndoableConfig, get_config
from undoable.history.engine import HistoryEngine
from undoable.history.predicates import (
    can_redo,
    can_undo,
    deep_equal,
    export_history,
    is_tracked,
    is_undoable,
)
from undoable.history.reducer import create_reducer, undoable_actions

__all__ = [
    "ActionCreators",
    "ActionTypes",
    "HistoryEngine",
    "UndoableConfig",
    "can_redo",
    "can_undo",
    "create_reducer",
    "deep_equal",
    "export_history",
    "get_config",
    "is_tracked",
    "is_undoable",
    "undoable_actions",
]
