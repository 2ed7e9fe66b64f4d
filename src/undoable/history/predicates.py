"""Predicates shared by the history engine, plus structural equality."""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from undoable.core.types import Action, ExportedHistory, HistoryAction, HistoryState
from undoable.history.config import UndoableConfig


def is_tracked(config: UndoableConfig, action: Action) -> bool:
    return (
        not config.tracked_action_types
        or action.get("type") in config.tracked_action_types
    )


def is_undoable(config: UndoableConfig, action: Action) -> bool:
    return (
        not config.undoable_action_types
        or action.get("type") in config.undoable_action_types
    )


def can_undo(config: UndoableConfig, actions: Sequence[HistoryAction]) -> bool:
    """True when some applied entry could be undone."""
    applied = [a for a in actions if not a.skipped]
    if not applied:
        return False
    return not config.undoable_action_types or any(
        a.type in config.undoable_action_types for a in applied
    )


def can_redo(actions: Sequence[HistoryAction]) -> bool:
    return any(a.skipped for a in actions)


def export_history(state: HistoryState) -> ExportedHistory:
    """Detached, serializable copy of the recorded history."""
    history = state.history
    return ExportedHistory(
        actions=tuple(
            HistoryAction(action=copy.deepcopy(dict(a.action)), skipped=a.skipped)
            for a in history.actions
        ),
        tracking=history.tracking,
    )


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality over plain data.

    Containers must have the same concrete type on both sides.  Cycles are
    not detected.
    """
    if a is b:
        return True
    if type(a) is not type(b):
        return False

    if isinstance(a, np.ndarray):
        return a.shape == b.shape and a.dtype == b.dtype and bool(np.array_equal(a, b))

    if isinstance(a, Mapping):
        if len(a) != len(b):
            return False
        for key in a:
            if key not in b or not deep_equal(a[key], b[key]):
                return False
        return True

    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, (set, frozenset)):
        return a == b

    if dataclasses.is_dataclass(a):
        return all(
            deep_equal(getattr(a, f.name), getattr(b, f.name))
            for f in dataclasses.fields(a)
        )

    if hasattr(a, "__dict__") and not isinstance(a, type):
        return deep_equal(vars(a), vars(b))

    return bool(a == b)
