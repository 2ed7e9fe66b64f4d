"""Wraps a base reducer with action-history undo/redo."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, assert_never

from undoable.core.types import (
    Action,
    ActionKind,
    HistoryState,
    HydratePayload,
    TrackingPayload,
)
from undoable.history.config import UndoableConfig, get_config
from undoable.history.engine import HistoryEngine, Reducer

UndoableReducer = Callable[[HistoryState | None, Action], HistoryState]


def undoable_actions(
    reducer: Reducer,
    custom: UndoableConfig | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> UndoableReducer:
    """Return a reducer over :class:`HistoryState` wrapping *reducer*.

    *custom* may be a resolved :class:`UndoableConfig` or a mapping of
    overrides (see :func:`get_config`).
    """
    if isinstance(custom, UndoableConfig):
        config = custom
    else:
        config = get_config(custom, **overrides)
    return create_reducer(HistoryEngine(reducer, config))


def create_reducer(engine: HistoryEngine) -> UndoableReducer:
    config = engine.config

    def undoable_reducer(state: HistoryState | None, action: Action) -> HistoryState:
        if state is None:
            return engine.initial_state

        kind = config.kind_of(action)
        if kind is ActionKind.UNDO:
            return engine.undo(state)
        elif kind is ActionKind.REDO:
            return engine.redo(state)
        elif kind is ActionKind.RESET:
            return engine.reset(state)
        elif kind is ActionKind.HYDRATE:
            return engine.hydrate(state, HydratePayload.from_action(action))
        elif kind is ActionKind.TRACKING:
            return engine.set_tracking(state, TrackingPayload.from_action(action))
        elif kind is ActionKind.TRACK_AFTER:
            # The boundary applies once, even if tracking is paused later
            if state.history.started:
                return engine.handle(state, action)
            return engine.track_after(state, action)
        elif kind is ActionKind.DEFAULT:
            return engine.handle(state, action)
        else:
            assert_never(kind)

    undoable_reducer.engine = engine  # type: ignore[attr-defined]
    return undoable_reducer
