"""HistoryEngine — pure transitions over :class:`HistoryState`.

The engine never stores state snapshots per step.  It records the
actions that changed state and rebuilds ``present`` by folding the base
reducer over the non-skipped entries, starting from ``history.snapshot``.
Every transition returns a new value; inputs are never mutated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from undoable.core.types import (
    Action,
    History,
    HistoryAction,
    HistoryState,
    HydratePayload,
    TrackingPayload,
)
from undoable.history.actions import ActionTypes
from undoable.history.config import UndoableConfig
from undoable.history.predicates import (
    can_redo,
    can_undo,
    deep_equal,
    is_tracked,
    is_undoable,
)

logger = logging.getLogger(__name__)

Reducer = Callable[[Any, Action], Any]

INIT_ACTION: Action = {"type": ActionTypes.INIT}


class HistoryEngine:
    """Computes the next :class:`HistoryState` for a base reducer."""

    def __init__(self, reducer: Reducer, config: UndoableConfig) -> None:
        self._reducer = reducer
        self._config = config
        self._initial_state = self._build_initial_state()

    @property
    def config(self) -> UndoableConfig:
        return self._config

    @property
    def initial_state(self) -> HistoryState:
        return self._initial_state

    def _build_initial_state(self) -> HistoryState:
        present = self._reducer(None, INIT_ACTION)
        return HistoryState(
            present=present,
            can_undo=False,
            can_redo=False,
            history=History(
                tracking=self._config.track_after_action_type is None,
                actions=(),
                snapshot=present,
            ),
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def handle(self, state: HistoryState, action: Action) -> HistoryState:
        """Apply a regular action, recording it when it is tracked."""
        history = state.history
        new_present = self._reducer(state.present, action)

        if (
            not history.tracking
            or not is_tracked(self._config, action)
            or deep_equal(new_present, state.present)
        ):
            return replace(state, present=new_present)

        kept = history.actions
        if is_undoable(self._config, action):
            # A new undoable action clears the redo stack
            kept = tuple(a for a in kept if not a.skipped)
        new_actions = kept + (HistoryAction(action=action, skipped=False),)

        return self._with_actions(history, new_actions, new_present)

    def undo(self, state: HistoryState) -> HistoryState:
        history = state.history
        actions = history.actions
        if not can_undo(self._config, actions):
            return state

        index = _find_last(
            actions, lambda a: not a.skipped and is_undoable(self._config, a.action)
        )
        if index < 0:
            raise RuntimeError("can_undo is set but no undoable entry was found")

        new_actions = _splice(actions, index, replace(actions[index], skipped=True))
        present = self.replay(new_actions, history.snapshot)
        logger.debug("Undo entry %d (%s)", index, actions[index].type)
        return self._with_actions(history, new_actions, present)

    def redo(self, state: HistoryState) -> HistoryState:
        history = state.history
        actions = history.actions
        if not can_redo(actions):
            return state

        index = next(i for i, a in enumerate(actions) if a.skipped)
        new_actions = _splice(actions, index, replace(actions[index], skipped=False))

        if index == len(actions) - 1:
            # Nothing skipped after the last entry, a single step suffices
            present = self._reducer(state.present, new_actions[index].action)
        else:
            present = self.replay(new_actions, history.snapshot)
        logger.debug("Redo entry %d (%s)", index, actions[index].type)
        return self._with_actions(history, new_actions, present)

    def reset(self, state: HistoryState) -> HistoryState:
        """Drop all recorded actions.

        With a track-after boundary configured, rewinds to the snapshot
        taken at that boundary.  Otherwise returns to the initial state.
        The tracking flag is preserved either way.
        """
        tracking = state.history.tracking
        if self._config.track_after_action_type is not None:
            snapshot = state.history.snapshot
            return HistoryState(
                present=snapshot,
                can_undo=False,
                can_redo=False,
                history=History(
                    tracking=tracking,
                    actions=(),
                    snapshot=snapshot,
                    started=state.history.started,
                ),
            )
        initial = self._initial_state
        return replace(
            initial,
            history=replace(
                initial.history, tracking=tracking, started=state.history.started
            ),
        )

    def hydrate(self, state: HistoryState, payload: HydratePayload) -> HistoryState:
        """Load exported actions on top of the current present."""
        actions = tuple(payload.actions)
        snapshot = state.present
        present = self.replay(actions, snapshot)
        logger.debug(
            "Hydrated %d actions (tracking=%s)", len(actions), payload.tracking
        )
        return HistoryState(
            present=present,
            can_undo=can_undo(self._config, actions),
            can_redo=can_redo(actions),
            history=History(
                tracking=payload.tracking,
                actions=actions,
                snapshot=snapshot,
                started=state.history.started,
            ),
        )

    def track_after(self, state: HistoryState, action: Action) -> HistoryState:
        """Apply the boundary action and start tracking from its result."""
        present = self.handle(state, action).present
        return HistoryState(
            present=present,
            can_undo=False,
            can_redo=False,
            history=History(
                tracking=True, actions=(), snapshot=present, started=True
            ),
        )

    def set_tracking(
        self, state: HistoryState, payload: TrackingPayload | None
    ) -> HistoryState:
        if payload is None or payload.enabled == state.history.tracking:
            return state
        return replace(state, history=replace(state.history, tracking=payload.enabled))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def replay(self, actions: Sequence[HistoryAction], snapshot: Any) -> Any:
        """Fold the base reducer over the non-skipped entries."""
        present = snapshot
        for entry in actions:
            if not entry.skipped:
                present = self._reducer(present, entry.action)
        return present

    def _with_actions(
        self,
        history: History,
        actions: tuple[HistoryAction, ...],
        present: Any,
    ) -> HistoryState:
        return HistoryState(
            present=present,
            can_undo=can_undo(self._config, actions),
            can_redo=can_redo(actions),
            history=replace(history, actions=actions),
        )


def _find_last(
    actions: Sequence[HistoryAction], pred: Callable[[HistoryAction], bool]
) -> int:
    for i in range(len(actions) - 1, -1, -1):
        if pred(actions[i]):
            return i
    return -1


def _splice(
    actions: tuple[HistoryAction, ...], index: int, entry: HistoryAction
) -> tuple[HistoryAction, ...]:
    return actions[:index] + (entry,) + actions[index + 1 :]
