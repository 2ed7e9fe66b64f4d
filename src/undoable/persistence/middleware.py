"""PersistenceMiddleware — mirrors the recorded history into storage."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from undoable.core.store import CallNext, StoreAPI
from undoable.core.types import Action, ExportedHistory, HistoryState, is_action
from undoable.history.config import UndoableConfig
from undoable.history.predicates import export_history, is_tracked
from undoable.history.reducer import UndoableReducer, undoable_actions
from undoable.persistence.codec import decode_history, encode_history
from undoable.persistence.config import Persistence
from undoable.persistence.storage import StoragePersistor

logger = logging.getLogger(__name__)


class InvalidActionError(TypeError):
    """Something other than a plain action mapping was dispatched."""


class UnexpectedStateError(RuntimeError):
    """The root state has no HistoryState under the configured reducer key."""


class PersistenceMiddleware:
    """Saves, loads and removes history as actions pass through the store.

    - The reset action removes the stored history before it is reduced.
    - The track-after action loads a stored history and dispatches it as a
      hydrate action.
    - Any other transition that changes the recorded actions or the
      tracking flag saves the exported history.

    Only one storage operation runs at a time.  A transition that would
    start another one while the storage is busy is skipped; the next
    mutation saves again.  Storage failures are logged, never raised.
    """

    def __init__(self, config: UndoableConfig, persistence: Persistence) -> None:
        self._config = config
        self._persistence = persistence
        self._storage_free = True
        self._pending: set[asyncio.Task] = set()
        self._observed_types = frozenset(
            (
                config.undo_action_type,
                config.redo_action_type,
                config.hydrate_action_type,
                config.tracking_action_type,
            )
        )

    @property
    def storage(self) -> StoragePersistor:
        return self._persistence.storage

    @property
    def storage_busy(self) -> bool:
        return not self._storage_free

    async def __call__(self, api: StoreAPI, call_next: CallNext, action: Any) -> Any:
        if not is_action(action):
            raise InvalidActionError(
                "Invalid action provided! Dispatch plain mappings with a 'type' key."
            )
        action_type = action["type"]
        config = self._config

        if action_type == config.reset_action_type and self._storage_free:
            self._storage_free = False
            try:
                await self._remove_history(self._storage_key(api))
            finally:
                self._storage_free = True
            return await call_next(action)

        if not self._observes(action):
            return await call_next(action)

        # The action is reduced before the state shape is checked
        previous_root = api.get_state()
        result = await call_next(action)
        previous = self._history_state(previous_root)
        current = self._history_state(api.get_state())

        passed_boundary = not previous.history.started and current.history.started
        if action_type == config.track_after_action_type and passed_boundary:
            if self._storage_free:
                await self._load_and_hydrate(api)
            # Never save here, an empty history would overwrite the stored one
            return result

        if self._storage_free and _history_changed(previous, current):
            self._storage_free = False
            try:
                await self._save_history(
                    self._storage_key(api), export_history(current)
                )
            finally:
                self._storage_free = True

        return result

    async def _load_and_hydrate(self, api: StoreAPI) -> None:
        self._storage_free = False
        try:
            history = await self._load_history(self._storage_key(api))
            if history is not None:
                hydrate = {
                    "type": self._config.hydrate_action_type,
                    "payload": history.to_dict(),
                }
                await api.dispatch(hydrate)
            if self._persistence.dispatch_after_maybe_loading:
                self._schedule_dispatch(
                    api, {"type": self._persistence.dispatch_after_maybe_loading}
                )
        finally:
            self._storage_free = True

    async def drain(self) -> None:
        """Wait for scheduled post-load dispatches to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _observes(self, action: Action) -> bool:
        if action["type"] == self._config.track_after_action_type:
            return True
        return action["type"] in self._observed_types or is_tracked(
            self._config, action
        )

    def _storage_key(self, api: StoreAPI) -> str:
        return self._persistence.get_storage_key(api.get_state)

    def _history_state(self, root: Any) -> HistoryState:
        key = self._persistence.reducer_key
        value = root.get(key) if isinstance(root, Mapping) else None
        if not isinstance(value, HistoryState):
            raise UnexpectedStateError(
                "Unexpected state structure, make sure you provided the correct "
                f"reducer_key: {key}"
            )
        return value

    def _schedule_dispatch(self, api: StoreAPI, action: Action) -> None:
        async def dispatch_later() -> None:
            await asyncio.sleep(self._persistence.dispatch_after_delay)
            await api.dispatch(action)

        task = asyncio.get_running_loop().create_task(dispatch_later())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _save_history(self, key: str, history: ExportedHistory) -> None:
        try:
            await self.storage.set_item(key, encode_history(history))
        except Exception as exc:
            logger.warning("failed to save history to storage: %s", exc)

    async def _remove_history(self, key: str) -> None:
        try:
            await self.storage.remove_item(key)
        except Exception as exc:
            logger.warning("failed to remove history from storage: %s", exc)

    async def _load_history(self, key: str) -> ExportedHistory | None:
        try:
            raw = await self.storage.get_item(key)
            if not raw:
                return None
            return decode_history(raw)
        except Exception as exc:
            logger.warning("failed to load history from storage: %s", exc)
            return None


def _history_changed(previous: HistoryState, current: HistoryState) -> bool:
    before = previous.history
    after = current.history
    if before.tracking != after.tracking:
        return True
    return len(after.actions) > 0 and after.actions is not before.actions


@dataclass(frozen=True)
class PersistedUndoable:
    reducer: UndoableReducer
    middleware: PersistenceMiddleware


def persisted_undoable_actions(
    reducer: Any,
    custom: UndoableConfig | Mapping[str, Any] | None = None,
    *,
    persistence: Persistence,
    **overrides: Any,
) -> PersistedUndoable:
    """Undoable reducer plus the middleware that persists its history."""
    wrapped = undoable_actions(reducer, custom, **overrides)
    config: UndoableConfig = wrapped.engine.config  # type: ignore[attr-defined]
    return PersistedUndoable(
        reducer=wrapped, middleware=PersistenceMiddleware(config, persistence)
    )
