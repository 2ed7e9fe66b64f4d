"""Reserved action types and creators for the undoable reducer."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from undoable.core.types import ExportedHistory

if TYPE_CHECKING:
    from undoable.history.config import UndoableConfig


class ActionTypes:
    """Default names of the reserved action types."""

    UNDO = "@@undoable-actions/undo"
    REDO = "@@undoable-actions/redo"
    RESET = "@@undoable-actions/reset"
    HYDRATE = "@@undoable-actions/hydrate"
    TRACKING = "@@undoable-actions/tracking"
    INIT = "@@undoable-actions/init"


class ActionCreators:
    """Builds reserved actions using the names of a given config.

    Without a config, the :class:`ActionTypes` defaults are used.
    """

    def __init__(self, config: UndoableConfig | None = None) -> None:
        self._config = config

    def _type(self, attr: str, default: str) -> str:
        if self._config is None:
            return default
        return getattr(self._config, attr)

    def undo(self) -> dict[str, Any]:
        return {"type": self._type("undo_action_type", ActionTypes.UNDO)}

    def redo(self) -> dict[str, Any]:
        return {"type": self._type("redo_action_type", ActionTypes.REDO)}

    def reset(self) -> dict[str, Any]:
        return {"type": self._type("reset_action_type", ActionTypes.RESET)}

    def hydrate(
        self, exported: ExportedHistory | Mapping[str, Any]
    ) -> dict[str, Any]:
        if not isinstance(exported, ExportedHistory):
            exported = ExportedHistory.from_dict(exported)
        return {
            "type": self._type("hydrate_action_type", ActionTypes.HYDRATE),
            "payload": exported.to_dict(),
        }

    def set_tracking(self, enabled: bool) -> dict[str, Any]:
        return {
            "type": self._type("tracking_action_type", ActionTypes.TRACKING),
            "payload": bool(enabled),
        }
