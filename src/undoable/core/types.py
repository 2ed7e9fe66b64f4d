"""Core data types for the undoable action history."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# A dispatched action: a plain mapping with a string "type" and an
# optional "payload".
Action = Mapping[str, Any]


def is_action(obj: Any) -> bool:
    """True for a plain mapping carrying a string ``type`` key."""
    return isinstance(obj, Mapping) and isinstance(obj.get("type"), str)


class ActionKind(enum.Enum):
    """Dispatch branch selected for an incoming action."""

    UNDO = "undo"
    REDO = "redo"
    RESET = "reset"
    HYDRATE = "hydrate"
    TRACKING = "tracking"
    TRACK_AFTER = "track_after"
    DEFAULT = "default"


@dataclass(frozen=True)
class HistoryAction:
    """One recorded action.  ``skipped`` marks it as undone."""

    action: Action
    skipped: bool = False

    @property
    def type(self) -> str:
        return self.action["type"]

    def to_dict(self) -> dict[str, Any]:
        return {"action": dict(self.action), "skipped": self.skipped}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> HistoryAction:
        return cls(action=d["action"], skipped=bool(d.get("skipped", False)))


@dataclass(frozen=True)
class History:
    """Recorded actions plus the replay baseline they apply to.

    ``started`` records that the track-after boundary has been passed.  It
    survives pausing, reset and hydrate, and is not exported.
    """

    tracking: bool
    actions: tuple[HistoryAction, ...]
    snapshot: Any
    started: bool = False



@dataclass(frozen=True)
class HistoryState:
    """What the undoable reducer stores.

    ``can_undo`` / ``can_redo`` are projections of ``history.actions``
    and are recomputed on every transition.
    """

    present: Any
    can_undo: bool
    can_redo: bool
    history: History


@dataclass(frozen=True)
class ExportedHistory:
    """Serializable projection of :class:`History` (no snapshot)."""

    actions: tuple[HistoryAction, ...] = ()
    tracking: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain dict for JSON export."""
        return {
            "actions": [a.to_dict() for a in self.actions],
            "tracking": self.tracking,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> ExportedHistory:
        """Reconstruct from a deserialized dict.

        Missing fields fall back to ``actions=()`` and ``tracking=True``.
        Entries that do not carry a valid action are dropped.
        """
        if not d:
            return cls()
        return cls(
            actions=coerce_history_actions(d.get("actions") or ()),
            tracking=bool(d.get("tracking", True)),
        )


def coerce_history_actions(entries: Any) -> tuple[HistoryAction, ...]:
    """Normalise a sequence of HistoryAction objects or their dict form."""
    result: list[HistoryAction] = []
    for entry in entries:
        if isinstance(entry, HistoryAction):
            result.append(entry)
        elif isinstance(entry, Mapping) and is_action(entry.get("action")):
            result.append(HistoryAction.from_dict(entry))
        else:
            logger.warning("Dropping malformed history entry: %r", entry)
    return tuple(result)


# ---------------------------------------------------------------------------
# Internal payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HydratePayload:
    actions: tuple[HistoryAction, ...] = field(default_factory=tuple)
    tracking: bool = True

    @classmethod
    def from_action(cls, action: Action) -> HydratePayload:
        payload = action.get("payload")
        if isinstance(payload, ExportedHistory):
            return cls(actions=payload.actions, tracking=payload.tracking)
        if isinstance(payload, Mapping):
            exported = ExportedHistory.from_dict(payload)
            return cls(actions=exported.actions, tracking=exported.tracking)
        return cls()


@dataclass(frozen=True)
class TrackingPayload:
    enabled: bool

    @classmethod
    def from_action(cls, action: Action) -> TrackingPayload | None:
        """Return *None* when the payload is not a bool."""
        payload = action.get("payload")
        if not isinstance(payload, bool):
            return None
        return cls(enabled=payload)
