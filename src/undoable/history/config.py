"""Undoable reducer configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from undoable.core.types import Action, ActionKind
from undoable.history.actions import ActionTypes

logger = logging.getLogger(__name__)

# internal_actions key -> UndoableConfig field
_INTERNAL_ACTION_FIELDS = {
    "undo": "undo_action_type",
    "redo": "redo_action_type",
    "reset": "reset_action_type",
    "hydrate": "hydrate_action_type",
    "tracking": "tracking_action_type",
}


@dataclass(frozen=True)
class UndoableConfig:
    """Per-reducer configuration.  Resolved once, never mutated."""

    # Empty means every action type is tracked / undoable.
    tracked_action_types: frozenset[str] = frozenset()
    undoable_action_types: frozenset[str] = frozenset()
    track_after_action_type: str | None = None

    # Reserved names
    undo_action_type: str = ActionTypes.UNDO
    redo_action_type: str = ActionTypes.REDO
    reset_action_type: str = ActionTypes.RESET
    hydrate_action_type: str = ActionTypes.HYDRATE
    tracking_action_type: str = ActionTypes.TRACKING

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tracked_action_types", frozenset(self.tracked_action_types)
        )
        object.__setattr__(
            self, "undoable_action_types", frozenset(self.undoable_action_types)
        )
        reserved = self.internal_action_types
        if len(set(reserved)) != len(reserved):
            raise ValueError(f"Reserved action types must be distinct: {reserved}")
        if self.track_after_action_type in reserved:
            raise ValueError(
                f"track_after_action_type {self.track_after_action_type!r} "
                "collides with a reserved action type"
            )

    @property
    def internal_action_types(self) -> tuple[str, ...]:
        return (
            self.undo_action_type,
            self.redo_action_type,
            self.reset_action_type,
            self.hydrate_action_type,
            self.tracking_action_type,
        )

    def kind_of(self, action: Action) -> ActionKind:
        """Classify *action* into the reducer branch that handles it."""
        action_type = action.get("type")
        if action_type == self.undo_action_type:
            return ActionKind.UNDO
        if action_type == self.redo_action_type:
            return ActionKind.REDO
        if action_type == self.reset_action_type:
            return ActionKind.RESET
        if action_type == self.hydrate_action_type:
            return ActionKind.HYDRATE
        if action_type == self.tracking_action_type:
            return ActionKind.TRACKING
        if (
            self.track_after_action_type is not None
            and action_type == self.track_after_action_type
        ):
            return ActionKind.TRACK_AFTER
        return ActionKind.DEFAULT

    @classmethod
    def from_omegaconf(cls, cfg: Any) -> UndoableConfig:
        """Build from OmegaConf dict or plain dict."""
        if cfg is None:
            return cls()

        # Handle OmegaConf containers
        from omegaconf import OmegaConf

        if OmegaConf.is_config(cfg):
            cfg = OmegaConf.to_container(cfg, resolve=True)

        if not isinstance(cfg, dict):
            cfg = dict(cfg)

        return get_config(cfg)


def get_config(
    custom: Mapping[str, Any] | None = None, **overrides: Any
) -> UndoableConfig:
    """Merge user overrides over the defaults.

    Accepts flat field names (``undo_action_type=...``) as well as a nested
    ``internal_actions`` mapping (``{"undo": ..., "redo": ...}``) that is
    merged key by key.
    """
    merged: dict[str, Any] = dict(custom or {})
    merged.update(overrides)

    internal = merged.pop("internal_actions", None) or {}
    for key, value in internal.items():
        if key not in _INTERNAL_ACTION_FIELDS:
            raise ValueError(f"Unknown internal action: {key!r}")
        if value is not None:
            merged[_INTERNAL_ACTION_FIELDS[key]] = str(value)

    known = {f.name for f in fields(UndoableConfig)}
    unknown = set(merged) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    for key in ("tracked_action_types", "undoable_action_types"):
        if key in merged:
            merged[key] = _as_type_set(merged[key])

    # None for a reserved name means "keep the default"
    for name in _INTERNAL_ACTION_FIELDS.values():
        if name in merged and merged[name] is None:
            del merged[name]

    config = UndoableConfig(**merged)
    logger.debug("Resolved undoable config: %s", config)
    return config


def _as_type_set(value: Iterable[str] | str | None) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset([value])
    return frozenset(str(v) for v in value)
