"""Pydantic schema for configuration validation.

Mirrors the YAML structure in config/default.yaml. Used when
``validate=True`` is passed to ``ConfigLoader.load()``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from undoable.history.actions import ActionTypes


class SystemConfig(BaseModel):
    name: str = "undoable"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    validate_config: bool = False
    log_file: str | None = None
    log_json: bool = False


class InternalActionsConfig(BaseModel):
    undo: str = Field(default=ActionTypes.UNDO, min_length=1)
    redo: str = Field(default=ActionTypes.REDO, min_length=1)
    reset: str = Field(default=ActionTypes.RESET, min_length=1)
    hydrate: str = Field(default=ActionTypes.HYDRATE, min_length=1)
    tracking: str = Field(default=ActionTypes.TRACKING, min_length=1)

    @model_validator(mode="after")
    def _distinct(self) -> InternalActionsConfig:
        names = [self.undo, self.redo, self.reset, self.hydrate, self.tracking]
        if len(set(names)) != len(names):
            raise ValueError("internal action types must be distinct")
        return self


class HistorySectionConfig(BaseModel):
    tracked_action_types: list[str] = Field(default_factory=list)
    undoable_action_types: list[str] = Field(default_factory=list)
    track_after_action_type: str | None = None
    internal_actions: InternalActionsConfig = Field(default_factory=InternalActionsConfig)


class StorageConfig(BaseModel):
    backend: Literal["memory", "file"] = "memory"
    directory: str = "data/history"
    format: Literal["json", "msgpack"] = "json"


class PersistenceSectionConfig(BaseModel):
    reducer_key: str = Field(default="history", min_length=1)
    storage_key: str = Field(default="history", min_length=1)
    dispatch_after_maybe_loading: str | None = None
    dispatch_after_delay: float = Field(default=0.1, ge=0)
    storage: StorageConfig = Field(default_factory=StorageConfig)


class UndoableSection(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    history: HistorySectionConfig = Field(default_factory=HistorySectionConfig)
    persistence: PersistenceSectionConfig = Field(
        default_factory=PersistenceSectionConfig
    )


class RootConfig(BaseModel):
    undoable: UndoableSection = Field(default_factory=UndoableSection)


def validate_config(data: dict) -> RootConfig:
    """Validate a plain config dict.  Raises ``pydantic.ValidationError``."""
    return RootConfig.model_validate(data)
