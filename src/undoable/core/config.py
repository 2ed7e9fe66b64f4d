"""Hierarchical YAML configuration system using OmegaConf."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf

from undoable.history.config import UndoableConfig
from undoable.persistence.config import PersistenceSettings


# Section directories next to the base file whose *.yaml files are merged
# over ``undoable.<section>``, in file-name order.
OVERRIDE_SECTIONS = ("history", "persistence")


class ConfigLoader:
    """Loads the ``undoable`` YAML tree and resolves the typed configs.

    Files under ``history/`` and ``persistence/`` next to the base file may
    hold either a full ``undoable:`` tree or just the section's keys.
    """

    def __init__(self, config_path: str | Path = "config/default.yaml"):
        self._config_path = Path(config_path)
        self._config: DictConfig | None = None

    def load(self, validate: bool = False) -> DictConfig:
        """Load base config and merge any section-level overrides.

        Args:
            validate: If True, validate the loaded config against the
                Pydantic schema and raise ``pydantic.ValidationError``
                on invalid values.  ``undoable.system.validate_config``
                in the YAML turns this on as well.
        """
        if not self._config_path.exists():
            raise FileNotFoundError(f"Config not found: {self._config_path}")

        base = OmegaConf.load(self._config_path)
        assert isinstance(base, DictConfig)
        merged = OmegaConf.merge(base, *self._section_overrides())

        if validate or OmegaConf.select(merged, "undoable.system.validate_config", default=False):
            from undoable.core.config_schema import validate_config

            validate_config(OmegaConf.to_container(merged, resolve=True))

        self._config = merged
        return self._config

    def _section_overrides(self) -> list[DictConfig]:
        overrides = []
        for section in OVERRIDE_SECTIONS:
            section_dir = self._config_path.parent / section
            if not section_dir.is_dir():
                continue
            for yaml_file in sorted(section_dir.glob("*.yaml")):
                override = OmegaConf.load(yaml_file)
                if "undoable" not in override:
                    override = OmegaConf.create({"undoable": {section: override}})
                overrides.append(override)
        return overrides

    def override(self, dotpath: str, value: Any) -> None:
        """Override a config value using dot notation.

        Example: config.override("undoable.history.track_after_action_type", "doc/open")
        """
        if self._config is None:
            raise RuntimeError("Config not loaded yet. Call load() first.")
        OmegaConf.update(self._config, dotpath, value)

    @property
    def cfg(self) -> DictConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded yet. Call load() first.")
        return self._config

    def undoable_config(self) -> UndoableConfig:
        return UndoableConfig.from_omegaconf(
            OmegaConf.select(self.cfg, "undoable.history", default=None)
        )

    def persistence_settings(self) -> PersistenceSettings:
        return PersistenceSettings.from_omegaconf(
            OmegaConf.select(self.cfg, "undoable.persistence", default=None)
        )
