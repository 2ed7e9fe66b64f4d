"""Shared pytest fixtures for undoable tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from omegaconf import OmegaConf

from undoable.history.actions import ActionCreators
from undoable.persistence.storage import MemoryStorage


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    return project_root / "config" / "default.yaml"


@pytest.fixture
def default_config(config_path: Path):
    return OmegaConf.load(config_path)


@pytest.fixture
def creators() -> ActionCreators:
    """Action creators using the default reserved names."""
    return ActionCreators()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()
