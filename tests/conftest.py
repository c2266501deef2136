"""Shared pytest fixtures and configuration."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from helpers.builders import StoreBuilder
from trove.store import Store, create_store


@pytest.fixture
def temp_home(monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Create a temporary home directory and point HOME at it."""
    with tempfile.TemporaryDirectory() as tmpdir:
        home = Path(tmpdir).resolve()
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.delenv("TROVE_CONFIG", raising=False)
        monkeypatch.chdir(home)
        yield home


@pytest.fixture
def store(temp_home: Path) -> Store:
    """An empty store at ~/dotfiles."""
    return create_store(temp_home / "dotfiles")


@pytest.fixture
def builder(store: Store, temp_home: Path) -> StoreBuilder:
    return StoreBuilder(store, temp_home)
