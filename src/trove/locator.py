"""Finding the active store: the ~/.trove marker and explicit overrides."""

import json
import os
from pathlib import Path
from typing import Optional

import typer

from .exceptions import (
    TroveConfigCorruptError,
    TroveIOError,
    TroveNotInitializedError,
    TroveUnresolvedTemplateError,
)
from .paths import PathLike, PathResolver, absolute_path, get_home_dir
from .store import CONFIG_FILENAME, Store, create_store, write_json_atomic

# Constants
MARKER_FILENAME = ".trove"
CONFIG_ENV_VAR = "TROVE_CONFIG"


class MarkerLocator:
    """
    Locator record kept in the user's home directory.

    The home directory is looked up on every call, never at construction
    time, unless one is passed in explicitly.
    """

    def __init__(
        self,
        home_dir: Optional[Path] = None,
        resolver: Optional[PathResolver] = None,
    ):
        self._home_dir = home_dir
        self.resolver = resolver or PathResolver()

    @property
    def marker_path(self) -> Path:
        home = self._home_dir if self._home_dir is not None else get_home_dir()
        return home / MARKER_FILENAME

    def exists(self) -> bool:
        return self.marker_path.is_file()

    def locate(self) -> Path:
        """Return the config path recorded in the marker."""
        marker = self.marker_path
        if not marker.is_file():
            raise TroveNotInitializedError(
                f"No trove store configured ({marker} not found). "
                "Run 'trove init <path>' first."
            )
        try:
            with open(marker, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise TroveConfigCorruptError(f"{marker}: invalid JSON: {e}") from e
        except OSError as e:
            raise TroveIOError(f"Could not read {marker}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("config_path"), str):
            raise TroveConfigCorruptError(f"{marker}: missing 'config_path'")
        try:
            return self.resolver.resolve(data["config_path"])
        except TroveUnresolvedTemplateError as e:
            raise TroveConfigCorruptError(f"{marker}: {e}") from e

    def write(self, config_path: Path) -> None:
        """Point the marker at 'config_path'."""
        write_json_atomic(
            self.marker_path,
            {"config_path": self.resolver.templatize(config_path)},
        )


def locate_store(
    config_override: Optional[PathLike] = None,
    locator: Optional[MarkerLocator] = None,
) -> Path:
    """
    Work out which store config applies.

    An explicit override (the --config option or the TROVE_CONFIG environment
    variable) wins over the marker in the home directory.
    """
    if config_override is None:
        config_override = os.environ.get(CONFIG_ENV_VAR) or None
    if config_override is not None:
        return absolute_path(config_override)
    return (locator or MarkerLocator()).locate()


def init_store(
    path: PathLike,
    locator: Optional[MarkerLocator] = None,
    resolver: Optional[PathResolver] = None,
    quiet: bool = False,
) -> Store:
    """
    Create a store at 'path' (or adopt the one already there) and point the
    locator record at it.
    """
    locator = locator or MarkerLocator(resolver=resolver)
    repointing = locator.exists()
    root_path = absolute_path(path)
    had_config = (root_path / CONFIG_FILENAME).exists()

    store = create_store(root_path, resolver)
    locator.write(store.config_path)

    if not quiet:
        if had_config:
            typer.secho(
                f"Using existing store at {store.root_path} "
                f"({len(store.entries)} entries)",
                fg=typer.colors.GREEN,
            )
        else:
            typer.secho(f"Created store at {store.root_path}", fg=typer.colors.GREEN)
        if repointing:
            typer.secho(
                f"Locator {locator.marker_path} now points at {store.config_path}",
                fg=typer.colors.YELLOW,
            )
    return store
