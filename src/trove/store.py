"""Store model for trove: the persisted list of tracked entries."""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional

from .exceptions import (
    TroveConfigCorruptError,
    TroveConflictError,
    TroveInvalidArgumentError,
    TroveIOError,
    TroveNotFoundError,
    TroveUnresolvedTemplateError,
)
from .paths import PathResolver, absolute_path, is_within

# Constants
CONFIG_FILENAME = "trove.json"
CONFIG_VERSION = 1


# ============================================================================
# VALIDATION
# ============================================================================


def validate_name(name: Any) -> str:
    """Check that 'name' can be used as a single directory entry in the store."""
    if not isinstance(name, str) or not name:
        raise TroveInvalidArgumentError("Entry name must be a non-empty string")
    if name in (".", "..") or "/" in name or "\0" in name:
        raise TroveInvalidArgumentError(
            f"Invalid entry name '{name}': must be a single path component"
        )
    if name == CONFIG_FILENAME:
        raise TroveInvalidArgumentError(
            f"Invalid entry name '{name}': reserved for the store config"
        )
    return name


def normalize_categories(categories: Iterable[Any]) -> FrozenSet[str]:
    """
    Validate category tags and return them as a set.

    Comma-separated values are split, so ``["shell,editor"]`` and
    ``["shell", "editor"]`` are equivalent.
    """
    if isinstance(categories, str):
        raise TroveInvalidArgumentError("Categories must be given as a list")

    result = set()
    for raw in categories:
        if not isinstance(raw, str):
            raise TroveInvalidArgumentError(f"Category {raw!r} is not a string")
        for category in raw.split(","):
            category = category.strip()
            if not category:
                raise TroveInvalidArgumentError(f"Empty category in {raw!r}")
            result.add(category)
    return frozenset(result)


# ============================================================================
# DATA MODEL
# ============================================================================


@dataclass(frozen=True)
class Entry:
    """One tracked file or directory."""

    name: str
    host_path: str
    categories: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "host_path": self.host_path,
            "store_path": self.name,
            "categories": sorted(self.categories),
        }


@dataclass
class Store:
    """A store root, its config file and the entries it tracks."""

    config_path: Path
    root_path: Path
    entries: Dict[str, Entry] = field(default_factory=dict)

    def store_path(self, name: str) -> Path:
        """Location of an entry's real content."""
        return self.root_path / name

    def get(self, name: str) -> Entry:
        try:
            return self.entries[name]
        except KeyError:
            raise TroveNotFoundError(
                f"No entry named '{name}' in {self.root_path}"
            ) from None

    def contains(self, path: Path) -> bool:
        """Return True if the literal 'path' lies inside the store root."""
        return is_within(path, self.root_path)

    def add_entry(self, entry: Entry) -> None:
        if entry.name in self.entries:
            raise TroveConflictError(f"An entry named '{entry.name}' already exists")
        self.entries[entry.name] = entry

    def remove_entry(self, name: str) -> Entry:
        entry = self.get(name)
        del self.entries[name]
        return entry

    def to_dict(self, resolver: Optional[PathResolver] = None) -> Dict[str, Any]:
        resolver = resolver or PathResolver()
        return {
            "version": CONFIG_VERSION,
            "root_path": resolver.templatize(self.root_path),
            "entries": [entry.to_dict() for entry in self.entries.values()],
        }


# ============================================================================
# LOAD / SAVE
# ============================================================================


def _entry_from_dict(data: Any, config_path: Path) -> Entry:
    if not isinstance(data, dict):
        raise TroveConfigCorruptError(f"{config_path}: entry {data!r} is not an object")

    try:
        name = data["name"]
        host_path = data["host_path"]
        store_path = data["store_path"]
        categories = data.get("categories", [])
    except KeyError as e:
        raise TroveConfigCorruptError(
            f"{config_path}: entry {data.get('name', '?')!r} is missing {e}"
        ) from e

    try:
        validate_name(name)
    except TroveInvalidArgumentError as e:
        raise TroveConfigCorruptError(f"{config_path}: {e}") from e

    if not isinstance(host_path, str) or not host_path:
        raise TroveConfigCorruptError(
            f"{config_path}: entry '{name}' has an invalid host_path"
        )
    if store_path != name:
        raise TroveConfigCorruptError(
            f"{config_path}: entry '{name}' has store_path {store_path!r}, "
            f"expected {name!r}"
        )
    if not isinstance(categories, list):
        raise TroveConfigCorruptError(
            f"{config_path}: categories of entry '{name}' must be a list"
        )
    try:
        normalized = normalize_categories(categories)
    except TroveInvalidArgumentError as e:
        raise TroveConfigCorruptError(f"{config_path}: entry '{name}': {e}") from e
    if sorted(normalized) != sorted(categories):
        raise TroveConfigCorruptError(
            f"{config_path}: entry '{name}' has duplicate or comma-joined categories"
        )

    return Entry(name=name, host_path=host_path, categories=normalized)


def parse_store(
    data: Any,
    config_path: Path,
    resolver: Optional[PathResolver] = None,
    check_root: bool = True,
) -> Store:
    """Build a Store from decoded config data, rejecting anything inconsistent."""
    resolver = resolver or PathResolver()
    config_path = absolute_path(config_path)

    if not isinstance(data, dict):
        raise TroveConfigCorruptError(f"{config_path}: top level must be an object")
    if data.get("version") != CONFIG_VERSION:
        raise TroveConfigCorruptError(
            f"{config_path}: unsupported config version {data.get('version')!r}"
        )
    root_template = data.get("root_path")
    raw_entries = data.get("entries")
    if not isinstance(root_template, str) or not isinstance(raw_entries, list):
        raise TroveConfigCorruptError(
            f"{config_path}: 'root_path' must be a string and 'entries' a list"
        )

    try:
        root_path = resolver.resolve(root_template)
    except TroveUnresolvedTemplateError as e:
        raise TroveConfigCorruptError(f"{config_path}: root_path: {e}") from e
    if check_root and root_path != config_path.parent:
        raise TroveConfigCorruptError(
            f"{config_path}: config belongs to a store at {root_path}; "
            f"run 'trove init {config_path.parent}' to re-point it"
        )

    store = Store(config_path=config_path, root_path=config_path.parent)
    for raw in raw_entries:
        entry = _entry_from_dict(raw, config_path)
        if entry.name in store.entries:
            raise TroveConfigCorruptError(
                f"{config_path}: duplicate entry name '{entry.name}'"
            )
        store.entries[entry.name] = entry
    return store


def read_config(config_path: Path) -> Any:
    """Read and decode the raw JSON of a config file."""
    if not config_path.exists():
        raise TroveNotFoundError(f"Store config {config_path} does not exist")
    try:
        with open(config_path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise TroveConfigCorruptError(f"{config_path}: invalid JSON: {e}") from e
    except OSError as e:
        raise TroveIOError(f"Could not read {config_path}: {e}") from e


def load_store(config_path: Path, resolver: Optional[PathResolver] = None) -> Store:
    """Load and validate the store whose config lives at 'config_path'."""
    config_path = absolute_path(config_path)
    return parse_store(read_config(config_path), config_path, resolver)


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON next to 'path' and rename it into place in one step."""
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise TroveIOError(f"Could not write {path}: {e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)


def save_store(store: Store, resolver: Optional[PathResolver] = None) -> None:
    """Persist the store config atomically."""
    write_json_atomic(store.config_path, store.to_dict(resolver))


def create_store(root_path: Path, resolver: Optional[PathResolver] = None) -> Store:
    """
    Create a store at 'root_path', or open the one already there.

    An existing config is never overwritten. If it was written for a store
    at a different location (the directory was moved), only its root path is
    updated; entries are kept as they are.
    """
    root_path = absolute_path(root_path)
    if root_path.exists() and not root_path.is_dir():
        raise TroveInvalidArgumentError(f"{root_path} exists and is not a directory")

    try:
        root_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise TroveIOError(f"Could not create store directory {root_path}: {e}") from e
    if not os.access(root_path, os.W_OK):
        raise TroveIOError(f"Store directory {root_path} is not writable")

    config_path = root_path / CONFIG_FILENAME
    if not config_path.exists():
        store = Store(config_path=config_path, root_path=root_path)
        save_store(store, resolver)
        return store

    data = read_config(config_path)
    store = parse_store(data, config_path, resolver, check_root=False)
    if (resolver or PathResolver()).resolve(data["root_path"]) != root_path:
        save_store(store, resolver)
    return store
