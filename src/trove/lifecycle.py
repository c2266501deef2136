"""Adding entries to a trove store and removing them again."""

import errno
import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

import typer

from .exceptions import (
    TroveConfigCorruptError,
    TroveConflictError,
    TroveError,
    TroveInvalidArgumentError,
    TroveIOError,
    TroveNotFoundError,
    TroveUnresolvedTemplateError,
)
from .paths import (
    PathLike,
    PathResolver,
    absolute_path,
    exists_or_link,
    points_to,
    same_location,
)
from .store import Entry, Store, normalize_categories, save_store, validate_name

# ============================================================================
# FILESYSTEM HELPERS
# ============================================================================


def make_parents(path: Path) -> List[Path]:
    """Create the missing parent directories of 'path', returning those created."""
    missing = []
    parent = path.parent
    while not parent.exists():
        missing.append(parent)
        parent = parent.parent
    for directory in reversed(missing):
        directory.mkdir()
    return missing


def remove_dirs(directories: Iterable[Path]) -> None:
    """Remove directories created by make_parents, deepest first, if empty."""
    for directory in directories:
        try:
            directory.rmdir()
        except OSError:
            break


def remove_path(path: Path) -> None:
    """Delete a file, symlink or directory tree."""
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)


def copy_path(src: Path, dest: Path) -> None:
    """Copy a file or directory tree, keeping symlinks inside it as symlinks."""
    if src.is_dir() and not src.is_symlink():
        shutil.copytree(src, dest, symlinks=True)
    else:
        shutil.copy2(src, dest, follow_symlinks=False)


def link_to_store(host: Path, store_path: Path) -> None:
    host.symlink_to(store_path, target_is_directory=store_path.is_dir())


def move_path(src: Path, dest: Path) -> None:
    """
    Move a file or directory tree, copying then deleting across filesystems.

    An OSError means nothing changed: 'src' is intact and 'dest' absent.
    TroveIOError means the source could not be removed after copying nor put
    back; the only complete copy is then 'dest'.
    """
    try:
        os.rename(src, dest)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise

    try:
        copy_path(src, dest)
    except OSError as e:
        if exists_or_link(dest):
            try:
                remove_path(dest)
            except OSError as cleanup:
                raise TroveIOError(
                    f"Could not copy {src} to {dest}: {e}; "
                    f"a partial copy was left at {dest}: {cleanup}"
                ) from e
        raise

    try:
        remove_path(src)
    except OSError as e:
        try:
            if exists_or_link(src):
                remove_path(src)
            copy_path(dest, src)
            remove_path(dest)
        except OSError:
            raise TroveIOError(
                f"Could not finish moving {src} to {dest}: {e}. "
                f"The complete copy is at {dest}"
            ) from e
        raise


def move_back(src: Path, dest: Path) -> None:
    """Undo an earlier move_path during a rollback."""
    try:
        move_path(src, dest)
    except OSError as e:
        raise TroveIOError(
            f"Rollback failed, could not move {src} back to {dest}: {e}. "
            f"The content is still at {src}"
        ) from e


# ============================================================================
# ADD
# ============================================================================


def add_entry(
    store: Store,
    path: PathLike,
    name: str,
    save_path: Optional[str] = None,
    categories: Iterable[str] = (),
    resolver: Optional[PathResolver] = None,
    quiet: bool = False,
) -> Entry:
    """
    Move 'path' into the store under 'name' and leave a symlink in its place.

    If 'save_path' is given it is stored verbatim as the entry's templated
    host path and the link is created where it resolves to. Either the whole
    operation succeeds or the filesystem and config are left as they were.
    """
    resolver = resolver or PathResolver()
    validate_name(name)
    tags = normalize_categories(categories)

    if name in store.entries:
        raise TroveConflictError(f"An entry named '{name}' already exists")

    source = absolute_path(path)
    if not source.exists():
        raise TroveNotFoundError(f"Cannot add '{name}': {source} does not exist")
    if store.contains(source) or store.contains(source.resolve()):
        raise TroveInvalidArgumentError(
            f"Cannot add '{name}': {source} is already inside the store "
            f"{store.root_path}"
        )

    if save_path is not None:
        host_template = save_path
        host = resolver.resolve(save_path)
    else:
        host_template = resolver.templatize(source)
        host = source

    if store.contains(host):
        raise TroveInvalidArgumentError(
            f"Cannot add '{name}': host path {host} points inside the store"
        )
    for other in store.entries.values():
        try:
            other_host = resolver.resolve(other.host_path)
        except TroveUnresolvedTemplateError:
            continue
        if same_location(other_host, host):
            raise TroveConflictError(
                f"Cannot add '{name}': {host} is already the host path of "
                f"'{other.name}'"
            )
    if host != source and exists_or_link(host):
        raise TroveConflictError(
            f"Cannot add '{name}': host path {host} is already occupied"
        )

    store_path = store.store_path(name)
    if exists_or_link(store_path):
        raise TroveConflictError(
            f"Cannot add '{name}': {store_path} already exists in the store "
            "(left over from an earlier remove?)"
        )

    try:
        move_path(source, store_path)
    except OSError as e:
        raise TroveIOError(f"Could not move {source} into the store: {e}") from e

    created: List[Path] = []
    try:
        created = make_parents(host)
        link_to_store(host, store_path)
    except OSError as e:
        remove_dirs(created)
        move_back(store_path, source)
        raise TroveIOError(
            f"Could not link {host} -> {store_path} for '{name}': {e}"
        ) from e

    entry = Entry(name=name, host_path=host_template, categories=tags)
    store.add_entry(entry)
    try:
        save_store(store, resolver)
    except TroveError:
        store.entries.pop(name, None)
        host.unlink()
        remove_dirs(created)
        move_back(store_path, source)
        raise

    if not quiet:
        typer.secho(f"Added {name} ({host_template})", fg=typer.colors.GREEN)
    return entry


# ============================================================================
# REMOVE
# ============================================================================


def find_entry_by_path(
    store: Store, path: PathLike, resolver: Optional[PathResolver] = None
) -> Entry:
    """Find the entry whose resolved host path is 'path'."""
    resolver = resolver or PathResolver()
    wanted = absolute_path(path)

    matches = []
    for entry in store.entries.values():
        try:
            host = resolver.resolve(entry.host_path)
        except TroveUnresolvedTemplateError:
            continue
        if same_location(host, wanted):
            matches.append(entry)

    if not matches:
        raise TroveNotFoundError(f"No entry is deployed at {wanted}")
    if len(matches) > 1:
        names = ", ".join(entry.name for entry in matches)
        raise TroveConfigCorruptError(
            f"Several entries share the host path {wanted}: {names}"
        )
    return matches[0]


def remove_entry(
    store: Store,
    path: Optional[PathLike] = None,
    name: Optional[str] = None,
    delete: bool = False,
    resolver: Optional[PathResolver] = None,
    quiet: bool = False,
) -> Entry:
    """
    Stop tracking an entry and put its content back at the host path.

    With delete=True the content is moved out of the store; otherwise it is
    copied and the store copy stays behind, untracked.
    """
    resolver = resolver or PathResolver()
    if (path is None) == (name is None):
        raise TroveInvalidArgumentError("Give exactly one of a path or a name")

    if name is not None:
        entry = store.get(name)
    else:
        entry = find_entry_by_path(store, path, resolver)

    host = resolver.resolve(entry.host_path)
    store_path = store.store_path(entry.name)

    linked = points_to(host, store_path)
    if not linked and exists_or_link(host):
        raise TroveConflictError(
            f"Cannot remove '{entry.name}': {host} is not the link trove manages"
        )
    if not exists_or_link(store_path):
        raise TroveNotFoundError(
            f"Cannot remove '{entry.name}': store content {store_path} is missing"
        )

    if linked:
        try:
            host.unlink()
        except OSError as e:
            raise TroveIOError(f"Could not remove link {host}: {e}") from e

    created: List[Path] = []
    try:
        created = make_parents(host)
        if delete:
            move_path(store_path, host)
        else:
            copy_path(store_path, host)
    except OSError as e:
        # a failed move_path leaves the store content intact and host empty
        if not delete and exists_or_link(host):
            remove_path(host)
        remove_dirs(created)
        if linked:
            link_to_store(host, store_path)
        raise TroveIOError(f"Could not restore '{entry.name}' to {host}: {e}") from e

    store.remove_entry(entry.name)
    try:
        save_store(store, resolver)
    except TroveError:
        store.entries[entry.name] = entry
        if delete:
            move_back(host, store_path)
        else:
            remove_path(host)
        remove_dirs(created)
        if linked:
            link_to_store(host, store_path)
        raise

    if not quiet:
        if delete:
            typer.secho(
                f"Removed {entry.name}, restored {host}", fg=typer.colors.GREEN
            )
        else:
            typer.secho(
                f"Untracked {entry.name}, restored {host} "
                f"(store copy kept at {store_path})",
                fg=typer.colors.GREEN,
            )
    return entry
