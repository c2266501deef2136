"""Deploying entries as symlinks and packing them away again."""

from pathlib import Path
from typing import List, Optional

import typer

from .exceptions import (
    LinkResultsDict,
    TroveConflictError,
    TroveError,
    TroveInvalidArgumentError,
    TroveIOError,
    TroveNotFoundError,
)
from .lifecycle import link_to_store, make_parents, remove_dirs
from .paths import PathResolver, exists_or_link, points_to
from .store import Entry, Store


def select_entries(
    store: Store, category: Optional[str] = None, name: Optional[str] = None
) -> List[Entry]:
    """
    Pick the entries a deploy or pack should act on.

    At most one of 'category' and 'name' may be given; with neither, every
    entry is selected. A category that nothing carries selects nothing.
    """
    if category is not None and name is not None:
        raise TroveInvalidArgumentError("Give at most one of a category or a name")
    if name is not None:
        return [store.get(name)]
    if category is not None:
        return [e for e in store.entries.values() if category in e.categories]
    return list(store.entries.values())


def _new_results() -> LinkResultsDict:
    return {"changed": [], "unchanged": [], "failed": {}}


def deploy_entry(
    store: Store, entry: Entry, resolver: Optional[PathResolver] = None
) -> bool:
    """
    Link a single entry into place.

    Returns True if a link was created, False if it was already there.
    """
    resolver = resolver or PathResolver()
    host = resolver.resolve(entry.host_path)
    store_path = store.store_path(entry.name)

    if points_to(host, store_path):
        return False
    if exists_or_link(host):
        raise TroveConflictError(
            f"Cannot deploy '{entry.name}': {host} is occupied by something "
            "trove does not manage"
        )
    if not exists_or_link(store_path):
        raise TroveNotFoundError(
            f"Cannot deploy '{entry.name}': store content {store_path} is missing"
        )

    created: List[Path] = []
    try:
        created = make_parents(host)
        link_to_store(host, store_path)
    except OSError as e:
        remove_dirs(created)
        raise TroveIOError(
            f"Could not link {host} -> {store_path} for '{entry.name}': {e}"
        ) from e
    return True


def pack_entry(
    store: Store, entry: Entry, resolver: Optional[PathResolver] = None
) -> bool:
    """
    Remove a single entry's link.

    Returns True if a link was removed, False if nothing was deployed.
    """
    resolver = resolver or PathResolver()
    host = resolver.resolve(entry.host_path)
    store_path = store.store_path(entry.name)

    if points_to(host, store_path):
        try:
            host.unlink()
        except OSError as e:
            raise TroveIOError(f"Could not remove link {host}: {e}") from e
        return True
    if exists_or_link(host):
        raise TroveConflictError(
            f"Cannot pack '{entry.name}': {host} is not the link trove manages"
        )
    return False


def deploy(
    store: Store,
    category: Optional[str] = None,
    name: Optional[str] = None,
    resolver: Optional[PathResolver] = None,
    quiet: bool = False,
) -> LinkResultsDict:
    """Create host symlinks for the selected entries, skipping conflicts."""
    results = _new_results()
    for entry in select_entries(store, category, name):
        try:
            created = deploy_entry(store, entry, resolver)
        except TroveError as e:
            results["failed"][entry.name] = e
            if not quiet:
                typer.secho(f"  ! {e}", fg=typer.colors.RED, err=True)
            continue

        if created:
            results["changed"].append(entry.name)
            if not quiet:
                typer.secho(f"  ✓ Deployed {entry.name}", fg=typer.colors.GREEN)
        else:
            results["unchanged"].append(entry.name)
            if not quiet:
                typer.secho(
                    f"  - {entry.name} (already deployed)", fg=typer.colors.BLUE
                )
    return results


def pack(
    store: Store,
    category: Optional[str] = None,
    name: Optional[str] = None,
    resolver: Optional[PathResolver] = None,
    quiet: bool = False,
) -> LinkResultsDict:
    """Remove host symlinks for the selected entries, leaving store content."""
    results = _new_results()
    for entry in select_entries(store, category, name):
        try:
            removed = pack_entry(store, entry, resolver)
        except TroveError as e:
            results["failed"][entry.name] = e
            if not quiet:
                typer.secho(f"  ! {e}", fg=typer.colors.RED, err=True)
            continue

        if removed:
            results["changed"].append(entry.name)
            if not quiet:
                typer.secho(f"  ✓ Packed {entry.name}", fg=typer.colors.GREEN)
        else:
            results["unchanged"].append(entry.name)
            if not quiet:
                typer.secho(f"  - {entry.name} (not deployed)", fg=typer.colors.BLUE)
    return results
