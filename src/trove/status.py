"""Reporting which entries are deployed."""

from enum import Enum
from typing import List, Optional, Tuple

from .exceptions import EntryStatusDict, TroveUnresolvedTemplateError
from .paths import PathResolver, exists_or_link, points_to
from .store import Entry, Store


class LinkState(str, Enum):
    """Filesystem state of an entry's host path."""

    DEPLOYED = "deployed"
    NOT_DEPLOYED = "not-deployed"
    BROKEN = "broken"


def classify_entry(
    store: Store, entry: Entry, resolver: Optional[PathResolver] = None
) -> Tuple[LinkState, str]:
    """Return the state of 'entry' and a short explanation for broken ones."""
    resolver = resolver or PathResolver()
    try:
        host = resolver.resolve(entry.host_path)
    except TroveUnresolvedTemplateError as e:
        return LinkState.BROKEN, str(e)
    store_path = store.store_path(entry.name)

    if points_to(host, store_path):
        if not exists_or_link(store_path):
            return LinkState.BROKEN, f"store content {store_path} is missing"
        return LinkState.DEPLOYED, ""
    if host.is_symlink():
        return LinkState.BROKEN, f"{host} links somewhere else"
    if host.exists():
        kind = "directory" if host.is_dir() else "file"
        return LinkState.BROKEN, f"{host} is a regular {kind}"
    return LinkState.NOT_DEPLOYED, ""


def entry_state(
    store: Store, entry: Entry, resolver: Optional[PathResolver] = None
) -> LinkState:
    return classify_entry(store, entry, resolver)[0]


def get_status(
    store: Store, resolver: Optional[PathResolver] = None
) -> List[EntryStatusDict]:
    """Classify every entry in the store; nothing on disk is changed."""
    resolver = resolver or PathResolver()
    report: List[EntryStatusDict] = []
    for entry in store.entries.values():
        state, detail = classify_entry(store, entry, resolver)
        try:
            host_path = str(resolver.resolve(entry.host_path))
        except TroveUnresolvedTemplateError:
            host_path = entry.host_path
        report.append(
            {
                "name": entry.name,
                "categories": sorted(entry.categories),
                "state": state.value,
                "host_path": host_path,
                "store_path": str(store.store_path(entry.name)),
                "detail": detail,
            }
        )
    return report
