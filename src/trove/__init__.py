"""
trove - a symlink-based dotfiles manager.

trove moves your configuration files into a single store directory and
links them back into place, so the store can be carried to another machine
(and put under version control, if you like) and deployed there.
"""

__version__ = "0.1.0"
__license__ = "GPL-3.0-or-later"

from .deploy import deploy, pack, select_entries
from .lifecycle import add_entry, remove_entry
from .locator import MarkerLocator, init_store, locate_store
from .paths import PathResolver, resolve, templatize
from .status import LinkState, get_status
from .store import Entry, Store, create_store, load_store, save_store

__all__ = [
    "init_store",
    "locate_store",
    "MarkerLocator",
    "load_store",
    "save_store",
    "create_store",
    "Store",
    "Entry",
    "add_entry",
    "remove_entry",
    "deploy",
    "pack",
    "select_entries",
    "get_status",
    "LinkState",
    # Path templating
    "PathResolver",
    "templatize",
    "resolve",
]
