"""Exception classes for trove - a symlink-based dotfiles manager."""

from typing import Dict, List, TypedDict


# Type definitions for structured data
class LinkResultsDict(TypedDict):
    """Type definition for deploy/pack results."""

    changed: List[str]
    unchanged: List[str]
    failed: Dict[str, "TroveError"]


class EntryStatusDict(TypedDict):
    """Type definition for a single line of the status report."""

    name: str
    categories: List[str]
    state: str
    host_path: str
    store_path: str
    detail: str


class TroveError(Exception):
    """Base exception for all trove-related errors."""

    pass


class TroveConfigurationError(TroveError):
    """Errors related to the persisted store config or the locator record."""

    pass


class TroveConfigCorruptError(TroveConfigurationError):
    """Raised when persisted state fails validation on load."""

    pass


class TroveNotInitializedError(TroveConfigurationError):
    """Raised when no locator record points at a store. Run 'trove init'."""

    pass


class TroveFileOperationError(TroveError):
    """Errors related to file operations."""

    pass


class TroveNotFoundError(TroveFileOperationError):
    """Raised when a path, entry name or store cannot be found."""

    pass


class TroveConflictError(TroveFileOperationError):
    """Raised when a name is taken or a path holds unexpected content."""

    pass


class TroveIOError(TroveFileOperationError):
    """Raised when an underlying filesystem operation fails."""

    pass


class TroveInvalidArgumentError(TroveError):
    """Raised for missing or mutually exclusive selectors and bad names."""

    pass


class TroveUnresolvedTemplateError(TroveError):
    """Raised when a templated path references an unknown token."""

    pass
