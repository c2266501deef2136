"""Path templating for trove - portable host paths across machines."""

import os
import re
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .exceptions import TroveUnresolvedTemplateError

# Constants
HOME_TOKEN = "HOME"
XDG_CONFIG_TOKEN = "XDG_CONFIG_HOME"
XDG_DATA_TOKEN = "XDG_DATA_HOME"

# $NAME or ${NAME} as the first component of a template
TOKEN_PATTERN = re.compile(
    r"^\$(?:\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}|(?P<bare>[A-Za-z_][A-Za-z0-9_]*))"
    r"(?=/|$)"
)

PathLike = Union[str, Path]


# ============================================================================
# PATH MANAGEMENT
# ============================================================================


def get_home_dir() -> Path:
    """Get the home directory, respecting environment variables for testing."""
    # Check for test override first
    if "HOME" in os.environ:
        return Path(os.environ["HOME"])
    return Path.home()


def _xdg_dir(env_var: str, default: str) -> Callable[[], Path]:
    def lookup() -> Path:
        value = os.environ.get(env_var)
        if value and os.path.isabs(value):
            return Path(value)
        return get_home_dir() / default

    return lookup


def default_tokens() -> Dict[str, Callable[[], Path]]:
    """Token providers known to every resolver."""
    return {
        HOME_TOKEN: get_home_dir,
        XDG_CONFIG_TOKEN: _xdg_dir("XDG_CONFIG_HOME", ".config"),
        XDG_DATA_TOKEN: _xdg_dir("XDG_DATA_HOME", ".local/share"),
    }


def absolute_path(path: PathLike) -> Path:
    """Make a path absolute and normalized without following symlinks."""
    expanded = Path(path).expanduser()
    return Path(os.path.normpath(expanded.absolute()))


def is_within(path: Path, root: Path) -> bool:
    """Return True if 'path' is 'root' or lies somewhere below it."""
    path = absolute_path(path)
    root = absolute_path(root)
    return path == root or root in path.parents


def points_to(link: Path, target: Path) -> bool:
    """
    Return True if 'link' is a symlink whose own target is 'target'.

    Only the immediate link target is compared; a chain of links that happens
    to end at 'target' does not count. Parent directories are resolved on
    both sides so a store reached through a symlinked directory still matches.
    """
    if not link.is_symlink():
        return False
    raw = Path(os.readlink(link))
    if not raw.is_absolute():
        raw = link.parent / raw
    return same_location(raw, target)


def same_location(a: PathLike, b: PathLike) -> bool:
    """
    Return True if two paths name the same directory entry.

    Parent directories are resolved, so an alias reached through a symlinked
    directory matches; the last component itself is never followed.
    """
    a = absolute_path(a)
    b = absolute_path(b)
    if a == b:
        return True
    return a.parent.resolve() / a.name == b.parent.resolve() / b.name


def exists_or_link(path: Path) -> bool:
    """Like Path.exists(), but also True for dangling symlinks."""
    return path.exists() or path.is_symlink()


# ============================================================================
# TEMPLATE RESOLUTION
# ============================================================================


class PathResolver:
    """
    Bidirectional mapping between literal host paths and templated ones.

    Token values are looked up every time they are needed, so a store written
    on one machine resolves against the home directory of whoever uses it.
    """

    def __init__(self, tokens: Optional[Dict[str, Callable[[], Path]]] = None):
        self.tokens = default_tokens() if tokens is None else dict(tokens)

    def token_value(self, token: str) -> Path:
        """Current literal value of a token."""
        try:
            provider = self.tokens[token]
        except KeyError:
            raise TroveUnresolvedTemplateError(
                f"Unknown token '${token}' (known: "
                f"{', '.join('$' + t for t in sorted(self.tokens))})"
            ) from None
        return absolute_path(provider())

    def templatize(self, literal: PathLike) -> str:
        """Replace the longest matching known prefix of 'literal' with its token."""
        path = absolute_path(literal)
        best_token = None
        best_value = None
        for token in self.tokens:
            value = self.token_value(token)
            if not is_within(path, value):
                continue
            if best_value is None or len(value.parts) > len(best_value.parts):
                best_token, best_value = token, value

        if best_token is None or best_value is None:
            return path.as_posix()

        rest = path.relative_to(best_value)
        if rest == Path("."):
            return f"${best_token}"
        return f"${best_token}/{rest.as_posix()}"

    def resolve(self, template: str) -> Path:
        """Substitute the token of 'template' with its current value."""
        if template.startswith("~"):
            return absolute_path(template)

        if template.startswith("$"):
            match = TOKEN_PATTERN.match(template)
            if match is None:
                raise TroveUnresolvedTemplateError(
                    f"Malformed template '{template}': expected $NAME or ${{NAME}} "
                    "as the first path component"
                )
            token = match.group("braced") or match.group("bare")
            rest = template[match.end() :].lstrip("/")
            value = self.token_value(token)
            return absolute_path(value / rest) if rest else value

        if not os.path.isabs(template):
            raise TroveUnresolvedTemplateError(
                f"Template '{template}' is neither absolute nor token-based"
            )
        return absolute_path(template)


_default_resolver = PathResolver()


def templatize(literal: PathLike) -> str:
    """Templatize with the default set of tokens."""
    return _default_resolver.templatize(literal)


def resolve(template: str) -> Path:
    """Resolve with the default set of tokens."""
    return _default_resolver.resolve(template)
