"""Path utilities, MIME detection and config helpers for backends."""

from __future__ import annotations

import mimetypes
import posixpath
from typing import TYPE_CHECKING

from .exceptions import PathTraversalError

if TYPE_CHECKING:
    from .types import OperationConfig, Visibility

DEFAULT_MIME_TYPE = "application/octet-stream"


# =============================================================================
# Path Utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a backend-relative path.

    - Strips surrounding whitespace and slashes
    - Resolves ``.`` and ``..`` references
    - Removes double slashes
    - Rejects paths that climb above the backend root

    Examples:
        normalize_path("foo.txt") -> "foo.txt"
        normalize_path("/foo//bar.txt") -> "foo/bar.txt"
        normalize_path("foo/../bar.txt") -> "bar.txt"
        normalize_path("foo/") -> "foo"
        normalize_path("") -> ""
    """
    stripped = path.strip().replace("\\", "/").strip("/")
    if not stripped:
        return ""

    normalized = posixpath.normpath(stripped)
    if normalized == ".":
        return ""
    if normalized == ".." or normalized.startswith("../"):
        raise PathTraversalError(path)
    return normalized


def split_path(path: str) -> tuple[str, str]:
    """Split path into (parent_dir, name).

    Examples:
        split_path("foo/bar.txt") -> ("foo", "bar.txt")
        split_path("foo.txt") -> ("", "foo.txt")
        split_path("") -> ("", "")
    """
    return posixpath.split(normalize_path(path))


def parent_directories(path: str) -> list[str]:
    """Return every ancestor directory of *path*, outermost first.

    Examples:
        parent_directories("a/b/c.txt") -> ["a", "a/b"]
        parent_directories("c.txt") -> []
    """
    parts = normalize_path(path).split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


def is_within(path: str, directory: str) -> bool:
    """True when *path* lies strictly below *directory* ("" is the root)."""
    if not directory:
        return bool(path)
    return path.startswith(directory + "/")


def depth_below(path: str, directory: str) -> int:
    """Number of path segments between *directory* and *path*."""
    rest = path[len(directory) :].lstrip("/") if directory else path
    return rest.count("/") + 1


# =============================================================================
# Content Helpers
# =============================================================================


def guess_mime_type(filename: str) -> str:
    """Guess the MIME type of a file based on its name."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_MIME_TYPE


def to_bytes(contents: bytes | str) -> bytes:
    if isinstance(contents, str):
        return contents.encode("utf-8")
    return bytes(contents)


def config_visibility(
    config: OperationConfig | None,
    key: str,
    default: Visibility | str,
) -> str:
    """Read a visibility option from *config*, falling back to *default*."""
    value = (config or {}).get(key)
    if value is None:
        value = default
    return str(getattr(value, "value", value))
