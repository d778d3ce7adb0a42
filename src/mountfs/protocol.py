"""FilesystemBackend protocol — the capability contract every mount satisfies.

The protocol is ``runtime_checkable`` so :class:`~mountfs.mounts.MountRegistry`
can reject a backend at registration time instead of failing at first use.
``isinstance`` only checks that the methods exist; signatures are enforced
by type checkers.

Paths passed to a backend are relative to that backend, never virtual
locations.  Each fallible method raises its kind-specific error from
:mod:`mountfs.exceptions`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .types import FileInfo, OperationConfig


@runtime_checkable
class FilesystemBackend(Protocol):
    """Core interface every backend must implement."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def file_exists(self, path: str) -> bool:
        """Raises ``CheckExistenceError``."""
        ...

    def directory_exists(self, path: str) -> bool:
        """Raises ``CheckExistenceError``."""
        ...

    def read(self, path: str) -> bytes:
        """Raises ``ReadFileError``."""
        ...

    def read_stream(self, path: str) -> BinaryIO:
        """Raises ``ReadFileError``.  The caller closes the stream."""
        ...

    def list_contents(self, path: str, deep: bool = False) -> Iterator[FileInfo]:
        """Lazily list entries below *path*; the iterator is single-pass."""
        ...

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def last_modified(self, path: str) -> int: ...

    def file_size(self, path: str) -> int: ...

    def mime_type(self, path: str) -> str: ...

    def visibility(self, path: str) -> str: ...

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(
        self, path: str, contents: bytes | str, config: OperationConfig | None = None
    ) -> None: ...

    def write_stream(
        self, path: str, contents: BinaryIO, config: OperationConfig | None = None
    ) -> None: ...

    def set_visibility(self, path: str, visibility: str) -> None: ...

    def delete(self, path: str) -> None: ...

    def delete_directory(self, path: str) -> None: ...

    def create_directory(self, path: str, config: OperationConfig | None = None) -> None: ...

    def move(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None: ...

    def copy(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None: ...
