"""MountManager — routes virtual locations to mounted filesystems."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, BinaryIO

from .exceptions import (
    CheckExistenceError,
    CreateDirectoryError,
    DeleteDirectoryError,
    DeleteFileError,
    ReadFileError,
    RetrieveMetadataError,
    SetVisibilityError,
    WriteFileError,
    translate_errors,
)
from .mounts import MountRegistry
from .transfer import copy_file, move_file

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from .protocol import FilesystemBackend
    from .types import FileInfo, OperationConfig

logger = logging.getLogger(__name__)


class MountManager:
    """Presents several filesystems as one, addressed by ``<mount>://<path>``.

    Each operation resolves its location through the registry, calls the
    mounted backend with the relative path and re-raises backend failures
    qualified with the virtual location.  Copy and move use the backend's
    native operation when both locations share a backend and relay a
    stream between backends otherwise.

    Usage::

        manager = MountManager({"local": LocalDiskFileSystem("/srv"),
                                "memory": MemoryFileSystem()})
        manager.write("local://notes.txt", "hi")
        manager.copy("local://notes.txt", "memory://notes.txt")
    """

    def __init__(
        self,
        mounts: Mapping[str, FilesystemBackend] | None = None,
        *,
        registry: MountRegistry | None = None,
    ) -> None:
        self._registry = registry if registry is not None else MountRegistry()
        for key, backend in (mounts or {}).items():
            self._registry.mount_filesystem(key, backend)

    @property
    def registry(self) -> MountRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Mounts
    # ------------------------------------------------------------------

    def mount_filesystem(self, key: str, backend: FilesystemBackend) -> None:
        """Mount *backend* at *key*; a key that is already mounted is kept."""
        self._registry.mount_filesystem(key, backend)

    def is_registered(self, key: str) -> bool:
        return self._registry.is_registered(key)

    def get_filesystem(self, key: str) -> FilesystemBackend | None:
        return self._registry.get(key)

    def list_mount_keys(self) -> list[str]:
        return self._registry.list_keys()

    # ------------------------------------------------------------------
    # Read Operations
    # ------------------------------------------------------------------

    def file_exists(self, location: str) -> bool:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, CheckExistenceError):
            return filesystem.file_exists(path)

    def directory_exists(self, location: str) -> bool:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, CheckExistenceError):
            return filesystem.directory_exists(path)

    def has(self, location: str) -> bool:
        """True if *location* is an existing file or directory."""
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, CheckExistenceError):
            return filesystem.file_exists(path) or filesystem.directory_exists(path)

    def read(self, location: str) -> bytes:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, ReadFileError):
            return filesystem.read(path)

    def read_stream(self, location: str) -> BinaryIO:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, ReadFileError):
            return filesystem.read_stream(path)

    def list_contents(self, location: str, deep: bool = False) -> Iterator[FileInfo]:
        """List entries below *location*.

        The backend's iterator is returned as-is, so entry paths are
        relative to that backend and failures surface while iterating.
        """
        filesystem, path = self._registry.resolve(location)
        return filesystem.list_contents(path, deep)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    # The metadata type comes from the operation, not from the backend error.

    def last_modified(self, location: str) -> int:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(
            location, RetrieveMetadataError, RetrieveMetadataError.last_modified
        ):
            return filesystem.last_modified(path)

    def file_size(self, location: str) -> int:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, RetrieveMetadataError, RetrieveMetadataError.file_size):
            return filesystem.file_size(path)

    def mime_type(self, location: str) -> str:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, RetrieveMetadataError, RetrieveMetadataError.mime_type):
            return filesystem.mime_type(path)

    def visibility(self, location: str) -> str:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(
            location, RetrieveMetadataError, RetrieveMetadataError.visibility
        ):
            return filesystem.visibility(path)

    # ------------------------------------------------------------------
    # Write Operations
    # ------------------------------------------------------------------

    def write(
        self, location: str, contents: bytes | str, config: OperationConfig | None = None
    ) -> None:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, WriteFileError):
            filesystem.write(path, contents, config)

    def write_stream(
        self, location: str, contents: BinaryIO, config: OperationConfig | None = None
    ) -> None:
        # Backend stream errors are passed through unwrapped.
        filesystem, path = self._registry.resolve(location)
        filesystem.write_stream(path, contents, config)

    def set_visibility(self, location: str, visibility: str) -> None:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, SetVisibilityError):
            filesystem.set_visibility(path, str(getattr(visibility, "value", visibility)))

    def delete(self, location: str) -> None:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, DeleteFileError):
            filesystem.delete(path)

    def delete_directory(self, location: str) -> None:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, DeleteDirectoryError):
            filesystem.delete_directory(path)

    def create_directory(self, location: str, config: OperationConfig | None = None) -> None:
        filesystem, path = self._registry.resolve(location)
        with translate_errors(location, CreateDirectoryError):
            filesystem.create_directory(path, config)

    # ------------------------------------------------------------------
    # Transfer Operations
    # ------------------------------------------------------------------

    def copy(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        """Copy *source* to *destination*, possibly across filesystems.

        Across filesystems the destination gets ``config["visibility"]`` or,
        when absent, the source's current visibility.  The relay is not
        atomic: a failed write may leave a partial destination behind.
        """
        source_fs, source_path = self._registry.resolve(source)
        destination_fs, destination_path = self._registry.resolve(destination)
        copy_file(
            source_fs,
            source_path,
            destination_fs,
            destination_path,
            source=source,
            destination=destination,
            config=config,
        )

    def move(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        """Move *source* to *destination*, possibly across filesystems.

        A failed cross-filesystem move may have already written the
        destination; see :func:`mountfs.transfer.move_file`.
        """
        source_fs, source_path = self._registry.resolve(source)
        destination_fs, destination_path = self._registry.resolve(destination)
        move_file(
            source_fs,
            source_path,
            destination_fs,
            destination_path,
            source=source,
            destination=destination,
            config=config,
        )
