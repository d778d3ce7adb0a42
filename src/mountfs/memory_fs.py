"""MemoryFileSystem — process-local backend, nothing touches disk."""

from __future__ import annotations

import io
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO

from .exceptions import (
    CopyFileError,
    DeleteDirectoryError,
    MoveFileError,
    ReadFileError,
    RetrieveMetadataError,
    SetVisibilityError,
    WriteFileError,
)
from .types import FileInfo, Visibility
from .utils import (
    config_visibility,
    depth_below,
    guess_mime_type,
    is_within,
    normalize_path,
    parent_directories,
    to_bytes,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .types import OperationConfig


@dataclass
class _MemoryFile:
    contents: bytes
    visibility: str
    last_modified: int


class MemoryFileSystem:
    """In-memory backend.  Implements the ``FilesystemBackend`` protocol.

    Directories exist either because they were created explicitly or
    because a file lives below them.  A lock guards mutations so one
    instance can be shared between threads.
    """

    def __init__(
        self,
        *,
        default_visibility: Visibility | str = Visibility.PUBLIC,
        default_directory_visibility: Visibility | str = Visibility.PUBLIC,
    ) -> None:
        self.default_visibility = str(getattr(default_visibility, "value", default_visibility))
        self.default_directory_visibility = str(
            getattr(default_directory_visibility, "value", default_directory_visibility)
        )
        self._files: dict[str, _MemoryFile] = {}
        self._directories: dict[str, str] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_file(self, path: str) -> _MemoryFile | None:
        return self._files.get(normalize_path(path))

    def _is_directory(self, path: str) -> bool:
        return path in self._directories or any(is_within(name, path) for name in self._files)

    def _ensure_parents(self, path: str, visibility: str) -> None:
        for directory in parent_directories(path):
            self._directories.setdefault(directory, visibility)

    # ------------------------------------------------------------------
    # Read Operations
    # ------------------------------------------------------------------

    def file_exists(self, path: str) -> bool:
        return self._get_file(path) is not None

    def directory_exists(self, path: str) -> bool:
        path = normalize_path(path)
        return not path or self._is_directory(path)

    def read(self, path: str) -> bytes:
        file = self._get_file(path)
        if file is None:
            raise ReadFileError.at_location(path, "File does not exist.")
        return file.contents

    def read_stream(self, path: str) -> BinaryIO:
        return io.BytesIO(self.read(path))

    def list_contents(self, path: str, deep: bool = False) -> Iterator[FileInfo]:
        path = normalize_path(path)
        with self._lock:
            files = dict(self._files)
            directories = set(self._directories)
        for name in files:
            directories.update(parent_directories(name))

        for directory in sorted(directories):
            if is_within(directory, path) and (deep or depth_below(directory, path) == 1):
                yield FileInfo(
                    path=directory,
                    is_directory=True,
                    visibility=self._directories.get(
                        directory, self.default_directory_visibility
                    ),
                )
        for name, file in sorted(files.items()):
            if is_within(name, path) and (deep or depth_below(name, path) == 1):
                yield FileInfo(
                    path=name,
                    file_size=len(file.contents),
                    last_modified=file.last_modified,
                    mime_type=guess_mime_type(name),
                    visibility=file.visibility,
                )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def last_modified(self, path: str) -> int:
        file = self._get_file(path)
        if file is None:
            raise RetrieveMetadataError.last_modified(path, "File does not exist.")
        return file.last_modified

    def file_size(self, path: str) -> int:
        file = self._get_file(path)
        if file is None:
            raise RetrieveMetadataError.file_size(path, "File does not exist.")
        return len(file.contents)

    def mime_type(self, path: str) -> str:
        if self._get_file(path) is None:
            raise RetrieveMetadataError.mime_type(path, "File does not exist.")
        return guess_mime_type(normalize_path(path))

    def visibility(self, path: str) -> str:
        file = self._get_file(path)
        if file is None:
            raise RetrieveMetadataError.visibility(path, "File does not exist.")
        return file.visibility

    # ------------------------------------------------------------------
    # Write Operations
    # ------------------------------------------------------------------

    def write(
        self, path: str, contents: bytes | str, config: OperationConfig | None = None
    ) -> None:
        path = normalize_path(path)
        if not path:
            raise WriteFileError.at_location(path, "Cannot write to the root directory.")
        with self._lock:
            if self._is_directory(path):
                raise WriteFileError.at_location(path, "A directory exists at this path.")
            existing = self._files.get(path)
            default = existing.visibility if existing else self.default_visibility
            self._ensure_parents(
                path,
                config_visibility(
                    config, "directory_visibility", self.default_directory_visibility
                ),
            )
            self._files[path] = _MemoryFile(
                contents=to_bytes(contents),
                visibility=config_visibility(config, "visibility", default),
                last_modified=int(time.time()),
            )

    def write_stream(
        self, path: str, contents: BinaryIO, config: OperationConfig | None = None
    ) -> None:
        try:
            data = contents.read()
        except (OSError, ValueError) as exc:
            raise WriteFileError.at_location(path, str(exc)) from exc
        self.write(path, data, config)

    def set_visibility(self, path: str, visibility: str) -> None:
        with self._lock:
            file = self._get_file(path)
            if file is None:
                raise SetVisibilityError.at_location(path, "File does not exist.")
            file.visibility = visibility

    def delete(self, path: str) -> None:
        with self._lock:
            self._files.pop(normalize_path(path), None)

    def delete_directory(self, path: str) -> None:
        path = normalize_path(path)
        if not path:
            raise DeleteDirectoryError.at_location(path, "Cannot delete the root directory.")
        with self._lock:
            for name in [n for n in self._files if is_within(n, path)]:
                del self._files[name]
            for name in [d for d in self._directories if d == path or is_within(d, path)]:
                del self._directories[name]

    def create_directory(self, path: str, config: OperationConfig | None = None) -> None:
        path = normalize_path(path)
        if not path:
            return
        visibility = config_visibility(
            config, "directory_visibility", self.default_directory_visibility
        )
        with self._lock:
            self._ensure_parents(path, visibility)
            self._directories.setdefault(path, visibility)

    def move(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        source = normalize_path(source)
        destination = normalize_path(destination)
        with self._lock:
            file = self._files.get(source)
            if file is None:
                raise MoveFileError.from_location_to(
                    source, destination, ReadFileError(source, "File does not exist.")
                )
            if source == destination:
                return
            if self._is_directory(destination):
                raise MoveFileError(source, destination, "A directory exists at destination.")
            self._ensure_parents(destination, self.default_directory_visibility)
            self._files[destination] = self._files.pop(source)

    def copy(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        source = normalize_path(source)
        destination = normalize_path(destination)
        with self._lock:
            file = self._files.get(source)
            if file is None:
                raise CopyFileError.from_location_to(
                    source, destination, ReadFileError(source, "File does not exist.")
                )
            if self._is_directory(destination):
                raise CopyFileError(source, destination, "A directory exists at destination.")
            self._ensure_parents(destination, self.default_directory_visibility)
            self._files[destination] = _MemoryFile(
                contents=file.contents,
                visibility=config_visibility(config, "visibility", file.visibility),
                last_modified=int(time.time()),
            )
