"""LocalDiskFileSystem — direct disk access below a root directory."""

from __future__ import annotations

import contextlib
import os
import shutil
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from .exceptions import (
    CheckExistenceError,
    CopyFileError,
    CreateDirectoryError,
    DeleteDirectoryError,
    DeleteFileError,
    MoveFileError,
    PathTraversalError,
    ReadFileError,
    RetrieveMetadataError,
    SetVisibilityError,
    WriteFileError,
)
from .types import FileInfo, Visibility
from .utils import config_visibility, guess_mime_type, normalize_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from .types import OperationConfig

    MetadataErrorFactory = Callable[[str, str], RetrieveMetadataError]

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class PortableVisibilityMap:
    """Unix permission bits used to express public/private visibility."""

    file_public: int = 0o644
    file_private: int = 0o600
    directory_public: int = 0o755
    directory_private: int = 0o700
    default_directory_visibility: str = Visibility.PUBLIC.value

    def for_file(self, visibility: str) -> int:
        return self.file_private if visibility == Visibility.PRIVATE.value else self.file_public

    def for_directory(self, visibility: str) -> int:
        if visibility == Visibility.PRIVATE.value:
            return self.directory_private
        return self.directory_public

    def inverse_for_file(self, mode: int) -> str:
        if stat.S_IMODE(mode) == self.file_private:
            return Visibility.PRIVATE.value
        return Visibility.PUBLIC.value

    def inverse_for_directory(self, mode: int) -> str:
        if stat.S_IMODE(mode) == self.directory_private:
            return Visibility.PRIVATE.value
        return Visibility.PUBLIC.value


class LocalDiskFileSystem:
    """Backend storing files under ``root`` on the host filesystem.

    Implements the ``FilesystemBackend`` protocol.  ``_resolve_path``
    keeps every operation inside ``root`` and refuses symlinks.
    Visibility is stored as permission bits via ``PortableVisibilityMap``.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        permissions: PortableVisibilityMap | None = None,
        create_root: bool = True,
    ) -> None:
        self.root = Path(root).resolve()
        self.permissions = permissions or PortableVisibilityMap()

        if not self.root.exists():
            if not create_root:
                raise FileNotFoundError(f"Root directory does not exist: {self.root}")
            self.root.mkdir(parents=True)
        if not self.root.is_dir():
            raise NotADirectoryError(f"Root path is not a directory: {self.root}")

    # =========================================================================
    # Path Resolution & Security
    # =========================================================================

    def _resolve_path(self, path: str) -> Path:
        """Resolve a relative path to a physical path below ``root``.

        Rejects symlinks on the way down to prevent TOCTOU escapes.
        """
        rel = normalize_path(path)
        if not rel:
            return self.root

        current = self.root
        for part in Path(rel).parts:
            current = current / part
            if current.is_symlink():
                raise PathTraversalError(path)

        candidate = self.root / rel
        try:
            candidate.resolve().relative_to(self.root)
        except ValueError:
            raise PathTraversalError(path) from None
        return candidate

    def _to_relative_path(self, physical_path: Path) -> str:
        return physical_path.relative_to(self.root).as_posix()

    def _ensure_directory(self, directory: Path, visibility: str) -> None:
        if directory.is_dir():
            return
        missing: list[Path] = []
        current = directory
        while not current.exists():
            missing.append(current)
            current = current.parent
        for item in reversed(missing):
            item.mkdir()
            item.chmod(self.permissions.for_directory(visibility))

    # =========================================================================
    # Read Operations
    # =========================================================================

    def file_exists(self, path: str) -> bool:
        try:
            return self._resolve_path(path).is_file()
        except OSError as e:
            raise CheckExistenceError.at_location(path, str(e)) from e

    def directory_exists(self, path: str) -> bool:
        try:
            return self._resolve_path(path).is_dir()
        except OSError as e:
            raise CheckExistenceError.at_location(path, str(e)) from e

    def read(self, path: str) -> bytes:
        resolved = self._resolve_path(path)
        try:
            return resolved.read_bytes()
        except OSError as e:
            raise ReadFileError.at_location(path, e.strerror or str(e)) from e

    def read_stream(self, path: str) -> BinaryIO:
        resolved = self._resolve_path(path)
        try:
            return resolved.open("rb")
        except OSError as e:
            raise ReadFileError.at_location(path, e.strerror or str(e)) from e

    def list_contents(self, path: str, deep: bool = False) -> Iterator[FileInfo]:
        resolved = self._resolve_path(path)
        if not resolved.is_dir():
            return
        with os.scandir(resolved) as it:
            entries = sorted(it, key=lambda e: e.name)
        for entry in entries:
            if entry.is_symlink():
                continue
            info = self._file_info(Path(entry.path))
            yield info
            if deep and info.is_directory:
                yield from self.list_contents(info.path, deep=True)

    def _file_info(self, physical_path: Path) -> FileInfo:
        st = physical_path.stat()
        relative = self._to_relative_path(physical_path)
        if stat.S_ISDIR(st.st_mode):
            return FileInfo(
                path=relative,
                is_directory=True,
                last_modified=int(st.st_mtime),
                visibility=self.permissions.inverse_for_directory(st.st_mode),
            )
        return FileInfo(
            path=relative,
            file_size=st.st_size,
            last_modified=int(st.st_mtime),
            mime_type=guess_mime_type(physical_path.name),
            visibility=self.permissions.inverse_for_file(st.st_mode),
        )

    # =========================================================================
    # Metadata
    # =========================================================================

    def _stat_file(self, path: str, error: MetadataErrorFactory) -> os.stat_result:
        resolved = self._resolve_path(path)
        try:
            st = resolved.stat()
        except OSError as e:
            raise error(path, e.strerror or str(e)) from e
        if not stat.S_ISREG(st.st_mode):
            raise error(path, "Not a file.")
        return st

    def last_modified(self, path: str) -> int:
        return int(self._stat_file(path, RetrieveMetadataError.last_modified).st_mtime)

    def file_size(self, path: str) -> int:
        return self._stat_file(path, RetrieveMetadataError.file_size).st_size

    def mime_type(self, path: str) -> str:
        self._stat_file(path, RetrieveMetadataError.mime_type)
        return guess_mime_type(Path(normalize_path(path)).name)

    def visibility(self, path: str) -> str:
        st = self._stat_file(path, RetrieveMetadataError.visibility)
        return self.permissions.inverse_for_file(st.st_mode)

    # =========================================================================
    # Write Operations
    # =========================================================================

    def write(
        self, path: str, contents: bytes | str, config: OperationConfig | None = None
    ) -> None:
        """Write a file.  Atomic via tempfile + replace."""
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        self._write_atomic(path, lambda f: f.write(contents), config)

    def write_stream(
        self, path: str, contents: BinaryIO, config: OperationConfig | None = None
    ) -> None:
        self._write_atomic(path, lambda f: shutil.copyfileobj(contents, f, CHUNK_SIZE), config)

    def _write_atomic(
        self,
        path: str,
        writer: Callable[[BinaryIO], object],
        config: OperationConfig | None,
    ) -> None:
        resolved = self._resolve_path(path)
        if resolved == self.root or resolved.is_dir():
            raise WriteFileError.at_location(path, "A directory exists at this path.")

        directory_visibility = config_visibility(
            config, "directory_visibility", self.permissions.default_directory_visibility
        )
        try:
            self._ensure_directory(resolved.parent, directory_visibility)
            existing = resolved.stat().st_mode if resolved.exists() else None
            fd, tmp_path = tempfile.mkstemp(dir=str(resolved.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    writer(f)
                Path(tmp_path).replace(resolved)
            except Exception:
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise
            default = (
                self.permissions.inverse_for_file(existing)
                if existing is not None
                else Visibility.PUBLIC.value
            )
            visibility = config_visibility(config, "visibility", default)
            resolved.chmod(self.permissions.for_file(visibility))
        except OSError as e:
            raise WriteFileError.at_location(path, e.strerror or str(e)) from e
        except ValueError as e:
            # Closed or otherwise unreadable source stream.
            raise WriteFileError.at_location(path, str(e)) from e

    def set_visibility(self, path: str, visibility: str) -> None:
        resolved = self._resolve_path(path)
        try:
            mode = (
                self.permissions.for_directory(visibility)
                if resolved.is_dir()
                else self.permissions.for_file(visibility)
            )
            resolved.chmod(mode)
        except OSError as e:
            raise SetVisibilityError.at_location(path, e.strerror or str(e)) from e

    def delete(self, path: str) -> None:
        resolved = self._resolve_path(path)
        if not resolved.exists():
            return
        try:
            resolved.unlink()
        except OSError as e:
            raise DeleteFileError.at_location(path, e.strerror or str(e)) from e

    def delete_directory(self, path: str) -> None:
        resolved = self._resolve_path(path)
        if resolved == self.root:
            raise DeleteDirectoryError.at_location(path, "Cannot delete the root directory.")
        if not resolved.exists():
            return
        try:
            shutil.rmtree(resolved)
        except OSError as e:
            raise DeleteDirectoryError.at_location(path, e.strerror or str(e)) from e

    def create_directory(self, path: str, config: OperationConfig | None = None) -> None:
        resolved = self._resolve_path(path)
        visibility = config_visibility(
            config, "directory_visibility", self.permissions.default_directory_visibility
        )
        try:
            if resolved.exists() and not resolved.is_dir():
                raise CreateDirectoryError.at_location(path, "A file exists at this path.")
            self._ensure_directory(resolved, visibility)
        except OSError as e:
            raise CreateDirectoryError.at_location(path, e.strerror or str(e)) from e

    def move(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        src = self._resolve_path(source)
        dest = self._resolve_path(destination)
        try:
            src.stat()
            self._ensure_directory(
                dest.parent,
                config_visibility(
                    config, "directory_visibility", self.permissions.default_directory_visibility
                ),
            )
            src.rename(dest)
        except OSError as e:
            raise MoveFileError.from_location_to(source, destination, e) from e

    def copy(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        src = self._resolve_path(source)
        dest = self._resolve_path(destination)
        try:
            visibility = config_visibility(
                config, "visibility", self.permissions.inverse_for_file(src.stat().st_mode)
            )
            self._ensure_directory(
                dest.parent,
                config_visibility(
                    config, "directory_visibility", self.permissions.default_directory_visibility
                ),
            )
            shutil.copyfile(src, dest)
            dest.chmod(self.permissions.for_file(visibility))
        except OSError as e:
            raise CopyFileError.from_location_to(source, destination, e) from e
