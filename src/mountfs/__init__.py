"""mountfs: one API over many filesystems.

Mount backends under keys and address files as ``<mount>://<path>``;
copy and move work within and across backends.
"""

__version__ = "0.1.0"

from mountfs.database_fs import DatabaseFileSystem
from mountfs.exceptions import (
    CheckExistenceError,
    CopyFileError,
    CreateDirectoryError,
    DeleteDirectoryError,
    DeleteFileError,
    FilesystemError,
    FilesystemOperationError,
    InvalidMountError,
    MoveFileError,
    PathTraversalError,
    ReadFileError,
    RetrieveMetadataError,
    SetVisibilityError,
    UnresolvableMountError,
    WriteFileError,
)
from mountfs.local_disk import LocalDiskFileSystem, PortableVisibilityMap
from mountfs.manager import MountManager
from mountfs.memory_fs import MemoryFileSystem
from mountfs.models import StoredFile, StoredFileBase
from mountfs.mounts import PATH_SEPARATOR, MountRegistry, split_location
from mountfs.protocol import FilesystemBackend
from mountfs.types import FileInfo, OperationConfig, Visibility

__all__ = [
    "PATH_SEPARATOR",
    "CheckExistenceError",
    "CopyFileError",
    "CreateDirectoryError",
    "DatabaseFileSystem",
    "DeleteDirectoryError",
    "DeleteFileError",
    "FileInfo",
    "FilesystemBackend",
    "FilesystemError",
    "FilesystemOperationError",
    "InvalidMountError",
    "LocalDiskFileSystem",
    "MemoryFileSystem",
    "MountManager",
    "MountRegistry",
    "MoveFileError",
    "OperationConfig",
    "PathTraversalError",
    "PortableVisibilityMap",
    "ReadFileError",
    "RetrieveMetadataError",
    "SetVisibilityError",
    "StoredFile",
    "StoredFileBase",
    "UnresolvableMountError",
    "Visibility",
    "WriteFileError",
    "__version__",
    "split_location",
]
