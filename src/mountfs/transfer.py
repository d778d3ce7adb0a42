"""Copy and move orchestration within and across mounted filesystems.

Each function takes already-resolved backends plus the original virtual
locations, which are only used to qualify errors.  Cross-backend transfers
are a sequence of independently-failable steps: nothing is rolled back.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import (
    CopyFileError,
    DeleteFileError,
    MoveFileError,
    ReadFileError,
    RetrieveMetadataError,
    WriteFileError,
)

if TYPE_CHECKING:
    from .protocol import FilesystemBackend
    from .types import OperationConfig

logger = logging.getLogger(__name__)


def copy_file(
    source_fs: FilesystemBackend,
    source_path: str,
    destination_fs: FilesystemBackend,
    destination_path: str,
    *,
    source: str,
    destination: str,
    config: OperationConfig | None = None,
) -> None:
    """Copy between two resolved locations, natively when on one backend."""
    if source_fs is destination_fs:
        try:
            source_fs.copy(source_path, destination_path, config)
        except CopyFileError as exc:
            raise CopyFileError.from_location_to(source, destination, exc) from exc
        return

    visibility = (config or {}).get("visibility")
    try:
        _relay(source_fs, source_path, destination_fs, destination_path, visibility)
    except (RetrieveMetadataError, ReadFileError, WriteFileError) as exc:
        raise CopyFileError.from_location_to(source, destination, exc) from exc


def _relay(
    source_fs: FilesystemBackend,
    source_path: str,
    destination_fs: FilesystemBackend,
    destination_path: str,
    visibility: str | None,
) -> None:
    """Stream a file from one backend into another."""
    if visibility is None:
        visibility = source_fs.visibility(source_path)
    logger.debug(
        "Relaying %s -> %s across %s and %s",
        source_path,
        destination_path,
        type(source_fs).__name__,
        type(destination_fs).__name__,
    )
    with source_fs.read_stream(source_path) as stream:
        destination_fs.write_stream(destination_path, stream, {"visibility": visibility})


def move_file(
    source_fs: FilesystemBackend,
    source_path: str,
    destination_fs: FilesystemBackend,
    destination_path: str,
    *,
    source: str,
    destination: str,
    config: OperationConfig | None = None,
) -> None:
    """Move between two resolved locations.

    Across backends this is copy followed by delete.  When the delete
    fails the destination already holds a full copy and the source is
    left in place; the ``MoveFileError`` raised then does not mean
    nothing happened.
    """
    if source_fs is destination_fs:
        try:
            source_fs.move(source_path, destination_path, config)
        except MoveFileError as exc:
            raise MoveFileError.from_location_to(source, destination, exc) from exc
        return

    try:
        copy_file(
            source_fs,
            source_path,
            destination_fs,
            destination_path,
            source=source,
            destination=destination,
        )
    except CopyFileError as exc:
        raise MoveFileError.from_location_to(source, destination, exc) from exc

    try:
        source_fs.delete(source_path)
    except DeleteFileError as exc:
        logger.warning(
            "Copied %s to %s but could not delete the source; both now exist",
            source,
            destination,
        )
        raise MoveFileError.from_location_to(source, destination, exc) from exc
