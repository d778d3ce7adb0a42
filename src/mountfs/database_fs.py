"""DatabaseFileSystem — file contents and metadata stored in SQL."""

from __future__ import annotations

import io
import logging
import time
from typing import TYPE_CHECKING, BinaryIO

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .exceptions import (
    CheckExistenceError,
    CopyFileError,
    CreateDirectoryError,
    DeleteDirectoryError,
    DeleteFileError,
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
    from collections.abc import Callable, Iterator

    from sqlalchemy import Engine

    from .models import StoredFileBase
    from .types import OperationConfig

    MetadataErrorFactory = Callable[[str, str], RetrieveMetadataError]

logger = logging.getLogger(__name__)


class DatabaseFileSystem:
    """Database-backed backend.  Works with SQLite, PostgreSQL, etc.

    Holds only the engine and the model class; every operation opens its
    own session and commits before returning.  Parent directories of a
    written file are stored as explicit directory rows.

    Implements the ``FilesystemBackend`` protocol.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        file_model: type[StoredFileBase] | None = None,
        default_visibility: Visibility | str = Visibility.PUBLIC,
    ) -> None:
        from .models import StoredFile

        self.engine = engine
        self._file_model: type[StoredFileBase] = file_model or StoredFile
        self.default_visibility = str(getattr(default_visibility, "value", default_visibility))

    @property
    def file_model(self) -> type[StoredFileBase]:
        return self._file_model

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    def _get_row(self, session: Session, path: str) -> StoredFileBase | None:
        model = self._file_model
        return session.exec(
            select(model).where(model.path == path)  # type: ignore[arg-type]
        ).first()

    def _get_file(self, session: Session, path: str) -> StoredFileBase | None:
        row = self._get_row(session, path)
        if row is None or row.is_directory:
            return None
        return row

    def _ensure_parents(self, session: Session, path: str, visibility: str) -> None:
        for directory in parent_directories(path):
            row = self._get_row(session, directory)
            if row is None:
                session.add(
                    self._file_model(path=directory, is_directory=True, visibility=visibility)
                )
            elif not row.is_directory:
                raise WriteFileError.at_location(path, f"Parent is a file: {directory}")

    def _to_info(self, row: StoredFileBase) -> FileInfo:
        if row.is_directory:
            return FileInfo(
                path=row.path,
                is_directory=True,
                last_modified=row.last_modified,
                visibility=row.visibility,
            )
        return FileInfo(
            path=row.path,
            file_size=row.file_size,
            last_modified=row.last_modified,
            mime_type=row.mime_type,
            visibility=row.visibility,
        )

    # ------------------------------------------------------------------
    # Read Operations
    # ------------------------------------------------------------------

    def file_exists(self, path: str) -> bool:
        path = normalize_path(path)
        try:
            with Session(self.engine) as session:
                return self._get_file(session, path) is not None
        except SQLAlchemyError as e:
            raise CheckExistenceError.at_location(path, str(e)) from e

    def directory_exists(self, path: str) -> bool:
        path = normalize_path(path)
        if not path:
            return True
        try:
            with Session(self.engine) as session:
                row = self._get_row(session, path)
        except SQLAlchemyError as e:
            raise CheckExistenceError.at_location(path, str(e)) from e
        return row is not None and row.is_directory

    def read(self, path: str) -> bytes:
        path = normalize_path(path)
        try:
            with Session(self.engine) as session:
                row = self._get_file(session, path)
        except SQLAlchemyError as e:
            raise ReadFileError.at_location(path, str(e)) from e
        if row is None:
            raise ReadFileError.at_location(path, "File does not exist.")
        return row.contents or b""

    def read_stream(self, path: str) -> BinaryIO:
        return io.BytesIO(self.read(path))

    def list_contents(self, path: str, deep: bool = False) -> Iterator[FileInfo]:
        path = normalize_path(path)
        model = self._file_model
        prefix = f"{path}/" if path else ""
        with Session(self.engine) as session:
            rows = session.exec(
                select(model)
                .where(
                    model.path.startswith(prefix, autoescape=True)  # type: ignore[attr-defined]
                )
                .order_by(model.is_directory.desc(), model.path)  # type: ignore[attr-defined]
            ).all()
            entries = [
                self._to_info(row)
                for row in rows
                if is_within(row.path, path) and (deep or depth_below(row.path, path) == 1)
            ]
        yield from entries

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def _metadata_row(self, path: str, error: MetadataErrorFactory) -> StoredFileBase:
        path = normalize_path(path)
        try:
            with Session(self.engine) as session:
                row = self._get_file(session, path)
        except SQLAlchemyError as e:
            raise error(path, str(e)) from e
        if row is None:
            raise error(path, "File does not exist.")
        return row

    def last_modified(self, path: str) -> int:
        return self._metadata_row(path, RetrieveMetadataError.last_modified).last_modified

    def file_size(self, path: str) -> int:
        return self._metadata_row(path, RetrieveMetadataError.file_size).file_size

    def mime_type(self, path: str) -> str:
        row = self._metadata_row(path, RetrieveMetadataError.mime_type)
        return row.mime_type or guess_mime_type(row.path)

    def visibility(self, path: str) -> str:
        return self._metadata_row(path, RetrieveMetadataError.visibility).visibility

    # ------------------------------------------------------------------
    # Write Operations
    # ------------------------------------------------------------------

    def write(
        self, path: str, contents: bytes | str, config: OperationConfig | None = None
    ) -> None:
        path = normalize_path(path)
        if not path:
            raise WriteFileError.at_location(path, "Cannot write to the root directory.")
        data = to_bytes(contents)
        try:
            with Session(self.engine) as session:
                row = self._get_row(session, path)
                if row is not None and row.is_directory:
                    raise WriteFileError.at_location(path, "A directory exists at this path.")
                self._ensure_parents(
                    session,
                    path,
                    config_visibility(config, "directory_visibility", self.default_visibility),
                )
                if row is None:
                    row = self._file_model(path=path, visibility=self.default_visibility)
                row.contents = data
                row.file_size = len(data)
                row.mime_type = guess_mime_type(path)
                row.visibility = config_visibility(config, "visibility", row.visibility)
                row.last_modified = int(time.time())
                session.add(row)
                session.commit()
        except SQLAlchemyError as e:
            raise WriteFileError.at_location(path, str(e)) from e

    def write_stream(
        self, path: str, contents: BinaryIO, config: OperationConfig | None = None
    ) -> None:
        try:
            data = contents.read()
        except (OSError, ValueError) as e:
            raise WriteFileError.at_location(path, str(e)) from e
        self.write(path, data, config)

    def set_visibility(self, path: str, visibility: str) -> None:
        path = normalize_path(path)
        try:
            with Session(self.engine) as session:
                row = self._get_row(session, path)
                if row is None:
                    raise SetVisibilityError.at_location(path, "File does not exist.")
                row.visibility = visibility
                session.add(row)
                session.commit()
        except SQLAlchemyError as e:
            raise SetVisibilityError.at_location(path, str(e)) from e

    def delete(self, path: str) -> None:
        path = normalize_path(path)
        try:
            with Session(self.engine) as session:
                row = self._get_file(session, path)
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as e:
            raise DeleteFileError.at_location(path, str(e)) from e

    def delete_directory(self, path: str) -> None:
        path = normalize_path(path)
        if not path:
            raise DeleteDirectoryError.at_location(path, "Cannot delete the root directory.")
        model = self._file_model
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(model).where(
                        (model.path == path)  # type: ignore[arg-type]
                        | model.path.startswith(  # type: ignore[attr-defined]
                            f"{path}/", autoescape=True
                        )
                    )
                ).all()
                for row in rows:
                    session.delete(row)
                session.commit()
        except SQLAlchemyError as e:
            raise DeleteDirectoryError.at_location(path, str(e)) from e
        logger.debug("Deleted directory %s (%d rows)", path, len(rows))

    def create_directory(self, path: str, config: OperationConfig | None = None) -> None:
        path = normalize_path(path)
        if not path:
            return
        visibility = config_visibility(config, "directory_visibility", self.default_visibility)
        try:
            with Session(self.engine) as session:
                row = self._get_row(session, path)
                if row is not None:
                    if not row.is_directory:
                        raise CreateDirectoryError.at_location(path, "A file exists at this path.")
                    return
                for directory in [*parent_directories(path), path]:
                    existing = self._get_row(session, directory)
                    if existing is None:
                        session.add(
                            self._file_model(
                                path=directory, is_directory=True, visibility=visibility
                            )
                        )
                    elif not existing.is_directory:
                        raise CreateDirectoryError.at_location(
                            path, f"Parent is a file: {directory}"
                        )
                session.commit()
        except SQLAlchemyError as e:
            raise CreateDirectoryError.at_location(path, str(e)) from e

    def move(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        source = normalize_path(source)
        destination = normalize_path(destination)
        try:
            with Session(self.engine) as session:
                row = self._get_file(session, source)
                if row is None:
                    raise MoveFileError(source, destination, "Source file does not exist.")
                if source == destination:
                    return
                existing = self._get_row(session, destination)
                if existing is not None:
                    if existing.is_directory:
                        raise MoveFileError(
                            source, destination, "A directory exists at destination."
                        )
                    session.delete(existing)
                    session.flush()
                self._ensure_parents(session, destination, self.default_visibility)
                row.path = destination
                row.mime_type = guess_mime_type(destination)
                session.add(row)
                session.commit()
        except (SQLAlchemyError, WriteFileError) as e:
            raise MoveFileError.from_location_to(source, destination, e) from e

    def copy(
        self, source: str, destination: str, config: OperationConfig | None = None
    ) -> None:
        source = normalize_path(source)
        destination = normalize_path(destination)
        try:
            with Session(self.engine) as session:
                row = self._get_file(session, source)
                if row is None:
                    raise CopyFileError(source, destination, "Source file does not exist.")
                target = self._get_row(session, destination)
                if target is None:
                    self._ensure_parents(session, destination, self.default_visibility)
                    target = self._file_model(path=destination)
                elif target.is_directory:
                    raise CopyFileError(source, destination, "A directory exists at destination.")
                target.contents = row.contents
                target.file_size = row.file_size
                target.mime_type = guess_mime_type(destination)
                target.visibility = config_visibility(config, "visibility", row.visibility)
                target.last_modified = int(time.time())
                session.add(target)
                session.commit()
        except (SQLAlchemyError, WriteFileError) as e:
            raise CopyFileError.from_location_to(source, destination, e) from e
