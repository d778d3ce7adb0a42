"""StoredFile model for the database backend.

Provides ``StoredFileBase`` as a non-table base class.  Subclass with
``table=True`` and a custom ``__tablename__`` to use a different table
name per backend.
"""

from __future__ import annotations

import time
import uuid

from sqlalchemy import LargeBinary
from sqlmodel import Field, SQLModel


class StoredFileBase(SQLModel):
    """Base fields for a stored file or explicit directory."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    path: str = Field(index=True, unique=True)
    is_directory: bool = Field(default=False)
    contents: bytes | None = Field(default=None, sa_type=LargeBinary)
    mime_type: str | None = Field(default=None)
    visibility: str = Field(default="public")
    file_size: int = Field(default=0)
    last_modified: int = Field(default_factory=lambda: int(time.time()))
    """Unix timestamp in seconds."""


class StoredFile(StoredFileBase, table=True):
    """Default file table — ``mountfs_files``."""

    __tablename__ = "mountfs_files"
