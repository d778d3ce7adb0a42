"""Shared fixtures for mountfs tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlmodel import SQLModel, create_engine

import mountfs.models  # noqa: F401  (registers the mountfs_files table)
from mountfs.database_fs import DatabaseFileSystem
from mountfs.local_disk import LocalDiskFileSystem
from mountfs.manager import MountManager
from mountfs.memory_fs import MemoryFileSystem

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Engine


@pytest.fixture
def engine() -> Engine:
    """In-memory SQLite engine with all tables created."""
    eng = create_engine("sqlite://", echo=False)
    SQLModel.metadata.create_all(eng)
    return eng


@pytest.fixture
def memory() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def disk(tmp_path: Path) -> LocalDiskFileSystem:
    """LocalDiskFileSystem rooted at a temporary directory."""
    return LocalDiskFileSystem(tmp_path / "disk")


@pytest.fixture
def database(engine: Engine) -> DatabaseFileSystem:
    return DatabaseFileSystem(engine)


@pytest.fixture
def manager(
    disk: LocalDiskFileSystem, memory: MemoryFileSystem, database: DatabaseFileSystem
) -> MountManager:
    """Manager with one mount per reference backend."""
    return MountManager({"local": disk, "memory": memory, "db": database})
