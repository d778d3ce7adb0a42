"""Contract tests for the mountfs public surface."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

import mountfs
from mountfs.protocol import FilesystemBackend

BACKEND_METHODS = [
    "file_exists",
    "directory_exists",
    "read",
    "read_stream",
    "list_contents",
    "last_modified",
    "file_size",
    "mime_type",
    "visibility",
    "write",
    "write_stream",
    "set_visibility",
    "delete",
    "delete_directory",
    "create_directory",
    "move",
    "copy",
]


def test_all_names_importable():
    for name in mountfs.__all__:
        assert hasattr(mountfs, name), name


def test_version_matches_pyproject():
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    match = re.search(r'^version = "([^"]+)"', pyproject.read_text(), re.MULTILINE)
    assert match is not None
    assert mountfs.__version__ == match.group(1)


@pytest.mark.parametrize("method", BACKEND_METHODS)
def test_manager_exposes_every_backend_operation(method):
    assert callable(getattr(mountfs.MountManager, method))


@pytest.mark.parametrize(
    "backend_cls",
    [mountfs.MemoryFileSystem, mountfs.LocalDiskFileSystem, mountfs.DatabaseFileSystem],
)
def test_reference_backends_implement_protocol(backend_cls):
    for method in BACKEND_METHODS:
        assert callable(getattr(backend_cls, method, None)), method


def test_protocol_lists_exactly_backend_methods():
    declared = {
        name
        for name, value in vars(FilesystemBackend).items()
        if callable(value) and not name.startswith("_")
    }
    assert declared == set(BACKEND_METHODS)


def test_error_kinds_share_base():
    for name in mountfs.__all__:
        obj = getattr(mountfs, name)
        if isinstance(obj, type) and issubclass(obj, Exception):
            assert issubclass(obj, mountfs.FilesystemError), name
