"""Tests for copy/move within and across mounted filesystems."""

from __future__ import annotations

import io

import pytest

from mountfs.exceptions import (
    CopyFileError,
    DeleteFileError,
    MoveFileError,
    ReadFileError,
    RetrieveMetadataError,
    UnresolvableMountError,
    WriteFileError,
)
from mountfs.manager import MountManager
from mountfs.memory_fs import MemoryFileSystem


class SpyFileSystem(MemoryFileSystem):
    """MemoryFileSystem that records calls and can be told to fail."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.calls: list[tuple] = []
        self.streams: list[io.BytesIO] = []
        self.fail_delete = False
        self.fail_write_stream = False

    def copy(self, source, destination, config=None):
        self.calls.append(("copy", source, destination))
        super().copy(source, destination, config)

    def move(self, source, destination, config=None):
        self.calls.append(("move", source, destination))
        super().move(source, destination, config)

    def read_stream(self, path):
        self.calls.append(("read_stream", path))
        stream = super().read_stream(path)
        self.streams.append(stream)
        return stream

    def write_stream(self, path, contents, config=None):
        self.calls.append(("write_stream", path, dict(config or {})))
        if self.fail_write_stream:
            raise WriteFileError(path, "quota exceeded")
        super().write_stream(path, contents, config)

    def delete(self, path):
        self.calls.append(("delete", path))
        if self.fail_delete:
            raise DeleteFileError(path, "permission denied")
        super().delete(path)


@pytest.fixture
def local() -> SpyFileSystem:
    return SpyFileSystem()


@pytest.fixture
def cloud() -> SpyFileSystem:
    return SpyFileSystem()


@pytest.fixture
def mounts(local, cloud) -> MountManager:
    return MountManager({"local": local, "cloud": cloud})


# ---------------------------------------------------------------------------
# Same filesystem
# ---------------------------------------------------------------------------


class TestSameFilesystem:
    def test_copy_uses_native_copy(self, mounts, local):
        local.write("a.txt", "hi")
        mounts.copy("local://a.txt", "local://b.txt")
        assert local.calls == [("copy", "a.txt", "b.txt")]
        assert local.read("b.txt") == b"hi"

    def test_move_uses_native_move(self, mounts, local, cloud):
        local.write("a.txt", "hi")
        mounts.move("local://a.txt", "local://c.txt")
        assert local.calls == [("move", "a.txt", "c.txt")]
        assert cloud.calls == []
        assert local.file_exists("a.txt") is False
        assert local.read("c.txt") == b"hi"

    def test_same_instance_under_two_keys_is_same_filesystem(self, local):
        manager = MountManager({"one": local, "two": local})
        local.write("a.txt", "hi")
        manager.copy("one://a.txt", "two://b.txt")
        assert local.calls == [("copy", "a.txt", "b.txt")]

    def test_copy_failure_names_virtual_locations(self, mounts):
        with pytest.raises(CopyFileError) as exc_info:
            mounts.copy("local://missing.txt", "local://b.txt")
        err = exc_info.value
        assert err.source == "local://missing.txt"
        assert err.destination == "local://b.txt"
        assert isinstance(err.__cause__, CopyFileError)
        assert err.__cause__.source == "missing.txt"

    def test_move_failure_names_virtual_locations(self, mounts):
        with pytest.raises(MoveFileError) as exc_info:
            mounts.move("local://missing.txt", "local://b.txt")
        assert exc_info.value.source == "local://missing.txt"
        assert exc_info.value.destination == "local://b.txt"
        assert isinstance(exc_info.value.__cause__, MoveFileError)

    def test_copy_passes_config_to_backend(self, mounts, local):
        local.write("a.txt", "hi")
        mounts.copy("local://a.txt", "local://b.txt", {"visibility": "private"})
        assert local.visibility("b.txt") == "private"


# ---------------------------------------------------------------------------
# Across filesystems: copy
# ---------------------------------------------------------------------------


class TestCopyAcross:
    def test_relays_stream_and_keeps_source(self, mounts, local, cloud):
        local.write("a.txt", "hi")
        mounts.copy("local://a.txt", "cloud://b.txt")
        assert cloud.read("b.txt") == b"hi"
        assert local.read("a.txt") == b"hi"
        assert ("read_stream", "a.txt") in local.calls
        assert ("write_stream", "b.txt", {"visibility": "public"}) in cloud.calls

    def test_preserves_source_visibility(self, mounts, local, cloud):
        local.write("a.txt", "hi", {"visibility": "private"})
        mounts.copy("local://a.txt", "cloud://b.txt")
        assert cloud.visibility("b.txt") == "private"

    def test_public_source_stays_public(self, mounts, local, cloud):
        local.write("a.txt", "hi", {"visibility": "public"})
        mounts.copy("local://a.txt", "cloud://b.txt")
        assert cloud.visibility("b.txt") == "public"

    def test_explicit_visibility_wins(self, mounts, local, cloud):
        local.write("a.txt", "hi", {"visibility": "public"})
        mounts.copy("local://a.txt", "cloud://b.txt", {"visibility": "private"})
        assert cloud.visibility("b.txt") == "private"
        assert local.visibility("a.txt") == "public"

    def test_source_stream_closed(self, mounts, local):
        local.write("a.txt", "hi")
        mounts.copy("local://a.txt", "cloud://b.txt")
        assert len(local.streams) == 1
        assert local.streams[0].closed is True

    def test_missing_source_raises_copy_error(self, mounts, cloud):
        with pytest.raises(CopyFileError) as exc_info:
            mounts.copy("local://missing.txt", "cloud://b.txt")
        err = exc_info.value
        assert err.source == "local://missing.txt"
        assert err.destination == "cloud://b.txt"
        assert isinstance(err.__cause__, RetrieveMetadataError)
        assert cloud.calls == []

    def test_missing_source_with_visibility_fails_on_read(self, mounts):
        with pytest.raises(CopyFileError) as exc_info:
            mounts.copy("local://missing.txt", "cloud://b.txt", {"visibility": "public"})
        assert isinstance(exc_info.value.__cause__, ReadFileError)

    def test_write_failure_raises_copy_error(self, mounts, local, cloud):
        local.write("a.txt", "hi")
        cloud.fail_write_stream = True
        with pytest.raises(CopyFileError) as exc_info:
            mounts.copy("local://a.txt", "cloud://b.txt")
        assert isinstance(exc_info.value.__cause__, WriteFileError)
        assert exc_info.value.reason == "quota exceeded"

    def test_unresolvable_destination_propagates(self, mounts, local):
        local.write("a.txt", "hi")
        with pytest.raises(UnresolvableMountError):
            mounts.copy("local://a.txt", "missing://b.txt")
        assert local.calls == []


# ---------------------------------------------------------------------------
# Across filesystems: move
# ---------------------------------------------------------------------------


class TestMoveAcross:
    def test_copies_then_deletes(self, mounts, local, cloud):
        local.write("a.txt", "hi", {"visibility": "private"})
        mounts.move("local://a.txt", "cloud://b.txt")
        assert cloud.read("b.txt") == b"hi"
        assert cloud.visibility("b.txt") == "private"
        assert local.file_exists("a.txt") is False
        assert local.calls[-1] == ("delete", "a.txt")

    def test_failed_delete_leaves_duplicate(self, mounts, local, cloud):
        local.write("a.txt", "hi")
        local.fail_delete = True
        with pytest.raises(MoveFileError) as exc_info:
            mounts.move("local://a.txt", "cloud://b.txt")
        err = exc_info.value
        assert err.source == "local://a.txt"
        assert err.destination == "cloud://b.txt"
        assert isinstance(err.__cause__, DeleteFileError)
        assert cloud.read("b.txt") == b"hi"
        assert local.read("a.txt") == b"hi"

    def test_failed_delete_is_logged(self, mounts, local, caplog):
        local.write("a.txt", "hi")
        local.fail_delete = True
        with caplog.at_level("WARNING", logger="mountfs.transfer"), pytest.raises(MoveFileError):
            mounts.move("local://a.txt", "cloud://b.txt")
        assert "could not delete the source" in caplog.text

    def test_failed_copy_keeps_source(self, mounts, local, cloud):
        local.write("a.txt", "hi")
        cloud.fail_write_stream = True
        with pytest.raises(MoveFileError) as exc_info:
            mounts.move("local://a.txt", "cloud://b.txt")
        assert isinstance(exc_info.value.__cause__, CopyFileError)
        assert local.read("a.txt") == b"hi"
        assert ("delete", "a.txt") not in local.calls

    def test_missing_source(self, mounts):
        with pytest.raises(MoveFileError) as exc_info:
            mounts.move("local://missing.txt", "cloud://b.txt")
        assert exc_info.value.source == "local://missing.txt"

    def test_unresolvable_source_propagates(self, mounts):
        with pytest.raises(UnresolvableMountError):
            mounts.move("no-scheme-here", "cloud://b.txt")


# ---------------------------------------------------------------------------
# Across the reference backends
# ---------------------------------------------------------------------------


class TestReferenceBackends:
    @pytest.mark.parametrize(
        ("source", "destination"),
        [
            ("local", "memory"),
            ("memory", "db"),
            ("db", "local"),
        ],
    )
    def test_copy_preserves_contents_and_visibility(self, manager, source, destination):
        manager.write(f"{source}://dir/a.txt", "payload", {"visibility": "private"})
        manager.copy(f"{source}://dir/a.txt", f"{destination}://copied/a.txt")
        assert manager.read(f"{destination}://copied/a.txt") == b"payload"
        assert manager.visibility(f"{destination}://copied/a.txt") == "private"

    @pytest.mark.parametrize(
        ("source", "destination"),
        [
            ("memory", "local"),
            ("local", "db"),
            ("db", "memory"),
        ],
    )
    def test_move(self, manager, source, destination):
        manager.write(f"{source}://a.txt", "payload")
        manager.move(f"{source}://a.txt", f"{destination}://b.txt")
        assert manager.read(f"{destination}://b.txt") == b"payload"
        assert manager.file_exists(f"{source}://a.txt") is False

    @pytest.mark.parametrize("mount", ["local", "memory", "db"])
    def test_native_copy_and_move(self, manager, mount):
        manager.write(f"{mount}://a.txt", "payload")
        manager.copy(f"{mount}://a.txt", f"{mount}://sub/b.txt")
        manager.move(f"{mount}://sub/b.txt", f"{mount}://c.txt")
        assert manager.read(f"{mount}://a.txt") == b"payload"
        assert manager.read(f"{mount}://c.txt") == b"payload"
        assert manager.file_exists(f"{mount}://sub/b.txt") is False
