"""MountRegistry and virtual location resolution."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidMountError, UnresolvableMountError
from .protocol import FilesystemBackend

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "://"


def split_location(location: str) -> tuple[str, str]:
    """Split a virtual location into ``(mount_key, relative_path)``.

    Splits at the first ``://`` only; the relative path is returned
    unchanged and may be empty or contain further separators.

    Raises ``UnresolvableMountError`` if the separator is missing or the
    mount key is empty.
    """
    index = location.find(PATH_SEPARATOR)
    if index < 1:
        raise UnresolvableMountError.because_separator_is_missing(location)
    return location[:index], location[index + len(PATH_SEPARATOR) :]


class MountRegistry:
    """Registry of mounted filesystems keyed by mount name.

    Keys keep registration order.  A key, once set, is never replaced:
    registering it again is a no-op.  Registration is serialized with a
    lock; lookups are lock-free because the mapping only ever grows.
    """

    def __init__(self, mounts: Mapping[str, FilesystemBackend] | None = None) -> None:
        self._mounts: dict[str, FilesystemBackend] = {}
        self._lock = threading.Lock()
        for key, backend in (mounts or {}).items():
            self.mount_filesystem(key, backend)

    def mount_filesystem(self, key: str, backend: FilesystemBackend) -> None:
        """Register *backend* under *key* unless the key is already taken."""
        self._guard_against_invalid_mount(key, backend)
        with self._lock:
            if key in self._mounts:
                logger.debug("Mount %r already registered, ignoring", key)
                return
            self._mounts[key] = backend
        logger.debug("Mounted %s at %r", type(backend).__name__, key)

    @staticmethod
    def _guard_against_invalid_mount(key: Any, backend: Any) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidMountError.because_key_is_invalid(key)
        # A backend class passes the protocol check too; only instances mount.
        if isinstance(backend, type) or not isinstance(backend, FilesystemBackend):
            raise InvalidMountError.because_backend_is_invalid(backend)

    def is_registered(self, key: str) -> bool:
        return key in self._mounts

    def get(self, key: str) -> FilesystemBackend | None:
        return self._mounts.get(key)

    def list_keys(self) -> list[str]:
        """Mount keys in registration order."""
        return list(self._mounts)

    def resolve(self, location: str) -> tuple[FilesystemBackend, str]:
        """Resolve a virtual location to its backend and relative path."""
        mount_key, relative_path = split_location(location)
        backend = self._mounts.get(mount_key)
        if backend is None:
            raise UnresolvableMountError.because_mount_is_not_registered(mount_key)
        return backend, relative_path

    def __contains__(self, key: object) -> bool:
        return key in self._mounts

    def __len__(self) -> int:
        return len(self._mounts)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_keys())
