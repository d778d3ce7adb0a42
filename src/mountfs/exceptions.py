"""Custom exception hierarchy for the mountfs routing layer.

Backends raise the operation-specific errors below with their own relative
path as ``location``.  :class:`~mountfs.manager.MountManager` catches them at
its boundary and re-raises the same kind qualified with the virtual location,
chaining the backend error as ``__cause__``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from typing import Self


class FilesystemError(Exception):
    """Base exception for all mountfs errors."""


class PathTraversalError(FilesystemError):
    """Raised when a relative path escapes the backend root."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Path traversal detected: {path}")
        self.path = path


# ---------------------------------------------------------------------------
# Mounting / resolution
# ---------------------------------------------------------------------------


class InvalidMountError(FilesystemError):
    """Raised when a mount key or backend is rejected at registration time."""

    def __init__(self, message: str, *, reason: str, value: Any) -> None:
        super().__init__(message)
        self.reason = reason
        self.value = value

    @classmethod
    def because_key_is_invalid(cls, key: Any) -> InvalidMountError:
        return cls(
            f"Unable to mount filesystem, key must be a non-empty string: {key!r}",
            reason="invalid key",
            value=key,
        )

    @classmethod
    def because_backend_is_invalid(cls, backend: Any) -> InvalidMountError:
        return cls(
            "Unable to mount filesystem, backend does not implement "
            f"FilesystemBackend: {type(backend).__name__}",
            reason="invalid backend",
            value=backend,
        )


class UnresolvableMountError(FilesystemError):
    """Raised when a virtual location cannot be resolved to a mount."""

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        location: str | None = None,
        mount_key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.location = location
        self.mount_key = mount_key

    @classmethod
    def because_separator_is_missing(cls, location: str) -> UnresolvableMountError:
        return cls(
            f"Unable to resolve mount, missing '://' separator in location: {location!r}",
            reason="missing separator",
            location=location,
        )

    @classmethod
    def because_mount_is_not_registered(cls, mount_key: str) -> UnresolvableMountError:
        return cls(
            f"Unable to resolve mount, no filesystem mounted at key: {mount_key!r}",
            reason="unregistered mount",
            mount_key=mount_key,
        )


# ---------------------------------------------------------------------------
# Operation failures
# ---------------------------------------------------------------------------


class FilesystemOperationError(FilesystemError):
    """A failed operation at a single location.

    Attributes:
        location: Backend-relative path when raised by a backend, virtual
            location once re-raised by the mount manager.
        reason: Human-readable reason supplied by the backend ("" if none).
    """

    message_template = "Unable to perform operation at location: {location}."

    def __init__(self, location: str, reason: str = "") -> None:
        self.location = location
        self.reason = reason
        super().__init__(self._format())

    def _format(self) -> str:
        message = self.message_template.format(location=self.location)
        return f"{message} {self.reason}".rstrip()

    @classmethod
    def at_location(cls, location: str, reason: str = "") -> Self:
        return cls(location, reason)

    def relocated(self, location: str) -> Self:
        """Return a copy of this error qualified with *location*."""
        return type(self)(location, self.reason)


class CheckExistenceError(FilesystemOperationError):
    message_template = "Unable to check existence for: {location}."


class ReadFileError(FilesystemOperationError):
    message_template = "Unable to read file from location: {location}."


class WriteFileError(FilesystemOperationError):
    message_template = "Unable to write file at location: {location}."


class SetVisibilityError(FilesystemOperationError):
    message_template = "Unable to set visibility for file {location}."


class DeleteFileError(FilesystemOperationError):
    message_template = "Unable to delete file located at: {location}."


class DeleteDirectoryError(FilesystemOperationError):
    message_template = "Unable to delete directory located at: {location}."


class CreateDirectoryError(FilesystemOperationError):
    message_template = "Unable to create a directory at {location}."


class RetrieveMetadataError(FilesystemOperationError):
    """Metadata lookup failed.  ``metadata_type`` names the attribute."""

    def __init__(self, location: str, reason: str = "", metadata_type: str = "") -> None:
        self.metadata_type = metadata_type
        super().__init__(location, reason)

    def _format(self) -> str:
        message = (
            f"Unable to retrieve the {self.metadata_type} for file at location: {self.location}."
        )
        return f"{message} {self.reason}".rstrip()

    @classmethod
    def last_modified(cls, location: str, reason: str = "") -> RetrieveMetadataError:
        return cls(location, reason, "last_modified")

    @classmethod
    def file_size(cls, location: str, reason: str = "") -> RetrieveMetadataError:
        return cls(location, reason, "file_size")

    @classmethod
    def mime_type(cls, location: str, reason: str = "") -> RetrieveMetadataError:
        return cls(location, reason, "mime_type")

    @classmethod
    def visibility(cls, location: str, reason: str = "") -> RetrieveMetadataError:
        return cls(location, reason, "visibility")

    def relocated(self, location: str) -> RetrieveMetadataError:
        return type(self)(location, self.reason, self.metadata_type)


class _TransferError(FilesystemOperationError):
    """A failed copy or move between two locations."""

    verb = "transfer"

    def __init__(self, source: str, destination: str, reason: str = "") -> None:
        self.source = source
        self.destination = destination
        super().__init__(source, reason)

    def _format(self) -> str:
        message = f"Unable to {self.verb} file from {self.source} to {self.destination}."
        return f"{message} {self.reason}".rstrip()

    @classmethod
    def from_location_to(
        cls, source: str, destination: str, cause: BaseException | None = None
    ) -> Self:
        reason = getattr(cause, "reason", None)
        if reason is None:
            reason = str(cause) if cause is not None else ""
        return cls(source, destination, reason)

    def relocated(self, location: str, destination: str | None = None) -> Self:
        """Return a copy with *location* as source and, if given, a new destination."""
        return type(self)(
            location, self.destination if destination is None else destination, self.reason
        )


class CopyFileError(_TransferError):
    verb = "copy"


class MoveFileError(_TransferError):
    verb = "move"


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


@contextmanager
def translate_errors(
    location: str,
    caught: type[FilesystemOperationError],
    rewrap: Callable[[str, str], FilesystemOperationError] | None = None,
) -> Iterator[None]:
    """Re-raise backend errors of kind *caught* qualified with *location*.

    With *rewrap* the new error is built as ``rewrap(location, reason)``,
    otherwise the caught error is relocated as-is.  The backend error is
    kept as ``__cause__``.  Any other exception, including resolver
    failures, propagates untouched.
    """
    try:
        yield
    except caught as exc:
        if rewrap is not None:
            raise rewrap(location, exc.reason) from exc
        raise exc.relocated(location) from exc
