"""Shared types: FileInfo, Visibility, OperationConfig."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

OperationConfig = Mapping[str, Any]
"""Per-call options for write, copy, move and create-directory."""


class Visibility(str, Enum):
    """Access-level marker associated with a file or directory."""

    PUBLIC = "public"
    PRIVATE = "private"


@dataclass
class FileInfo:
    """Listing entry for a file or directory."""

    path: str
    is_directory: bool = False
    file_size: int | None = None
    last_modified: int | None = None
    """Unix timestamp in seconds."""
    mime_type: str | None = None
    visibility: str | None = None

    @property
    def is_file(self) -> bool:
        return not self.is_directory
