"""Source and stream interfaces plus directory-entry dataclasses.

Defines the common contract for source implementations (MemorySource) so
an in-memory store and any other backend are interchangeable.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

PathArg = str | os.PathLike


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class DirEntry:
    """One child listed by ``read_dir()``.

    Attributes:
        name: Final path segment.
        path: Absolute path of the child (e.g. "/x/y").
        kind: Whether the child is a file or a directory.
        size: File size in bytes (0 for directories).
    """

    name: str
    path: str
    kind: EntryKind
    size: int = 0

    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE


@runtime_checkable
class File(Protocol):
    """Byte-addressable stream.

    ``read``/``readinto`` return short counts at end of data rather than
    raising; ``seek`` returns the new absolute position.
    """

    def read(self, size: int = -1) -> bytes: ...

    def readinto(self, buf: bytearray | memoryview) -> int: ...

    def write(self, buf: bytes | bytearray | memoryview) -> int: ...

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int: ...

    def position(self) -> int: ...


@runtime_checkable
class Source(Protocol):
    """Hierarchical, path-addressed storage.

    Required operations: read_dir, create_dir, remove_dir, open and
    open_mut. Implementations may add helpers (exists, remove_file, ...)
    beyond this contract.
    """

    def read_dir(self, path: PathArg) -> Iterator[DirEntry]:
        """List the direct children of a directory."""
        ...

    def create_dir(self, path: PathArg) -> None:
        """Create a directory whose parent already exists."""
        ...

    def remove_dir(self, path: PathArg) -> None:
        """Remove a directory."""
        ...

    def open(self, path: PathArg) -> File:
        """Open an existing file for reading."""
        ...

    def open_mut(self, path: PathArg) -> File:
        """Open a file for writing, creating it if absent."""
        ...
