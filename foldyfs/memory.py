"""In-memory source implementation.

The tree is a nest of owned dicts: every DirNode maps segment names to
child nodes, every FileNode owns one MemoryFile. Nothing points back up
the tree, so dropping a subtree is just deleting its dict entry.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import TYPE_CHECKING

from .base import DirEntry, EntryKind, PathArg
from .errors import DirectoryNotEmpty, DirectoryNotFound, FileNotFound, InvalidPath
from .memoryfile import MemoryFile, MemoryFileView, SizeQuota

if TYPE_CHECKING:
    from .config import MemorySourceConfig

logger = logging.getLogger(__name__)


class FileNode:
    __slots__ = ("file",)

    def __init__(self, file: MemoryFile) -> None:
        self.file = file


class DirNode:
    __slots__ = ("children",)

    def __init__(self) -> None:
        self.children: dict[str, MemoryEntry] = {}


MemoryEntry = FileNode | DirNode


def split_path(path: PathArg) -> list[str]:
    """Split a path into segments.

    A single leading "/" is stripped and empty segments are dropped, so
    "/a//b" and "a/b" give the same result. "." and ".." are rejected
    rather than normalized.

    Raises:
        InvalidPath: If the path is empty, not a str/PathLike, or contains
            "." / ".." segments or NUL bytes.
    """
    try:
        raw = os.fspath(path)
    except TypeError:
        raise InvalidPath(path, "Path must be str or os.PathLike") from None
    if not isinstance(raw, str):
        raise InvalidPath(path, "Path must be str or os.PathLike")
    if not raw:
        raise InvalidPath(path, "Empty path")
    if "\x00" in raw:
        raise InvalidPath(path, "Embedded null byte")

    if raw.startswith("/"):
        raw = raw[1:]
    segments = [segment for segment in raw.split("/") if segment]
    for segment in segments:
        if segment in (".", ".."):
            raise InvalidPath(path, f"Relative segment '{segment}' not allowed")
    return segments


def join_path(segments: list[str]) -> str:
    return "/" + "/".join(segments)


def _snapshot(node: MemoryEntry) -> tuple[EntryKind, int]:
    if isinstance(node, DirNode):
        return EntryKind.DIRECTORY, 0
    return EntryKind.FILE, len(node.file)


class MemoryDirIter:
    """Iterator over one directory's direct children.

    Names, kinds and sizes are captured when the iterator is created;
    later changes to the source are not reflected. DirEntry objects are
    built as the iterator advances. Iterating a second time yields nothing.
    """

    def __init__(self, path: str, children: list[tuple[str, EntryKind, int]]) -> None:
        self._base = path.rstrip("/")
        self._children = children
        self._index = 0

    def __iter__(self) -> "MemoryDirIter":
        return self

    def __next__(self) -> DirEntry:
        if self._index >= len(self._children):
            raise StopIteration
        name, kind, size = self._children[self._index]
        self._index += 1
        return DirEntry(name=name, path=f"{self._base}/{name}", kind=kind, size=size)

    def __len__(self) -> int:
        """Total number of children, independent of progress."""
        return len(self._children)

    def __length_hint__(self) -> int:
        return len(self._children) - self._index


class MemorySource:
    """Directory tree held entirely in memory.

    Implements the ``Source`` protocol. Paths are absolute or relative to
    the root (there is no working directory); segments are consumed
    strictly in order with no "."/".." handling.

    Structural changes and path resolution are serialized by one tree
    lock. File contents are guarded per file, so streams on different
    files never contend.

    Example:
        >>> source = MemorySource()
        >>> source.create_dir("/x")
        >>> f = source.open_mut("/x/data.bin")
        >>> f.write(b"abc")
        3
        >>> source.open("/x/data.bin").read()
        b'abc'
        >>> [entry.name for entry in source.read_dir("/x")]
        ['data.bin']
    """

    def __init__(
        self,
        max_size_mb: int | None = None,
        recursive_remove: bool = False,
    ) -> None:
        """Create an empty source.

        Args:
            max_size_mb: Maximum total size of all file buffers in megabytes.
                None means unlimited.
            recursive_remove: If True, ``remove_dir`` deletes non-empty
                directories with everything beneath them. Otherwise it
                raises DirectoryNotEmpty.
        """
        self._root = DirNode()
        self._lock = threading.RLock()
        self._quota = SizeQuota(
            max_size_mb * 1024 * 1024 if max_size_mb is not None else None
        )
        self.recursive_remove = recursive_remove

    @classmethod
    def from_config(cls, config: MemorySourceConfig) -> MemorySource:
        return cls(
            max_size_mb=config.max_size_mb,
            recursive_remove=config.recursive_remove,
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def _walk(self, path: PathArg, segments: list[str]) -> DirNode:
        """Follow ``segments`` from the root, each of which must be a directory."""
        node = self._root
        for segment in segments:
            child = node.children.get(segment)
            if child is None:
                raise DirectoryNotFound(path)
            if not isinstance(child, DirNode):
                raise InvalidPath(path, "Not a directory")
            node = child
        return node

    def _lookup(self, path: PathArg) -> MemoryEntry | None:
        try:
            segments = split_path(path)
        except InvalidPath:
            return None
        node: MemoryEntry = self._root
        with self._lock:
            for segment in segments:
                if not isinstance(node, DirNode):
                    return None
                child = node.children.get(segment)
                if child is None:
                    return None
                node = child
        return node

    # -------------------------------------------------------------------------
    # Source protocol
    # -------------------------------------------------------------------------

    def create_dir(self, path: PathArg) -> None:
        """Create a directory. Succeeds quietly if it already exists.

        Raises:
            DirectoryNotFound: If a parent directory is missing.
            InvalidPath: If the path or one of its parents is a file.
        """
        segments = split_path(path)
        if not segments:
            return
        with self._lock:
            parent = self._walk(path, segments[:-1])
            name = segments[-1]
            existing = parent.children.get(name)
            if existing is None:
                parent.children[name] = DirNode()
                logger.debug("Created directory %s", join_path(segments))
            elif isinstance(existing, FileNode):
                raise InvalidPath(path, "File exists where a directory was expected")

    def create_dir_all(self, path: PathArg) -> None:
        """Create a directory and any missing parents.

        Raises:
            InvalidPath: If any segment is an existing file.
        """
        segments = split_path(path)
        with self._lock:
            node = self._root
            for depth, segment in enumerate(segments, start=1):
                child = node.children.get(segment)
                if child is None:
                    child = DirNode()
                    node.children[segment] = child
                    logger.debug("Created directory %s", join_path(segments[:depth]))
                elif not isinstance(child, DirNode):
                    raise InvalidPath(path, "Not a directory")
                node = child

    def remove_dir(self, path: PathArg) -> None:
        """Remove a directory.

        Non-empty directories are removed only when the source was built
        with ``recursive_remove=True``.

        Raises:
            DirectoryNotFound: If the directory (or a parent) is missing.
            DirectoryNotEmpty: If the directory has children and recursive
                removal is off.
            InvalidPath: If the path is a file or the root.
        """
        segments = split_path(path)
        if not segments:
            raise InvalidPath(path, "Cannot remove the root directory")
        with self._lock:
            parent = self._walk(path, segments[:-1])
            name = segments[-1]
            node = parent.children.get(name)
            if node is None:
                raise DirectoryNotFound(path)
            if not isinstance(node, DirNode):
                raise InvalidPath(path, "Not a directory")
            if node.children:
                if not self.recursive_remove:
                    raise DirectoryNotEmpty(path)
                removed = self._release_subtree(node)
                logger.debug(
                    "Recursively removing %s (%d files)", join_path(segments), removed
                )
            del parent.children[name]
            logger.debug("Removed directory %s", join_path(segments))

    def open(self, path: PathArg) -> MemoryFileView:
        """Open an existing file for reading.

        Returns:
            A read-only view with its own cursor at offset 0.

        Raises:
            FileNotFound: If the file is missing or the path is a directory.
            DirectoryNotFound: If a parent directory is missing.
            InvalidPath: If a parent segment is a file.
        """
        segments = split_path(path)
        if not segments:
            raise FileNotFound(path)
        with self._lock:
            parent = self._walk(path, segments[:-1])
            node = parent.children.get(segments[-1])
            if not isinstance(node, FileNode):
                raise FileNotFound(path)
            return MemoryFileView(node.file)

    def open_mut(self, path: PathArg) -> MemoryFile:
        """Open a file for writing, creating an empty one if absent.

        Returns:
            The stored MemoryFile itself; its cursor carries over between
            calls, and a handle closed earlier is reopened.

        Raises:
            DirectoryNotFound: If a parent directory is missing.
            InvalidPath: If a parent segment is a file, or the path itself
                is a directory.
        """
        segments = split_path(path)
        if not segments:
            raise InvalidPath(path, "Is a directory")
        with self._lock:
            parent = self._walk(path, segments[:-1])
            name = segments[-1]
            node = parent.children.get(name)
            if node is None:
                node = FileNode(MemoryFile(name=join_path(segments), quota=self._quota))
                parent.children[name] = node
                logger.debug("Created file %s", join_path(segments))
            elif isinstance(node, DirNode):
                raise InvalidPath(path, "Is a directory")
            else:
                node.file._reopen()
            return node.file

    def read_dir(self, path: PathArg) -> MemoryDirIter:
        """List the direct children of a directory, sorted by name.

        Raises:
            DirectoryNotFound: If the directory (or a parent) is missing.
            InvalidPath: If the path or a parent segment is a file.
        """
        segments = split_path(path)
        with self._lock:
            node = self._walk(path, segments)
            children = [
                (name, *_snapshot(child))
                for name, child in sorted(node.children.items())
            ]
        return MemoryDirIter(join_path(segments), children)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def remove_file(self, path: PathArg) -> None:
        """Remove a file.

        Raises:
            FileNotFound: If the file is missing.
            DirectoryNotFound: If a parent directory is missing.
            InvalidPath: If the path is a directory or a parent is a file.
        """
        segments = split_path(path)
        if not segments:
            raise InvalidPath(path, "Is a directory")
        with self._lock:
            parent = self._walk(path, segments[:-1])
            name = segments[-1]
            node = parent.children.get(name)
            if node is None:
                raise FileNotFound(path)
            if isinstance(node, DirNode):
                raise InvalidPath(path, "Is a directory")
            node.file._detach()
            del parent.children[name]
            logger.debug("Removed file %s", join_path(segments))

    def exists(self, path: PathArg) -> bool:
        return self._lookup(path) is not None

    def is_file(self, path: PathArg) -> bool:
        return isinstance(self._lookup(path), FileNode)

    def is_dir(self, path: PathArg) -> bool:
        return isinstance(self._lookup(path), DirNode)

    def total_size(self) -> int:
        """Total bytes held by all file buffers."""
        return self._quota.used

    def _release_subtree(self, root: DirNode) -> int:
        count = 0
        stack: list[DirNode] = [root]
        while stack:
            node = stack.pop()
            for child in node.children.values():
                if isinstance(child, DirNode):
                    stack.append(child)
                else:
                    child.file._detach()
                    count += 1
        return count
