"""Error taxonomy for foldyfs.

All errors derive from OSError so callers already catching OSError (or
FileNotFoundError for the not-found kinds) keep working unchanged.
"""

from __future__ import annotations

import errno


class FoldyError(OSError):
    """Base class for every error raised by a foldyfs source or stream."""


class InvalidPath(FoldyError):
    """Path is malformed, escapes the root, or crosses a file mid-walk."""

    def __init__(self, path: object, reason: str = "Invalid path") -> None:
        super().__init__(errno.EINVAL, reason, str(path))


class DirectoryNotFound(FoldyError, FileNotFoundError):
    """A directory segment of the path does not exist."""

    def __init__(self, path: object) -> None:
        super().__init__(errno.ENOENT, "No such directory", str(path))


class FileNotFound(FoldyError, FileNotFoundError):
    """The terminal segment is not a file."""

    def __init__(self, path: object) -> None:
        super().__init__(errno.ENOENT, "No such file", str(path))


class DirectoryNotEmpty(FoldyError):
    def __init__(self, path: object) -> None:
        super().__init__(errno.ENOTEMPTY, "Directory not empty", str(path))


class EndOfStream(FoldyError):
    """Fewer bytes remained than an exact read asked for."""

    def __init__(self, wanted: int, available: int) -> None:
        super().__init__(
            f"Unexpected end of stream: wanted {wanted} bytes, {available} available"
        )
        self.wanted = wanted
        self.available = available


class SizeLimitExceeded(FoldyError):
    """Growing a buffer would push the source past its size limit."""

    def __init__(self, requested: int, limit: int) -> None:
        super().__init__(
            errno.EFBIG,
            f"Source size limit exceeded: {requested / 1024 / 1024:.1f}MB > "
            f"{limit / 1024 / 1024:.1f}MB",
        )
        self.requested = requested
        self.limit = limit
