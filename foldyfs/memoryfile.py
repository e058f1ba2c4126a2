"""Growable in-memory byte streams.

MemoryFile is the stream stored in the tree: a bytearray plus a cursor,
with read/write/seek semantics. MemoryFileView is the read-only handle
returned by ``MemorySource.open()``; it keeps its own cursor and never
changes the underlying data.
"""

from __future__ import annotations

import io
import os
import threading

from .errors import EndOfStream, SizeLimitExceeded
from .lock import ReadWriteLock


class SizeQuota:
    """Shared byte budget for every buffer in one source."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes
        self._used = 0
        self._lock = threading.Lock()

    @property
    def used(self) -> int:
        return self._used

    def reserve(self, nbytes: int) -> None:
        """Charge ``nbytes`` against the budget.

        Raises:
            SizeLimitExceeded: If the budget would be exceeded. Nothing is
                charged in that case.
        """
        with self._lock:
            new_total = self._used + nbytes
            if self.max_bytes is not None and new_total > self.max_bytes:
                raise SizeLimitExceeded(new_total, self.max_bytes)
            self._used = new_total

    def release(self, nbytes: int) -> None:
        with self._lock:
            self._used = max(self._used - nbytes, 0)


def _byte_view(buf: object) -> memoryview:
    if isinstance(buf, str):
        raise TypeError(f"Expected bytes-like object, got {type(buf).__name__}")
    view = memoryview(buf)  # type: ignore[arg-type]
    return view if view.format == "B" else view.cast("B")


def _seek_target(offset: int, whence: int, current: int, length: int) -> int:
    """Compute an absolute position; relative targets clamp at zero."""
    if whence == os.SEEK_SET:
        if offset < 0:
            raise ValueError(f"Negative seek position {offset}")
        return offset
    if whence == os.SEEK_CUR:
        return max(current + offset, 0)
    if whence == os.SEEK_END:
        return max(length + offset, 0)
    raise ValueError(f"Invalid whence ({whence}, should be 0, 1 or 2)")


class MemoryFile:
    """Byte stream over a growable buffer.

    ``data`` holds the file contents and its length is the file size.
    ``stream_offset`` is the cursor and never exceeds ``len(data)``.

    When a write needs room past the end, the buffer grows to
    ``max(needed, len(data) * 2)``, zero-filled, so repeated small appends
    stay amortized. Seeking past the end grows the buffer to exactly the
    target position. The buffer only shrinks through ``truncate()``.

    Every call takes the file's ReadWriteLock: cursor operations take the
    write side, positional reads (``read_at``, ``getvalue``) the read side.

    After ``close()`` (or leaving a ``with`` block) cursor operations raise
    ValueError. Files removed from their source are closed permanently.

    Example:
        >>> f = MemoryFile()
        >>> f.write(b"hello")
        5
        >>> f.seek(0)
        0
        >>> f.read(5)
        b'hello'
    """

    def __init__(
        self,
        data: bytes | bytearray = b"",
        *,
        name: str = "",
        quota: SizeQuota | None = None,
    ) -> None:
        self._quota = quota
        if quota is not None and data:
            quota.reserve(len(data))
        self.data = bytearray(data)
        self.stream_offset = 0
        self.name = name
        self._lock = ReadWriteLock()
        self._closed = False
        self._detached = False

    # -------------------------------------------------------------------------
    # Growth
    # -------------------------------------------------------------------------

    def _grow(self, new_length: int) -> None:
        extra = new_length - len(self.data)
        if extra <= 0:
            return
        if self._quota is not None:
            self._quota.reserve(extra)
        try:
            self.data.extend(bytes(extra))
        except MemoryError:
            if self._quota is not None:
                self._quota.release(extra)
            raise

    # -------------------------------------------------------------------------
    # Stream operations
    # -------------------------------------------------------------------------

    def readinto(self, buf: bytearray | memoryview) -> int:
        """Copy bytes at the cursor into ``buf``.

        Returns:
            Number of bytes copied; 0 once the cursor is at end of data.
        """
        view = _byte_view(buf)
        with self._lock.write_locked():
            self._check_open()
            start = self.stream_offset
            count = min(len(view), max(len(self.data) - start, 0))
            view[:count] = self.data[start : start + count]
            self.stream_offset = start + count
        return count

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all remaining bytes if negative)."""
        with self._lock.write_locked():
            self._check_open()
            start = self.stream_offset
            available = max(len(self.data) - start, 0)
            count = available if size is None or size < 0 else min(size, available)
            chunk = bytes(self.data[start : start + count])
            self.stream_offset = start + count
        return chunk

    def read_exact(self, size: int) -> bytes:
        """Read exactly ``size`` bytes.

        Raises:
            EndOfStream: If fewer bytes remain. The cursor does not move.
        """
        if size < 0:
            raise ValueError(f"Negative read size {size}")
        with self._lock.write_locked():
            self._check_open()
            start = self.stream_offset
            available = max(len(self.data) - start, 0)
            if size > available:
                raise EndOfStream(size, available)
            chunk = bytes(self.data[start : start + size])
            self.stream_offset = start + size
        return chunk

    def write(self, buf: bytes | bytearray | memoryview) -> int:
        """Write all of ``buf`` at the cursor, growing the buffer if needed.

        Returns:
            ``len(buf)``.

        Raises:
            TypeError: If ``buf`` is a str.
            SizeLimitExceeded: If growth would exceed the source's size limit.
        """
        view = _byte_view(buf)
        count = len(view)
        with self._lock.write_locked():
            self._check_open()
            start = self.stream_offset
            end = start + count
            if end > len(self.data):
                self._grow(max(end, len(self.data) * 2))
            self.data[start:end] = view
            self.stream_offset = end
        return count

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the cursor; targets past the end extend the data.

        Returns:
            The new cursor position.
        """
        with self._lock.write_locked():
            self._check_open()
            target = _seek_target(offset, whence, self.stream_offset, len(self.data))
            if target > len(self.data):
                self._grow(target)
            self.stream_offset = target
        return target

    def position(self) -> int:
        self._check_open()
        return self.stream_offset

    def tell(self) -> int:
        self._check_open()
        return self.stream_offset

    def truncate(self, size: int | None = None) -> int:
        """Shrink data to ``size`` bytes (default: the cursor).

        Larger sizes leave the data unchanged. The cursor is clamped to
        the new length.
        """
        with self._lock.write_locked():
            self._check_open()
            if size is None:
                size = self.stream_offset
            if size < 0:
                raise ValueError(f"Negative size value {size}")
            removed = len(self.data) - size
            if removed > 0:
                del self.data[size:]
                if self._quota is not None:
                    self._quota.release(removed)
            self.stream_offset = min(self.stream_offset, len(self.data))
            return len(self.data)

    def flush(self) -> None:
        """No-op; writes land in memory immediately."""

    # -------------------------------------------------------------------------
    # Shared-lock access
    # -------------------------------------------------------------------------

    def read_at(self, offset: int, size: int = -1) -> bytes:
        """Read without touching the cursor."""
        if offset < 0:
            raise ValueError(f"Negative offset {offset}")
        with self._lock.read_locked():
            if size is None or size < 0:
                return bytes(self.data[offset:])
            return bytes(self.data[offset : offset + size])

    def getvalue(self) -> bytes:
        with self._lock.read_locked():
            return bytes(self.data)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def size(self) -> int:
        return len(self.data)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError(f"I/O operation on closed file: {self.name}")

    def close(self) -> None:
        """Close this handle. ``MemorySource.open_mut`` reopens it."""
        with self._lock.write_locked():
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _reopen(self) -> None:
        with self._lock.write_locked():
            if not self._detached:
                self._closed = False

    def _detach(self) -> None:
        """Close for good once the file leaves the tree and return its bytes.

        A detached file can no longer grow, so every byte of live data stays
        charged to the quota.
        """
        with self._lock.write_locked():
            if self._quota is not None:
                self._quota.release(len(self.data))
                self._quota = None
            self._closed = True
            self._detached = True

    def __enter__(self) -> "MemoryFile":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"MemoryFile(name={self.name!r}, size={len(self.data)}, "
            f"position={self.stream_offset})"
        )


class MemoryFileView:
    """Read-only handle onto a MemoryFile.

    Holds its own cursor starting at 0, so several views can read the same
    file independently. Reads take the file's shared lock. Seeking past the
    end stops at the end, since a view never extends the data.
    """

    def __init__(self, file: MemoryFile) -> None:
        self._file = file
        self._offset = 0
        self._closed = False

    @property
    def name(self) -> str:
        return self._file.name

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError(f"I/O operation on closed file: {self.name}")

    def readinto(self, buf: bytearray | memoryview) -> int:
        self._check_open()
        view = _byte_view(buf)
        chunk = self._file.read_at(self._offset, len(view))
        count = len(chunk)
        view[:count] = chunk
        self._offset += count
        return count

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        chunk = self._file.read_at(self._offset, size)
        self._offset += len(chunk)
        return chunk

    def read_exact(self, size: int) -> bytes:
        self._check_open()
        if size < 0:
            raise ValueError(f"Negative read size {size}")
        chunk = self._file.read_at(self._offset, size)
        if len(chunk) < size:
            raise EndOfStream(size, len(chunk))
        self._offset += size
        return chunk

    def write(self, buf: bytes | bytearray | memoryview) -> int:
        raise io.UnsupportedOperation("write")

    def truncate(self, size: int | None = None) -> int:
        raise io.UnsupportedOperation("truncate")

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._check_open()
        length = len(self._file)
        target = _seek_target(offset, whence, self._offset, length)
        self._offset = min(target, length)
        return self._offset

    def position(self) -> int:
        return self._offset

    def tell(self) -> int:
        return self._offset

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def __len__(self) -> int:
        return len(self._file)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "MemoryFileView":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
