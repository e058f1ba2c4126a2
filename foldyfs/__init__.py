"""foldyfs: A path-addressed virtual filesystem backed by process memory."""

from .base import DirEntry, EntryKind, File, Source
from .config import MemorySourceConfig, SourceConfig, connect_source
from .errors import (
    DirectoryNotEmpty,
    DirectoryNotFound,
    EndOfStream,
    FileNotFound,
    FoldyError,
    InvalidPath,
    SizeLimitExceeded,
)
from .lock import ReadWriteLock
from .memory import MemoryDirIter, MemorySource
from .memoryfile import MemoryFile, MemoryFileView

__all__ = [
    "connect_source",
    "DirectoryNotEmpty",
    "DirectoryNotFound",
    "DirEntry",
    "EndOfStream",
    "EntryKind",
    "File",
    "FileNotFound",
    "FoldyError",
    "InvalidPath",
    "MemoryDirIter",
    "MemoryFile",
    "MemoryFileView",
    "MemorySource",
    "MemorySourceConfig",
    "ReadWriteLock",
    "SizeLimitExceeded",
    "Source",
    "SourceConfig",
]
