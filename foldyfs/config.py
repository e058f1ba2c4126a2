"""Configuration for sources.

Provides the configuration dataclass and connect_source factory function
for configuring an in-memory source.
"""

from dataclasses import dataclass
from typing import Literal


@dataclass
class MemorySourceConfig:
    """Configuration for an in-memory source.

    Attributes:
        type: Always "memory".
        max_size_mb: Maximum total size of all file buffers in megabytes.
            None means unlimited.
        recursive_remove: Whether remove_dir deletes non-empty directories
            (default: False, which makes it fail with DirectoryNotEmpty).
    """

    type: Literal["memory"] = "memory"
    max_size_mb: int | None = None
    recursive_remove: bool = False


# Type alias for all source configs
SourceConfig = MemorySourceConfig


def connect_source(
    type: Literal["memory"] = "memory",
    **kwargs,
) -> SourceConfig:
    """Configure a source.

    Args:
        type: Source type. Only "memory" is available: a directory tree
            held in process memory, discarded with the source.
        **kwargs: Additional configuration for the source type.
            For type="memory":
                - max_size_mb (int | None): Optional size limit.
                - recursive_remove (bool): Optional, default False.

    Returns:
        SourceConfig for ``MemorySource.from_config``.

    Examples:
        >>> connect_source(type="memory")
        MemorySourceConfig(type='memory', max_size_mb=None, recursive_remove=False)

        >>> connect_source(max_size_mb=4, recursive_remove=True)
        MemorySourceConfig(type='memory', max_size_mb=4, recursive_remove=True)
    """
    if type != "memory":
        raise ValueError(f"Unsupported source type: {type}. Use 'memory'.")

    max_size_mb = kwargs.pop("max_size_mb", None)
    recursive_remove = kwargs.pop("recursive_remove", False)
    if kwargs:
        raise ValueError(f"Unexpected arguments for memory source: {list(kwargs.keys())}")

    if max_size_mb is not None and max_size_mb < 0:
        raise ValueError(f"max_size_mb must be non-negative, got {max_size_mb}")

    return MemorySourceConfig(
        type=type, max_size_mb=max_size_mb, recursive_remove=bool(recursive_remove)
    )
