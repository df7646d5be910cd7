"""FileSystem protocol for local path inspection.

The walker and workers never touch the operating system directly; they go
through a FileSystem so tests can swap in a fake tree.

Thread Safety:
    LocalFileSystem keeps no state and can be shared by all workers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for the local filesystem operations the engine needs."""

    def exists(self, path: str) -> bool:
        """Return True if path exists."""
        ...

    def is_file(self, path: str) -> bool:
        """Return True if path is a regular file."""
        ...

    def is_dir(self, path: str) -> bool:
        """Return True if path is a directory."""
        ...

    def list_children(self, path: str) -> Sequence[str]:
        """List the immediate children of a directory.

        Returns:
            Child paths, sorted by name.

        Raises:
            OSError: If the directory cannot be listed.
        """
        ...

    def resolve(self, path: str) -> str:
        """Return the canonical absolute form of path.

        Raises:
            OSError: If the path cannot be resolved.
        """
        ...

    def delete_file(self, path: str) -> bool:
        """Delete a file.

        Returns:
            True if the file was removed, False if it was already gone.

        Raises:
            OSError: If the file exists but cannot be removed.
        """
        ...

    def basename(self, path: str) -> str:
        """Return the final component of path."""
        ...


class LocalFileSystem:
    """FileSystem backed by pathlib."""

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def is_file(self, path: str) -> bool:
        return Path(path).is_file()

    def is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def list_children(self, path: str) -> list[str]:
        return sorted(str(child) for child in Path(path).iterdir())

    def resolve(self, path: str) -> str:
        return str(Path(path).resolve(strict=True))

    def delete_file(self, path: str) -> bool:
        try:
            Path(path).unlink()
        except FileNotFoundError:
            logger.debug("File already gone: %s", path)
            return False
        return True

    def basename(self, path: str) -> str:
        return Path(path).name
