"""Expand a directory WorkItem into file WorkItems.

The walker descends a whole subtree synchronously and enqueues only files.
Each file's prefix reflects its directory position relative to the item
being walked:

    root/
      a.txt          -> WorkItem(".../root/a.txt", "")
      sub/
        b.txt        -> WorkItem(".../root/sub/b.txt", "sub")
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from s3upload.errors import InvalidArgumentError, WalkError
from s3upload.filesystem import FileSystem
from s3upload.models import WorkItem
from s3upload.output import error, info
from s3upload.storage import join_key

logger = logging.getLogger(__name__)


class DirectoryWalker:
    """Walks directories and enqueues the files it finds.

    Args:
        filesystem: Filesystem used to list and resolve entries.
        enqueue: Called with each discovered file WorkItem.
        on_error: Called with each WalkError after it is reported.
    """

    def __init__(
        self,
        filesystem: FileSystem,
        enqueue: Callable[[WorkItem], None],
        on_error: Callable[[WalkError], None] | None = None,
    ) -> None:
        self.filesystem = filesystem
        self._enqueue = enqueue
        self._on_error = on_error

    def walk(self, item: WorkItem) -> int:
        """Enqueue every file below item.path.

        Args:
            item: A directory WorkItem.

        Returns:
            Number of file items enqueued.

        Raises:
            InvalidArgumentError: If item.path is a file.
        """
        if self.filesystem.is_file(item.path):
            raise InvalidArgumentError(
                f"File supplied is not a directory: {item.path}", path=item.path
            )

        info(f"Walking directory: {item.path}")
        return self._walk_directory(item.path, item.prefix, frozenset())

    def _walk_directory(self, directory: str, prefix: str, ancestors: frozenset[str]) -> int:
        try:
            children = self.filesystem.list_children(directory)
            ancestors = ancestors | {self.filesystem.resolve(directory)}
        except OSError as e:
            self._report(WalkError(directory, e))
            return 0

        count = 0
        for child in children:
            try:
                resolved = self.filesystem.resolve(child)
            except OSError as e:
                self._report(WalkError(child, e))
                continue

            if self.filesystem.is_dir(resolved):
                if resolved in ancestors:
                    # Symlink back into a directory above this one
                    logger.debug("Skipping directory cycle at %s", child)
                    continue
                name = self.filesystem.basename(child)
                count += self._walk_directory(resolved, join_key(prefix, name), ancestors)
            else:
                self._enqueue(WorkItem(resolved, prefix))
                count += 1

        logger.debug("Walked %s: %d file(s) under prefix %r", directory, count, prefix)
        return count

    def _report(self, err: WalkError) -> None:
        error(err.message)
        logger.debug("Walk error", exc_info=err.original_exception)
        if self._on_error is not None:
            self._on_error(err)
