"""Transfer worker loop.

A worker pulls items from the shared queue until a poll times out:

- files are uploaded (and optionally deleted afterwards),
- directories are walked when recursion is on, which enqueues more files,
- anything else is skipped.

A failure on one item is reported and recorded, and the worker moves on to
the next item. An empty poll ends only this worker's loop; the engine decides
whether another pass is needed.
"""

from __future__ import annotations

import logging
from typing import Protocol

from s3upload.constants import DEQUEUE_TIMEOUT_SECONDS
from s3upload.errors import TransferError
from s3upload.filesystem import FileSystem
from s3upload.models import EngineConfiguration, WorkItem
from s3upload.output import error, info
from s3upload.storage import StorageBackend, join_key
from s3upload.walker import DirectoryWalker
from s3upload.work_queue import WorkQueue

logger = logging.getLogger(__name__)


class WorkerTracker(Protocol):
    """Bookkeeping callbacks a worker reports to (implemented by the engine)."""

    def worker_started(self) -> None: ...

    def worker_finished(self) -> None: ...

    def record_upload(self, path: str, nbytes: int) -> None: ...

    def record_delete(self, path: str) -> None: ...

    def record_skip(self, path: str) -> None: ...

    def record_failure(self, path: str, err: Exception) -> None: ...


class TransferWorker:
    """One dequeue-and-process loop over the shared queue."""

    def __init__(
        self,
        config: EngineConfiguration,
        work_queue: WorkQueue,
        storage: StorageBackend,
        filesystem: FileSystem,
        walker: DirectoryWalker,
        tracker: WorkerTracker,
        *,
        poll_timeout: float = DEQUEUE_TIMEOUT_SECONDS,
    ) -> None:
        self.config = config
        self.queue = work_queue
        self.storage = storage
        self.filesystem = filesystem
        self.walker = walker
        self.tracker = tracker
        self.poll_timeout = poll_timeout

    def run(self) -> None:
        """Process items until the queue stays empty for one poll interval."""
        self.tracker.worker_started()
        try:
            while True:
                item = self.queue.dequeue(self.poll_timeout)
                if item is None:
                    break
                try:
                    self.process(item)
                except Exception as e:
                    error(f"Unexpected error processing {item.path}: {e}")
                    logger.exception("Unexpected error processing %s", item.path)
                    self.tracker.record_failure(item.path, e)
        finally:
            self.tracker.worker_finished()

    def process(self, item: WorkItem) -> None:
        """Handle a single queue item."""
        if self.filesystem.is_file(item.path):
            self.transfer(item)
        elif self.filesystem.is_dir(item.path) and self.config.recurse:
            self.walker.walk(item)
        else:
            info(f"Skipping {item.path}")
            self.tracker.record_skip(item.path)

    def transfer(self, item: WorkItem) -> None:
        """Upload one file, then delete it locally if configured.

        Errors are reported and recorded, never raised.
        """
        config = self.config
        key = join_key(
            config.destination_prefix, item.prefix, self.filesystem.basename(item.path)
        )

        info(f"Uploading {key}", pretend=config.pretend)
        try:
            nbytes = 0
            if not config.pretend:
                nbytes = self.storage.put_object(config.bucket_name or "", key, item.path)
        except Exception as e:
            self._fail(item.path, key, e)
            return
        self.tracker.record_upload(item.path, nbytes)

        if not config.delete_after_upload:
            return

        info(f"Delete local copy of {item.path}", pretend=config.pretend)
        if config.pretend:
            return
        try:
            removed = self.filesystem.delete_file(item.path)
        except Exception as e:
            self._fail(item.path, key, e)
            return
        if removed:
            self.tracker.record_delete(item.path)

    def _fail(self, path: str, key: str, cause: Exception) -> None:
        err = TransferError(path, key, cause)
        error(err.message)
        logger.debug("Transfer error for %s", path, exc_info=cause)
        self.tracker.record_failure(path, err)
