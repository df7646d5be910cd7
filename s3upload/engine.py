"""Upload engine: configuration guard, worker pool and pass loop.

The engine owns one configuration, one queue and one storage session.
A run goes through these states:

    IDLE -> PREPARING -> RUNNING -> DRAINING -> IDLE
                            ^           |
                            +-----------+   another pass while the queue is non-empty

PREPARING connects (once per engine) and optionally creates or purges the
bucket. RUNNING launches exactly ``max_workers`` workers. DRAINING waits on a
condition variable until every worker of the pass has finished. Workers that
walk directories can enqueue new files after their siblings have already
given up polling, so when a pass ends with items still queued the engine
starts another pass without preparing again.

Configuration Guard:
    Every configuration field is a property whose setter only succeeds while
    the engine is idle with zero live workers. The check and the write happen
    under the same lock, so a run can never observe a half-changed
    configuration.

Basic Usage:
    from s3upload.engine import UploadEngine
    from s3upload.models import WorkItem

    engine = UploadEngine()
    engine.bucket_name = "my-bucket"
    engine.credential_path = "/home/me/.aws/credentials"
    engine.recurse = True
    engine.queue(WorkItem("/data/photos"))
    result = engine.upload()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from s3upload.constants import DEQUEUE_TIMEOUT_SECONDS, MONITOR_HEARTBEAT_SECONDS
from s3upload.errors import (
    InvalidArgumentError,
    InvalidStateError,
    StoreConnectionError,
    UploaderError,
    WalkError,
)
from s3upload.filesystem import FileSystem, LocalFileSystem
from s3upload.models import (
    CONFIGURATION_FIELDS,
    EngineConfiguration,
    EngineState,
    UploadResult,
    WorkItem,
    normalize_setting,
)
from s3upload.output import detail, info, success
from s3upload.storage import StorageBackend, connect
from s3upload.walker import DirectoryWalker
from s3upload.work_queue import WorkQueue
from s3upload.worker import TransferWorker

logger = logging.getLogger(__name__)

StorageFactory = Callable[[EngineConfiguration], StorageBackend]

# Changing these drops the storage session opened with the old values.
_SESSION_FIELDS = frozenset({"credential_path", "region"})


def _guarded_field(name: str, doc: str) -> property:
    def getter(self: UploadEngine) -> Any:
        return getattr(self._config, name)

    def setter(self: UploadEngine, value: Any) -> None:
        self.configure(**{name: value})

    return property(getter, setter, doc=doc)


class UploadEngine:
    """Concurrent uploader for a queue of local files and directories.

    Args:
        config: Initial configuration (validated). Defaults are used if None.
        storage_factory: Opens the storage session during PREPARING.
            Defaults to storage.connect.
        filesystem: Local filesystem access. Defaults to LocalFileSystem.
        poll_timeout: Seconds an idle worker waits before ending its loop.
        heartbeat: Seconds between progress lines while draining.
    """

    bucket_name = _guarded_field("bucket_name", "Target bucket.")
    destination_prefix = _guarded_field(
        "destination_prefix", "Key prefix prepended to every object."
    )
    credential_path = _guarded_field("credential_path", "Credential file used to connect.")
    region = _guarded_field("region", "Region for the session and bucket creation.")
    max_workers = _guarded_field("max_workers", "Workers launched per pass.")
    recurse = _guarded_field("recurse", "Walk directories found in the queue.")
    pretend = _guarded_field("pretend", "Report actions without performing them.")
    delete_after_upload = _guarded_field(
        "delete_after_upload", "Delete local files after a successful upload."
    )
    create_bucket_if_missing = _guarded_field(
        "create_bucket_if_missing", "Create the bucket while preparing."
    )
    purge_bucket_before_upload = _guarded_field(
        "purge_bucket_before_upload", "Purge the bucket while preparing (no-op)."
    )

    def __init__(
        self,
        config: EngineConfiguration | None = None,
        *,
        storage_factory: StorageFactory | None = None,
        filesystem: FileSystem | None = None,
        poll_timeout: float = DEQUEUE_TIMEOUT_SECONDS,
        heartbeat: float = MONITOR_HEARTBEAT_SECONDS,
    ) -> None:
        self._config = EngineConfiguration()
        if config is not None:
            for name in CONFIGURATION_FIELDS:
                setattr(self._config, name, normalize_setting(name, getattr(config, name)))

        self._queue = WorkQueue()
        self._cond = threading.Condition()
        self._state = EngineState.IDLE
        self._live_workers = 0
        self._finished_in_pass = 0
        self._storage: StorageBackend | None = None
        self._result = UploadResult()

        self._storage_factory = storage_factory or connect
        self._filesystem = filesystem or LocalFileSystem()
        self._poll_timeout = poll_timeout
        self._heartbeat = heartbeat
        self._walker = DirectoryWalker(self._filesystem, self.queue, self._record_walk_error)

    # -------------------------------------------------------------------------
    # State accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        with self._cond:
            return self._state

    @property
    def is_running(self) -> bool:
        """True from the start of PREPARING until the engine is IDLE again."""
        with self._cond:
            return self._state is not EngineState.IDLE

    @property
    def live_worker_count(self) -> int:
        with self._cond:
            return self._live_workers

    @property
    def is_connected(self) -> bool:
        with self._cond:
            return self._storage is not None

    @property
    def queue_size(self) -> int:
        return self._queue.size()

    @property
    def last_result(self) -> UploadResult:
        """Result of the current or most recent run."""
        return self._result

    def configuration(self) -> EngineConfiguration:
        """Return a copy of the current configuration."""
        with self._cond:
            return EngineConfiguration(**self._config.to_dict())

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def configure(self, **changes: Any) -> None:
        """Change one or more configuration fields at once.

        The state guard is checked first, then every value is validated, and
        only then is anything applied.

        Raises:
            InvalidStateError: If the engine is running or has live workers.
            InvalidArgumentError: If a field name or value is invalid.
        """
        with self._cond:
            for name in changes:
                self._check_mutable(name)
            normalized = {name: normalize_setting(name, value) for name, value in changes.items()}
            for name, value in normalized.items():
                if name in _SESSION_FIELDS and value != getattr(self._config, name):
                    # Next upload() reconnects with the new credentials or region
                    self._storage = None
                setattr(self._config, name, value)
        logger.debug("Configuration changed: %s", normalized)

    def _check_mutable(self, name: str) -> None:
        # Caller holds self._cond
        if self._state is not EngineState.IDLE or self._live_workers > 0:
            raise InvalidStateError(
                f"Cannot change {name} while uploading",
                field=name,
                state=self._state.value,
                live_workers=self._live_workers,
            )

    def reset_connection(self) -> None:
        """Drop the storage session; the next upload() connects again."""
        with self._cond:
            self._check_mutable("connection")
            self._storage = None

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def queue(self, item: WorkItem) -> None:
        """Add an item to the work queue. Allowed at any time."""
        info(f"{item} added to queue")
        self._queue.enqueue(item)

    enqueue = queue

    def peek(self) -> WorkItem | None:
        """Return the head of the queue without removing it."""
        return self._queue.peek()

    # -------------------------------------------------------------------------
    # Running
    # -------------------------------------------------------------------------

    def upload(self) -> UploadResult:
        """Prepare, then drain the queue with bounded parallelism.

        Blocks until the queue is empty and no workers are live.

        Returns:
            UploadResult for this run.

        Raises:
            InvalidStateError: If a run is already in progress.
            InvalidArgumentError: If no bucket is configured.
            StoreConnectionError: If the storage session cannot be opened or
                the bucket cannot be created. No worker is started.
        """
        self._begin(EngineState.PREPARING)
        try:
            self._prepare()
        except BaseException:
            self._set_state(EngineState.IDLE)
            raise
        return self._execute()

    def drain(self) -> int:
        """Run the pass loop without preparing.

        With an empty queue this returns immediately and uploads nothing.

        Returns:
            Number of passes performed.

        Raises:
            InvalidStateError: If a run is in progress, or there is queued
                work but no storage session.
        """
        if self._queue.empty():
            with self._cond:
                if self._state is not EngineState.IDLE or self._live_workers > 0:
                    raise InvalidStateError("Upload already in progress", state=self._state.value)
            return 0

        self._begin(EngineState.RUNNING)
        if not self.is_connected:
            self._set_state(EngineState.IDLE)
            raise InvalidStateError("Not connected to storage; call upload() instead")
        return self._execute().passes

    def _begin(self, state: EngineState) -> None:
        with self._cond:
            if self._state is not EngineState.IDLE or self._live_workers > 0:
                raise InvalidStateError("Upload already in progress", state=self._state.value)
            self._state = state
            self._result = UploadResult()
            self._cond.notify_all()
        logger.debug("Engine entering %s", state.value)

    def _set_state(self, state: EngineState) -> None:
        with self._cond:
            self._state = state
            self._cond.notify_all()
        logger.debug("Engine entering %s", state.value)

    def _prepare(self) -> None:
        config = self._config
        info("Preparing for uploading")
        if not config.bucket_name:
            raise InvalidArgumentError("No bucket configured")

        if self._storage is None:
            try:
                storage = self._storage_factory(config)
            except UploaderError:
                raise
            except Exception as e:
                raise StoreConnectionError(str(e), credential_path=config.credential_path) from e
            with self._cond:
                self._storage = storage

        # TODO: check that the bucket exists and is writable before starting workers
        if config.create_bucket_if_missing:
            info(f"Create bucket {config.bucket_name}", pretend=config.pretend)
            if not config.pretend:
                self._create_bucket(config.bucket_name, config.region)

        if config.purge_bucket_before_upload:
            info("Purge bucket", pretend=config.pretend)
            if not config.pretend:
                self._require_storage().purge_bucket(config.bucket_name)

    def _create_bucket(self, bucket: str, region: str) -> None:
        try:
            self._require_storage().create_bucket(bucket, region)
        except UploaderError:
            raise
        except Exception as e:
            raise StoreConnectionError(f"cannot create bucket {bucket}: {e}") from e

    def _require_storage(self) -> StorageBackend:
        storage = self._storage
        if storage is None:
            raise InvalidStateError("Not connected to storage")
        return storage

    def _execute(self) -> UploadResult:
        executor = ThreadPoolExecutor(
            max_workers=self._config.max_workers, thread_name_prefix="s3upload-worker"
        )
        try:
            passes = 0
            while not self._queue.empty():
                passes += 1
                self._run_pass(executor, passes)
        finally:
            executor.shutdown(wait=True)
            self._set_state(EngineState.IDLE)

        with self._cond:
            result = self._result
            result.passes = passes
            result.success = result.files_failed == 0
        success("Finished")
        return result

    def _run_pass(self, executor: ThreadPoolExecutor, number: int) -> None:
        launched = self._config.max_workers
        with self._cond:
            self._state = EngineState.RUNNING
            self._finished_in_pass = 0
        info(f"Pass {number}: starting {launched} worker(s), {self._queue.size()} item(s) queued")

        futures: list[Future[None]] = [
            executor.submit(self._new_worker().run) for _ in range(launched)
        ]

        with self._cond:
            self._state = EngineState.DRAINING
            while self._finished_in_pass < launched:
                if not self._cond.wait(timeout=self._heartbeat):
                    detail(f"Active worker threads: {self._live_workers}")

        for future in futures:
            future.result()
        logger.debug("Pass %d finished, %d item(s) left", number, self._queue.size())

    def _new_worker(self) -> TransferWorker:
        return TransferWorker(
            self._config,
            self._queue,
            self._require_storage(),
            self._filesystem,
            self._walker,
            self,
            poll_timeout=self._poll_timeout,
        )

    # -------------------------------------------------------------------------
    # Worker bookkeeping (called from worker threads)
    # -------------------------------------------------------------------------

    def worker_started(self) -> None:
        with self._cond:
            self._live_workers += 1
            self._result.peak_workers = max(self._result.peak_workers, self._live_workers)
            self._cond.notify_all()

    def worker_finished(self) -> None:
        with self._cond:
            self._live_workers -= 1
            self._finished_in_pass += 1
            self._cond.notify_all()

    def record_upload(self, path: str, nbytes: int) -> None:
        with self._cond:
            self._result.files_uploaded += 1
            self._result.total_bytes += nbytes

    def record_delete(self, path: str) -> None:
        with self._cond:
            self._result.files_deleted += 1

    def record_skip(self, path: str) -> None:
        with self._cond:
            self._result.files_skipped += 1

    def record_failure(self, path: str, err: Exception) -> None:
        with self._cond:
            self._result.files_failed += 1
            self._result.errors.append((path, err))

    def _record_walk_error(self, err: WalkError) -> None:
        with self._cond:
            self._result.walk_errors += 1
