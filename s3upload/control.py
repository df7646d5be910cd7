"""Control surface for inspecting and driving an UploadEngine.

ControlSurface is the one object handed to an external caller (another
thread, a CLI command, or a transport such as an RPC server). It proxies the
engine's accessors, queue operations, upload() and guarded setters, and adds
a JSON-serializable status snapshot.

Usage:
    from s3upload.control import ControlSurface

    control = ControlSurface(engine)
    control.set_bucket_name("my-bucket")
    control.queue(WorkItem("/data"))
    print(control.status_envelope().to_json())
"""

from __future__ import annotations

from typing import Any

from s3upload.engine import UploadEngine
from s3upload.json_output import OutputEnvelope, success_envelope
from s3upload.models import UploadResult, WorkItem


class ControlSurface:
    """Thin proxy over one UploadEngine."""

    def __init__(self, engine: UploadEngine) -> None:
        self._engine = engine

    # Read accessors

    def get_bucket_name(self) -> str | None:
        return self._engine.bucket_name

    def get_destination(self) -> str:
        return self._engine.destination_prefix

    def get_credential_path(self) -> str | None:
        return self._engine.credential_path

    def get_region(self) -> str:
        return self._engine.region

    def get_maximum_thread_count(self) -> int:
        return self._engine.max_workers

    def is_recurse(self) -> bool:
        return self._engine.recurse

    def is_pretend(self) -> bool:
        return self._engine.pretend

    def is_delete_after_upload(self) -> bool:
        return self._engine.delete_after_upload

    def is_create(self) -> bool:
        return self._engine.create_bucket_if_missing

    def is_purge(self) -> bool:
        return self._engine.purge_bucket_before_upload

    def is_running(self) -> bool:
        return self._engine.is_running

    def get_live_thread_count(self) -> int:
        return self._engine.live_worker_count

    def peek(self) -> WorkItem | None:
        return self._engine.peek()

    # Operations

    def queue(self, item: WorkItem) -> None:
        """Enqueue an item. The queue is unbounded, so this never blocks."""
        self._engine.queue(item)

    def upload(self) -> UploadResult:
        """Run a full upload, blocking until the engine is idle again."""
        return self._engine.upload()

    # Setters (each raises InvalidStateError while the engine is busy)

    def set_bucket_name(self, bucket_name: str) -> None:
        self._engine.bucket_name = bucket_name

    def set_destination(self, prefix: str) -> None:
        self._engine.destination_prefix = prefix

    def set_credential_path(self, credential_path: str) -> None:
        self._engine.credential_path = credential_path

    def set_region(self, region: str) -> None:
        self._engine.region = region

    def set_maximum_thread_count(self, max_threads: int) -> None:
        self._engine.max_workers = max_threads

    def set_recurse(self, recurse: bool) -> None:
        self._engine.recurse = recurse

    def set_pretend(self, pretend: bool) -> None:
        self._engine.pretend = pretend

    def set_delete_after_upload(self, delete: bool) -> None:
        self._engine.delete_after_upload = delete

    def set_create(self, create: bool) -> None:
        self._engine.create_bucket_if_missing = create

    def set_purge(self, purge: bool) -> None:
        self._engine.purge_bucket_before_upload = purge

    # Snapshots

    def status(self) -> dict[str, Any]:
        """Return engine state, configuration and queue head as plain data."""
        head = self._engine.peek()
        return {
            "state": self._engine.state.value,
            "running": self._engine.is_running,
            "live_workers": self._engine.live_worker_count,
            "queue_size": self._engine.queue_size,
            "queue_head": head.to_dict() if head is not None else None,
            "configuration": self._engine.configuration().to_dict(),
            "last_result": self._engine.last_result.to_dict(),
        }

    def status_envelope(self) -> OutputEnvelope:
        """Wrap status() in the standard JSON output envelope."""
        return success_envelope("status", self.status())
