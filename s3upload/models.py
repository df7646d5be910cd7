"""Value types shared by the upload engine.

WorkItem is the unit that moves through the queue. EngineConfiguration is the
plain settings record the engine guards. UploadResult summarizes one run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any

from s3upload.constants import DEFAULT_MAX_WORKERS, DEFAULT_REGION, REGION_PATTERN
from s3upload.errors import InvalidArgumentError


@dataclass(frozen=True)
class WorkItem:
    """One file or directory waiting to be processed.

    Attributes:
        path: Local path (absolute, or resolvable from the working directory).
        prefix: Remote key prefix reflecting the item's directory position.
            Empty for items at the root of an upload.
    """

    path: str
    prefix: str = ""

    def __str__(self) -> str:
        return self.path

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"path": self.path, "prefix": self.prefix}


class EngineState(Enum):
    """Lifecycle of an UploadEngine.

    IDLE -> PREPARING -> RUNNING -> DRAINING -> IDLE
    """

    IDLE = "idle"
    PREPARING = "preparing"
    RUNNING = "running"
    DRAINING = "draining"


def is_valid_region(region: str) -> bool:
    """Return True if region looks like an AWS region name (e.g. eu-west-1)."""
    return bool(re.match(REGION_PATTERN, region))


def validate_region(region: Any) -> str:
    """Validate a region name.

    Raises:
        InvalidArgumentError: If region is not a string in AWS region format.
    """
    if not isinstance(region, str) or not is_valid_region(region):
        raise InvalidArgumentError(f"Invalid region: {region}", region=region)
    return region


def validate_max_workers(value: Any) -> int:
    """Validate a worker count.

    Accepts ints and integer strings ("8"), rejects anything below 1.

    Raises:
        InvalidArgumentError: If value is not a positive integer.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid thread count: {value}", value=value)
    try:
        count = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"Invalid thread count: {value}", value=value) from e
    if isinstance(value, float) and value != count:
        raise InvalidArgumentError(f"Invalid thread count: {value}", value=value)
    if count < 1:
        raise InvalidArgumentError(f"Thread count must be at least 1, got {count}", value=value)
    return count


@dataclass
class EngineConfiguration:
    """Settings for one upload run.

    The engine only lets these change while it is idle with no live workers.

    Attributes:
        bucket_name: Target bucket.
        destination_prefix: Key prefix prepended to every uploaded object.
        credential_path: Path to the credential file used to connect.
        region: AWS region for the session and bucket creation.
        max_workers: Workers launched per pass.
        recurse: Descend into directories found in the queue.
        pretend: Report actions without uploading or deleting anything.
        delete_after_upload: Remove local files after a successful upload.
        create_bucket_if_missing: Create the bucket while preparing.
        purge_bucket_before_upload: Purge the bucket while preparing (no-op).
    """

    bucket_name: str | None = None
    destination_prefix: str = ""
    credential_path: str | None = None
    region: str = DEFAULT_REGION
    max_workers: int = DEFAULT_MAX_WORKERS
    recurse: bool = False
    pretend: bool = False
    delete_after_upload: bool = False
    create_bucket_if_missing: bool = False
    purge_bucket_before_upload: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


CONFIGURATION_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(EngineConfiguration))


def normalize_setting(name: str, value: Any) -> Any:
    """Validate and coerce one configuration value.

    Args:
        name: EngineConfiguration field name.
        value: Proposed value.

    Returns:
        The value to store.

    Raises:
        InvalidArgumentError: If name is unknown or value is invalid for it.
    """
    if name not in CONFIGURATION_FIELDS:
        raise InvalidArgumentError(f"Unknown configuration field: {name}", field=name)
    if name == "region":
        return validate_region(value)
    if name == "max_workers":
        return validate_max_workers(value)
    if name == "destination_prefix":
        return "" if value is None else str(value)
    if name in ("bucket_name", "credential_path"):
        return None if value is None else str(value)
    return bool(value)


@dataclass
class UploadResult:
    """Result of an upload run.

    Attributes:
        success: True if no file failed.
        files_uploaded: Files processed by a put (or reported, in pretend mode).
        files_failed: Files whose put or delete raised.
        files_deleted: Local files removed after upload.
        files_skipped: Queue entries that were neither uploaded nor walked.
        walk_errors: Directory entries that could not be resolved while walking.
        total_bytes: Bytes written to the bucket.
        passes: Worker batches launched before the queue stayed empty.
        peak_workers: Highest live worker count observed.
        errors: List of (file_path, exception) tuples for failed files.
    """

    success: bool = True
    files_uploaded: int = 0
    files_failed: int = 0
    files_deleted: int = 0
    files_skipped: int = 0
    walk_errors: int = 0
    total_bytes: int = 0
    passes: int = 0
    peak_workers: int = 0
    errors: list[tuple[str, Exception]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "files_uploaded": self.files_uploaded,
            "files_failed": self.files_failed,
            "files_deleted": self.files_deleted,
            "files_skipped": self.files_skipped,
            "walk_errors": self.walk_errors,
            "total_bytes": self.total_bytes,
            "passes": self.passes,
            "peak_workers": self.peak_workers,
            "errors": [{"path": path, "message": str(err)} for path, err in self.errors],
        }
