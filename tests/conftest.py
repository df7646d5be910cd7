"""Shared pytest fixtures for s3upload tests."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

from s3upload.engine import UploadEngine
from s3upload.models import EngineConfiguration

# =============================================================================
# Storage double
# =============================================================================


class RecordingStorage:
    """StorageBackend that records calls instead of talking to S3.

    Args:
        fail_keys: Keys whose put_object raises OSError.
        delay: Seconds each put_object sleeps before returning.
    """

    def __init__(self, fail_keys: Iterable[str] = (), delay: float = 0.0) -> None:
        self.puts: list[tuple[str, str, str]] = []
        self.created: list[tuple[str, str]] = []
        self.purged: list[str] = []
        self.fail_keys = set(fail_keys)
        self.delay = delay
        self._lock = threading.Lock()

    def create_bucket(self, name: str, region: str) -> None:
        with self._lock:
            self.created.append((name, region))

    def put_object(self, bucket: str, key: str, local_path: str) -> int:
        if self.delay:
            time.sleep(self.delay)
        if key in self.fail_keys:
            raise OSError(f"simulated failure for {key}")
        size = Path(local_path).stat().st_size
        with self._lock:
            self.puts.append((bucket, key, local_path))
        return size

    def purge_bucket(self, bucket: str) -> None:
        with self._lock:
            self.purged.append(bucket)

    @property
    def keys(self) -> list[str]:
        with self._lock:
            return sorted(key for _, key, _ in self.puts)


@pytest.fixture
def storage() -> RecordingStorage:
    """A fresh RecordingStorage."""
    return RecordingStorage()


@pytest.fixture
def make_storage() -> type[RecordingStorage]:
    """The RecordingStorage class, for tests that need failing or slow storage."""
    return RecordingStorage


@pytest.fixture
def make_engine(storage: RecordingStorage) -> Callable[..., UploadEngine]:
    """Factory for engines wired to the recording storage with fast polling.

    Keyword arguments override EngineConfiguration fields; the bucket defaults
    to "test-bucket".
    """

    def _make(backend: Any = None, **overrides: Any) -> UploadEngine:
        fields: dict[str, Any] = {"bucket_name": "test-bucket", "credential_path": "unused"}
        fields.update(overrides)
        target = backend if backend is not None else storage
        return UploadEngine(
            EngineConfiguration(**fields),
            storage_factory=lambda _config: target,
            poll_timeout=0.05,
            heartbeat=0.5,
        )

    return _make


# =============================================================================
# Local trees
# =============================================================================


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create root/{a.txt, sub/b.txt}."""
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("alpha")
    (root / "sub" / "b.txt").write_text("bravo")
    return root


@pytest.fixture
def flat_files(tmp_path: Path) -> list[Path]:
    """Create five files in one directory."""
    data_dir = tmp_path / "flat"
    data_dir.mkdir()
    files = []
    for i in range(5):
        path = data_dir / f"file{i}.bin"
        path.write_bytes(b"x" * (i + 1) * 100)
        files.append(path)
    return files


@pytest.fixture
def credential_file(tmp_path: Path) -> Path:
    """A Java-properties style credential file."""
    path = tmp_path / "credentials.properties"
    path.write_text("accessKey = AKIATESTKEY\nsecretKey = testsecret\n")
    return path
