"""Storage backends for uploading objects to S3.

The engine talks to storage only through the StorageBackend protocol:

- create_bucket(name, region)
- put_object(bucket, key, local_path)
- purge_bucket(bucket)

S3StorageBackend is the production implementation. Object uploads go through
obstore (one S3Store per bucket); bucket creation goes through boto3, since
obstore has no bucket management API.

Credential File:
    connect() reads the credential file named by the configuration. Both the
    Java-properties layout and the AWS CLI INI layout are accepted:

        accessKey = AKIA...
        secretKey = ...

        [default]
        aws_access_key_id = AKIA...
        aws_secret_access_key = ...
        endpoint = http://minio.local:9000   # optional, S3-compatible stores

    The session region always comes from the engine configuration; a region
    key in the file is ignored.

Basic Usage:
    from s3upload.storage import connect, join_key

    backend = connect(config)
    backend.put_object("my-bucket", join_key("backups", "2015", "a.txt"), "/data/a.txt")
"""

from __future__ import annotations

import configparser
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import boto3
import obstore as obs
from obstore.store import (
    AzureStore,
    GCSStore,
    HTTPStore,
    LocalStore,
    MemoryStore,
    S3Store,
)

from s3upload.constants import KEY_SEPARATOR
from s3upload.errors import StoreConnectionError
from s3upload.output import detail

if TYPE_CHECKING:
    from s3upload.models import EngineConfiguration

logger = logging.getLogger(__name__)

# Type alias for all object stores obstore can hand us
ObjectStore = S3Store | GCSStore | AzureStore | HTTPStore | LocalStore | MemoryStore

_ACCESS_KEY_NAMES = ("accesskey", "aws_access_key_id")
_SECRET_KEY_NAMES = ("secretkey", "aws_secret_access_key")

# =============================================================================
# Key Building
# =============================================================================


def join_key(*segments: str | None) -> str:
    """Join key segments with '/', skipping empty ones.

    Each segment is split on '/' and empty parts are dropped, so the result
    never starts or ends with '/' and never contains '//'.

    Examples:
        join_key("", "", "a.txt") -> "a.txt"
        join_key("backups", "sub", "b.txt") -> "backups/sub/b.txt"
        join_key("backups/", None, "c.txt") -> "backups/c.txt"
        join_key("backups//2015", "d.txt") -> "backups/2015/d.txt"
    """
    parts = [p for s in segments if s for p in s.split(KEY_SEPARATOR) if p]
    return KEY_SEPARATOR.join(parts)


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for the object store operations the engine needs.

    Implementations are shared by every worker of a run and must be safe to
    call from several threads at once.
    """

    def create_bucket(self, name: str, region: str) -> None:
        """Create a bucket, succeeding quietly if it already exists."""
        ...

    def put_object(self, bucket: str, key: str, local_path: str) -> int:
        """Upload a local file to bucket/key.

        Returns:
            Number of bytes uploaded.
        """
        ...

    def purge_bucket(self, bucket: str) -> None:
        """Remove existing objects from a bucket."""
        ...


# =============================================================================
# Credential Loading
# =============================================================================


@dataclass(frozen=True)
class Credentials:
    """Keys read from a credential file.

    Attributes:
        access_key_id: AWS access key.
        secret_access_key: AWS secret key.
        endpoint: Custom S3-compatible endpoint URL, if any.
    """

    access_key_id: str
    secret_access_key: str
    endpoint: str | None = None

    def __repr__(self) -> str:
        return f"Credentials(access_key_id={self.access_key_id!r}, secret_access_key='***')"


def _first_option(section: configparser.SectionProxy, names: tuple[str, ...]) -> str | None:
    for name in names:
        value = section.get(name)
        if value:
            return value.strip()
    return None


def load_credentials(credential_path: str | None) -> Credentials:
    """Load credentials from a properties or INI credential file.

    Args:
        credential_path: Path to the credential file.

    Returns:
        Credentials found in the file.

    Raises:
        StoreConnectionError: If the file is missing, unreadable, malformed,
            or lacks an access key or secret key.
    """
    if not credential_path:
        raise StoreConnectionError("no credential file configured")

    path = Path(credential_path)
    try:
        content = path.read_text()
    except OSError as e:
        raise StoreConnectionError(
            f"cannot read credential file: {e}", credential_path=credential_path
        ) from e

    parser = configparser.ConfigParser()
    try:
        if not any(line.lstrip().startswith("[") for line in content.splitlines()):
            # Properties layout has no section header
            parser.read_string("[default]\n" + content)
        else:
            parser.read_string(content)
    except configparser.Error as e:
        raise StoreConnectionError(
            f"malformed credential file: {e}", credential_path=credential_path
        ) from e

    if "default" in parser.sections():
        section = parser["default"]
    elif parser.sections():
        section = parser[parser.sections()[0]]
    else:
        section = parser["DEFAULT"]

    access_key = _first_option(section, _ACCESS_KEY_NAMES)
    secret_key = _first_option(section, _SECRET_KEY_NAMES)
    if not (access_key and secret_key):
        raise StoreConnectionError(
            "credential file must define accessKey and secretKey "
            "(or aws_access_key_id and aws_secret_access_key)",
            credential_path=credential_path,
        )

    return Credentials(
        access_key_id=access_key,
        secret_access_key=secret_key,
        endpoint=section.get("endpoint"),
    )


# =============================================================================
# S3 Backend
# =============================================================================


class S3StorageBackend:
    """StorageBackend for S3 and S3-compatible stores.

    Stores are created lazily, one per bucket, and cached for the lifetime of
    the backend.
    """

    def __init__(
        self,
        credentials: Credentials,
        region: str,
        *,
        store_factory: Callable[[str], ObjectStore] | None = None,
        chunk_concurrency: int = 12,
    ) -> None:
        """Create a backend.

        Args:
            credentials: Keys used for every request.
            region: Region for the S3 session.
            store_factory: Builds the obstore store for a bucket name.
                Defaults to an S3Store using credentials and region.
            chunk_concurrency: Max concurrent chunks per file passed to obs.put.
        """
        self.credentials = credentials
        self.region = region
        self.chunk_concurrency = chunk_concurrency
        self._store_factory = store_factory or self._make_s3_store
        self._stores: dict[str, ObjectStore] = {}
        self._stores_lock = threading.Lock()
        self._client: Any = None

    def _make_s3_store(self, bucket: str) -> ObjectStore:
        store_kwargs: dict[str, str] = {
            "region": self.region,
            "access_key_id": self.credentials.access_key_id,
            "secret_access_key": self.credentials.secret_access_key,
        }
        if self.credentials.endpoint:
            store_kwargs["endpoint"] = self.credentials.endpoint
        return S3Store(bucket, **store_kwargs)  # type: ignore[arg-type]

    def _store_for(self, bucket: str) -> ObjectStore:
        with self._stores_lock:
            store = self._stores.get(bucket)
            if store is None:
                logger.debug("Creating object store for bucket %s", bucket)
                store = self._store_factory(bucket)
                self._stores[bucket] = store
            return store

    def _s3_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.credentials.access_key_id,
                aws_secret_access_key=self.credentials.secret_access_key,
                endpoint_url=self.credentials.endpoint,
            )
        return self._client

    def create_bucket(self, name: str, region: str) -> None:
        client = self._s3_client()
        kwargs: dict[str, Any] = {"Bucket": name}
        # us-east-1 is the one region S3 rejects as a LocationConstraint
        if region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            client.create_bucket(**kwargs)
        except client.exceptions.BucketAlreadyOwnedByYou:
            logger.debug("Bucket %s already exists", name)

    def put_object(self, bucket: str, key: str, local_path: str) -> int:
        source = Path(local_path)
        file_size = source.stat().st_size
        size_mb = file_size / (1024 * 1024)
        start_time = time.time()

        obs.put(self._store_for(bucket), key, source, max_concurrency=self.chunk_concurrency)

        elapsed = time.time() - start_time
        speed_mbps = size_mb / elapsed if elapsed > 0 else 0
        detail(f"{key} ({size_mb:.2f} MB, {speed_mbps:.2f} MB/s)")
        return file_size

    def purge_bucket(self, bucket: str) -> None:
        # TODO: define purge semantics (all objects, or only under the destination prefix)
        logger.debug("Purge requested for %s; purge is not implemented", bucket)


def connect(config: EngineConfiguration) -> S3StorageBackend:
    """Open a storage session for a configuration.

    Args:
        config: Configuration naming the credential file and region.

    Returns:
        An S3StorageBackend ready for use.

    Raises:
        StoreConnectionError: If the credentials are unusable.
    """
    credentials = load_credentials(config.credential_path)
    logger.debug(
        "Connecting to S3 in %s%s",
        config.region,
        f" via {credentials.endpoint}" if credentials.endpoint else "",
    )
    return S3StorageBackend(credentials, config.region)
