"""Storage client protocol and data types.

This module defines the interface the runner drives: bucket listing,
bucket create/delete, single-shot object upload, and streamed download.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Protocol


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class ObjectRef:
    """A stored object addressed by bucket and key."""

    bucket: str
    key: str

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key}"


@dataclass(frozen=True, slots=True)
class BucketAck:
    """Acknowledgement of a bucket create or delete."""

    bucket: str
    location: str | None = None


@dataclass(frozen=True, slots=True)
class UploadAck:
    """Acknowledgement of a completed object upload."""

    bucket: str
    key: str
    size_bytes: int
    etag: str | None = None
    version_id: str | None = None


@dataclass(frozen=True, slots=True)
class ObjectStream:
    """A download response whose body is delivered as a sequence of chunks.

    The body is consumed once. Re-reading the object means issuing a new
    download request.
    """

    bucket: str
    key: str
    content_length: int | None
    content_type: str | None
    chunks: Iterator[bytes]
    close: Callable[[], None] = field(default=lambda: None, compare=False)


@dataclass(frozen=True, slots=True)
class DownloadResult:
    """Outcome of draining a download to a local file."""

    bucket: str
    key: str
    path: Path
    bytes_written: int
    chunks: int
    content_type: str | None = None


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Every method raises StorageError on failure; nothing else escapes.
    """

    def list_buckets(self) -> list[str]:
        """Return every bucket name visible to the credentials.

        An account without buckets yields an empty list.
        """
        ...

    def delete_bucket(self, *, bucket: str) -> BucketAck:
        """Delete an (empty) bucket.

        Raises:
            StorageError: If the bucket is missing, not empty, or the call fails.
        """
        ...

    def create_bucket(self, *, bucket: str) -> BucketAck:
        """Create a bucket.

        Raises:
            StorageError: If the name is invalid, already taken, or the call fails.
        """
        ...

    def upload_file(self, *, bucket: str, object_key: str, path: Path) -> UploadAck:
        """Upload the full contents of a local file as one object.

        Raises:
            StorageError: If the file cannot be opened or the backend rejects it.
        """
        ...

    def download(self, *, bucket: str, object_key: str) -> ObjectStream:
        """Open a streamed download of an object.

        Raises:
            StorageError: If the bucket or object does not exist.
        """
        ...
