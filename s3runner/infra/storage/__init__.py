"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    BucketAck,
    DownloadResult,
    ObjectRef,
    ObjectStream,
    StorageClient,
    StorageError,
    UploadAck,
)
from .streams import drain_chunks, drain_to_path

__all__ = [
    "BucketAck",
    "DownloadResult",
    "ObjectRef",
    "ObjectStream",
    "StorageClient",
    "StorageError",
    "UploadAck",
    "drain_chunks",
    "drain_to_path",
]
