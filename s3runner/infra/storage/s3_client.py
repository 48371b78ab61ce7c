"""boto3-backed StorageClient for the smoke sequence.

Covers bucket listing, bucket create/delete, single-PUT file upload and
chunked GET. Every SDK or file failure leaves as StorageError, carrying the
S3 error code when the backend supplied one.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from s3runner.infra.storage.client import (
    BucketAck,
    ObjectStream,
    StorageError,
    UploadAck,
)

if TYPE_CHECKING:
    from s3runner.common.config import Settings

# Region in which AWS rejects an explicit LocationConstraint
AWS_DEFAULT_LOCATION = "us-east-1"


def _error_code(exc: Exception) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def _storage_error(message: str, exc: Exception) -> StorageError:
    return StorageError(f"{message}: {exc}", code=_error_code(exc))


class S3StorageClient:
    """Drives one boto3 S3 client for list, create, delete, put and get.

    With ``AWS_ENDPOINT_URL`` set, requests target that endpoint path-style.
    Otherwise they go to AWS in the configured region.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Build the underlying boto3 client once; it is reused for every call.

        Args:
            settings: Credentials, region, optional endpoint override and
                download chunk size.
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @staticmethod
    def build_config(settings: "Settings") -> Config:
        """Translate settings into a botocore Config."""
        options: dict[str, Any] = {}
        if settings.addressing_style:
            options["s3"] = {"addressing_style": settings.addressing_style}
        if settings.S3_CONNECT_TIMEOUT is not None:
            options["connect_timeout"] = settings.S3_CONNECT_TIMEOUT
        if settings.S3_READ_TIMEOUT is not None:
            options["read_timeout"] = settings.S3_READ_TIMEOUT
        return Config(**options)

    @classmethod
    def _build_client(cls, settings: "Settings") -> Any:
        """Create the boto3 S3 client described by settings."""
        return boto3.client(
            "s3",
            endpoint_url=settings.AWS_ENDPOINT_URL,
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            config=cls.build_config(settings),
        )

    def list_buckets(self) -> list[str]:
        """Return all bucket names visible to the credentials."""
        try:
            response = self._client.list_buckets()
        except Exception as exc:
            raise _storage_error("Failed to list buckets", exc) from exc

        return [
            str(bucket["Name"])
            for bucket in response.get("Buckets") or []
            if bucket.get("Name")
        ]

    def delete_bucket(self, *, bucket: str) -> BucketAck:
        """Delete a bucket. The backend requires it to exist and be empty."""
        try:
            self._client.delete_bucket(Bucket=bucket)
        except Exception as exc:
            raise _storage_error(f"Failed to delete bucket {bucket}", exc) from exc
        return BucketAck(bucket=bucket)

    def create_bucket(self, *, bucket: str) -> BucketAck:
        """Create a bucket in the configured region."""
        params: dict[str, Any] = {"Bucket": bucket}
        region = self._settings.AWS_REGION
        if self._settings.AWS_ENDPOINT_URL is None and region != AWS_DEFAULT_LOCATION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            response = self._client.create_bucket(**params)
        except Exception as exc:
            raise _storage_error(f"Failed to create bucket {bucket}", exc) from exc

        return BucketAck(bucket=bucket, location=response.get("Location"))

    def upload_file(self, *, bucket: str, object_key: str, path: Path) -> UploadAck:
        """Stream a local file as the body of a single PUT."""
        try:
            fp = Path(path).open("rb")
        except OSError as exc:
            raise StorageError(f"Failed to open {path}: {exc}") from exc

        with fp:
            size = os.fstat(fp.fileno()).st_size
            try:
                response = self._client.put_object(
                    Bucket=bucket,
                    Key=object_key,
                    Body=fp,
                    ContentLength=size,
                )
            except Exception as exc:
                raise _storage_error(
                    f"Failed to upload {path} to {bucket}/{object_key}", exc
                ) from exc

        return UploadAck(
            bucket=bucket,
            key=object_key,
            size_bytes=size,
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
        )

    def download(self, *, bucket: str, object_key: str) -> ObjectStream:
        """Open a streamed download of an object."""
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _storage_error(
                f"Failed to download {bucket}/{object_key}", exc
            ) from exc

        body = response["Body"]
        length = response.get("ContentLength")
        return ObjectStream(
            bucket=bucket,
            key=object_key,
            content_length=int(length) if length is not None else None,
            content_type=response.get("ContentType"),
            chunks=self._iter_body(body, bucket=bucket, object_key=object_key),
            close=body.close,
        )

    def _iter_body(self, body: Any, *, bucket: str, object_key: str) -> Iterator[bytes]:
        chunk_size = self._settings.S3_DOWNLOAD_CHUNK_SIZE
        try:
            yield from body.iter_chunks(chunk_size=chunk_size)
        except Exception as exc:
            raise _storage_error(
                f"Failed reading body of {bucket}/{object_key}", exc
            ) from exc
        finally:
            body.close()
