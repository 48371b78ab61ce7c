"""Best-effort sequential runner for the bucket/object smoke sequence.

The runner drives one storage client through a fixed list of steps:
list buckets, delete bucket, create bucket, upload object, download object.
Each step is isolated: a StorageError is recorded on its StepResult and the
next step runs regardless. Nothing is retried or rolled back.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from s3runner.infra.observability.metrics import RunMetrics
from s3runner.infra.storage.client import (
    DownloadResult,
    ObjectRef,
    StorageClient,
    StorageError,
    UploadAck,
)
from s3runner.infra.storage.streams import drain_to_path

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "test-bucket"
DEFAULT_OBJECT_KEY = "test/test2"
DEFAULT_INPUT_PATH = Path("pyproject.toml")
DEFAULT_OUTPUT_PATH = Path("dump.txt")


@dataclass(frozen=True, slots=True)
class RunPlan:
    """Targets for one run of the sequence."""

    bucket: str = DEFAULT_BUCKET
    object_key: str = DEFAULT_OBJECT_KEY
    input_path: Path = DEFAULT_INPUT_PATH
    output_path: Path = DEFAULT_OUTPUT_PATH

    @property
    def target(self) -> ObjectRef:
        return ObjectRef(bucket=self.bucket, key=self.object_key)


@dataclass(frozen=True, slots=True)
class StepResult:
    """Outcome of a single step: a payload or an error, never both."""

    operation: str
    label: str
    value: Any = None
    error: StorageError | None = None
    duration_ms: float = 0.0

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("StepResult cannot carry both a value and an error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def render(self) -> str:
        if self.error is not None:
            return f"Error: {self.error}"
        return f"{self.label}: {self.value!r}"


class StorageRunner:
    """Runs the smoke sequence against one storage client."""

    def __init__(
        self,
        client: StorageClient,
        plan: RunPlan | None = None,
        *,
        metrics: RunMetrics | None = None,
    ) -> None:
        self._client = client
        self._plan = plan or RunPlan()
        self._metrics = metrics

    @property
    def plan(self) -> RunPlan:
        return self._plan

    def _step(
        self, operation: str, label: str, action: Callable[[], Any]
    ) -> StepResult:
        logger.debug("step_start operation=%s", operation)
        start = time.perf_counter()
        value: Any = None
        error: StorageError | None = None
        try:
            value = action()
        except StorageError as exc:
            error = exc
        elapsed = time.perf_counter() - start
        duration_ms = round(elapsed * 1000, 3)
        result = StepResult(
            operation=operation,
            label=label,
            value=value,
            error=error,
            duration_ms=duration_ms,
        )

        if self._metrics is not None:
            self._metrics.observe(operation, ok=result.ok, elapsed=elapsed)

        extra = {
            "operation": operation,
            "outcome": "success" if result.ok else "error",
            "duration_ms": duration_ms,
            "bucket": self._plan.bucket,
            "key": self._plan.object_key,
            "object": str(self._plan.target),
        }
        if result.ok:
            logger.info(
                "step operation=%s outcome=success duration_ms=%.3f",
                operation,
                duration_ms,
                extra={"extra": extra},
            )
        else:
            extra["error_code"] = result.error.code
            logger.warning(
                "step operation=%s outcome=error duration_ms=%.3f error=%s",
                operation,
                duration_ms,
                result.error,
                extra={"extra": extra},
            )
        return result

    def list_buckets(self) -> StepResult:
        return self._step("list_buckets", "Buckets", self._client.list_buckets)

    def delete_bucket(self) -> StepResult:
        return self._step(
            "delete_bucket",
            "Bucket",
            lambda: self._client.delete_bucket(bucket=self._plan.bucket),
        )

    def create_bucket(self) -> StepResult:
        return self._step(
            "create_bucket",
            "Bucket",
            lambda: self._client.create_bucket(bucket=self._plan.bucket),
        )

    def upload(self) -> StepResult:
        return self._step("upload", "Upload", self._upload)

    def download(self) -> StepResult:
        return self._step("download", "Download", self._download)

    def _upload(self) -> UploadAck:
        ack = self._client.upload_file(
            bucket=self._plan.bucket,
            object_key=self._plan.object_key,
            path=self._plan.input_path,
        )
        if self._metrics is not None:
            self._metrics.add_bytes("upload", ack.size_bytes)
        return ack

    def _download(self) -> DownloadResult:
        plan = self._plan
        stream = self._client.download(bucket=plan.bucket, object_key=plan.object_key)
        try:
            written, chunks = drain_to_path(stream.chunks, plan.output_path)
        finally:
            stream.close()

        if self._metrics is not None:
            self._metrics.add_bytes("download", written)
        return DownloadResult(
            bucket=plan.bucket,
            key=plan.object_key,
            path=plan.output_path,
            bytes_written=written,
            chunks=chunks,
            content_type=stream.content_type,
        )

    def steps(self) -> list[Callable[[], StepResult]]:
        return [
            self.list_buckets,
            self.delete_bucket,
            self.create_bucket,
            self.upload,
            self.download,
        ]

    def run(
        self, on_result: Callable[[StepResult], None] | None = None
    ) -> list[StepResult]:
        """Execute every step in order and return their results.

        ``on_result`` is invoked as each step finishes, before the next starts.
        """
        results: list[StepResult] = []
        for step in self.steps():
            result = step()
            results.append(result)
            if on_result is not None:
                on_result(result)
        return results
