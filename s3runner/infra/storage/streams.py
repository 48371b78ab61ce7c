"""Helpers for moving chunked response bodies to local sinks."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterable

from s3runner.infra.storage.client import StorageError


def drain_chunks(chunks: Iterable[bytes], sink: BinaryIO) -> tuple[int, int]:
    """Write every chunk, in order, to ``sink``.

    Returns a ``(bytes_written, chunk_count)`` tuple. Empty chunks are
    skipped and not counted. Errors raised by the chunk source propagate
    unchanged; the source cannot be rewound, so callers restart by fetching
    a fresh body.
    """
    written = 0
    count = 0
    for chunk in chunks:
        if not chunk:
            continue
        sink.write(chunk)
        written += len(chunk)
        count += 1
    return written, count


def drain_to_path(chunks: Iterable[bytes], path: Path) -> tuple[int, int]:
    """Drain ``chunks`` into a file at ``path``, replacing any previous content.

    A partially written file is removed when draining fails.
    """
    try:
        sink = path.open("wb")
    except OSError as exc:
        raise StorageError(f"Failed to open {path} for writing: {exc}") from exc

    try:
        with sink:
            return drain_chunks(chunks, sink)
    except (OSError, StorageError) as exc:
        path.unlink(missing_ok=True)
        if isinstance(exc, StorageError):
            raise
        raise StorageError(f"Failed to write {path}: {exc}") from exc
