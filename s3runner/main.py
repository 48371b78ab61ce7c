#!/usr/bin/env python3
"""Run the bucket/object smoke sequence against an S3-compatible endpoint.

Usage:
  python -m s3runner
  python -m s3runner --bucket demo --key data/blob --input README.md --output ./out.bin
  python -m s3runner --metrics-file /var/lib/node_exporter/s3runner.prom

Credentials come from AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY (or a .env
file in the working directory). Setting AWS_ENDPOINT_URL switches to
path-style addressing for self-hosted backends.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from s3runner.common.config import ConfigError, Settings, get_settings
from s3runner.common.logging import STARTUP_LOGGER, setup_logging
from s3runner.infra.observability.metrics import RunMetrics
from s3runner.infra.storage.s3_client import S3StorageClient
from s3runner.services.runner import (
    DEFAULT_BUCKET,
    DEFAULT_INPUT_PATH,
    DEFAULT_OBJECT_KEY,
    DEFAULT_OUTPUT_PATH,
    RunPlan,
    StepResult,
    StorageRunner,
)

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3runner",
        description="List, recreate a bucket, upload a file and download it back.",
    )
    parser.add_argument(
        "--bucket",
        default=DEFAULT_BUCKET,
        help=f"Bucket to delete, recreate and use (default: {DEFAULT_BUCKET})",
    )
    parser.add_argument(
        "--key",
        default=DEFAULT_OBJECT_KEY,
        help=f"Object key for the upload/download (default: {DEFAULT_OBJECT_KEY})",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=DEFAULT_INPUT_PATH,
        help=f"Local file to upload (default: {DEFAULT_INPUT_PATH})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_PATH,
        help=f"Where the downloaded object goes (default: ./{DEFAULT_OUTPUT_PATH})",
    )
    parser.add_argument(
        "--metrics-file",
        default=None,
        help="Write Prometheus textfile metrics here (overrides METRICS_TEXTFILE)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    return parser


def _print_result(result: StepResult) -> None:
    print(result.render(), flush=True)


def run(
    settings: Settings, plan: RunPlan, *, metrics_file: str | None = None
) -> list[StepResult]:
    startup = logging.getLogger(STARTUP_LOGGER)
    startup.info("s3runner starting %s", settings.describe())

    metrics = RunMetrics()
    client = S3StorageClient(settings=settings)
    runner = StorageRunner(client, plan, metrics=metrics)
    results = runner.run(on_result=_print_result)

    failed = [r.operation for r in results if not r.ok]
    startup.info(
        "s3runner finished steps=%d failed=%d%s",
        len(results),
        len(failed),
        f" ({', '.join(failed)})" if failed else "",
    )

    target = metrics_file or settings.METRICS_TEXTFILE
    if target:
        try:
            written = metrics.write_textfile(target)
        except OSError as exc:
            startup.warning("metrics not written to %s: %s", target, exc)
        else:
            startup.info("metrics written to %s", written)
    return results


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(
        level="DEBUG" if args.verbose else settings.LOG_LEVEL,
        fmt=settings.LOG_FORMAT,
    )
    plan = RunPlan(
        bucket=args.bucket,
        object_key=args.key,
        input_path=args.input,
        output_path=args.output,
    )
    run(settings, plan, metrics_file=args.metrics_file)
    # Individual step failures are reported, not escalated.
    return 0


if __name__ == "__main__":
    sys.exit(main())
