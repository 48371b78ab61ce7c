"""Tests for the s3runner command-line entry point."""

from __future__ import annotations

from unittest.mock import patch

from s3runner import main as cli
from s3runner.infra.storage.s3_client import S3StorageClient
from tests.services.mock_storage import MockStorageClient


def test_missing_credentials_abort_before_any_client_is_built(capsys):
    with patch.object(S3StorageClient, "_build_client") as build:
        exit_code = cli.main([])

    assert exit_code == cli.EXIT_CONFIG_ERROR
    build.assert_not_called()
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "AWS_ACCESS_KEY_ID must be set" in captured.err


def test_malformed_endpoint_aborts(credentials, monkeypatch, capsys):
    monkeypatch.setenv("AWS_ENDPOINT_URL", "minio:9000")

    with patch.object(S3StorageClient, "_build_client") as build:
        exit_code = cli.main([])

    assert exit_code == cli.EXIT_CONFIG_ERROR
    build.assert_not_called()
    assert "AWS_ENDPOINT_URL" in capsys.readouterr().err


def test_malformed_region_aborts_before_client_is_built(
    credentials, monkeypatch, capsys
):
    monkeypatch.setenv("AWS_REGION", "us west 2")

    with patch("s3runner.infra.storage.s3_client.boto3.client") as factory:
        exit_code = cli.main([])

    assert exit_code == cli.EXIT_CONFIG_ERROR
    factory.assert_not_called()
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "AWS_REGION='us west 2' is invalid" in captured.err


def test_full_run_prints_each_step_and_exits_zero(
    credentials, isolated_env, capsys
):
    source = isolated_env / "pyproject.toml"
    source.write_bytes(b"[project]\nname = 'x'\n")
    storage = MockStorageClient(chunk_size=3)

    with patch.object(cli, "S3StorageClient", return_value=storage):
        exit_code = cli.main(["--metrics-file", "metrics/run.prom"])

    assert exit_code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "Buckets: []"
    assert lines[1].startswith("Error: Failed to delete bucket test-bucket")
    assert lines[2].startswith("Bucket: ")
    assert lines[3].startswith("Upload: ")
    assert lines[4].startswith("Download: ")
    assert (isolated_env / "dump.txt").read_bytes() == source.read_bytes()
    assert storage.buckets["test-bucket"]["test/test2"] == source.read_bytes()
    metrics_text = (isolated_env / "metrics" / "run.prom").read_text()
    assert "storage_operations_total" in metrics_text


def test_unwritable_metrics_file_still_exits_zero(
    credentials, isolated_env, capsys
):
    (isolated_env / "pyproject.toml").write_bytes(b"[project]\n")
    (isolated_env / "blocker").write_text("not a directory")
    storage = MockStorageClient()

    with patch.object(cli, "S3StorageClient", return_value=storage):
        exit_code = cli.main(["--metrics-file", "blocker/m.prom"])

    assert exit_code == 0
    captured = capsys.readouterr()
    assert len(captured.out.strip().splitlines()) == 5
    assert "WARNING s3runner.startup: metrics not written to blocker/m.prom" in (
        captured.err
    )


def test_cli_arguments_override_plan(credentials, isolated_env, capsys):
    source = isolated_env / "data.bin"
    source.write_bytes(b"\x00\x01\x02")
    storage = MockStorageClient()

    with patch.object(cli, "S3StorageClient", return_value=storage):
        exit_code = cli.main(
            [
                "--bucket",
                "other",
                "--key",
                "k/v",
                "--input",
                str(source),
                "--output",
                str(isolated_env / "out.bin"),
            ]
        )

    assert exit_code == 0
    assert "other" in storage.buckets
    assert (isolated_env / "out.bin").read_bytes() == b"\x00\x01\x02"


def test_step_failures_still_exit_zero(credentials, capsys):
    # pyproject.toml is absent from the working directory
    storage = MockStorageClient()

    with patch.object(cli, "S3StorageClient", return_value=storage):
        exit_code = cli.main([])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert out.count("Error: ") == 3


def test_logs_go_to_stderr_with_masked_key(credentials, capsys):
    with patch.object(cli, "S3StorageClient", return_value=MockStorageClient()):
        cli.main(["-v"])

    captured = capsys.readouterr()
    assert "s3runner starting" in captured.err
    assert "AKIA***" in captured.err
    assert "AKIATESTKEY" not in captured.err
    assert "test-secret" not in captured.err
    assert "s3runner starting" not in captured.out
