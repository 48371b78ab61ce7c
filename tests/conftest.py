from __future__ import annotations

import logging

import pytest

from s3runner.common.config import get_settings
from s3runner.common.logging import STARTUP_LOGGER

MANAGED_ENV = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_REGION",
    "AWS_PROFILE",
    "AWS_ENDPOINT_URL",
    "S3_CONNECT_TIMEOUT",
    "S3_READ_TIMEOUT",
    "S3_DOWNLOAD_CHUNK_SIZE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "METRICS_TEXTFILE",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run every test in an empty directory with no inherited storage settings."""
    for name in MANAGED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield tmp_path
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIATESTKEY")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test-secret")


@pytest.fixture(autouse=True)
def restore_logging():
    """Drop handlers installed by setup_logging inside a test."""
    root = logging.getLogger()
    before = set(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
    root.setLevel(level)
    startup = logging.getLogger(STARTUP_LOGGER)
    startup.handlers.clear()
    startup.propagate = True
