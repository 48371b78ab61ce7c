from __future__ import annotations

import json
import logging

from s3runner.common.logging import STARTUP_LOGGER, JsonFormatter, setup_logging


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="s3runner.services.runner",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_extra_payload():
    record = _record(
        "step failed",
        extra={"operation": "delete_bucket", "outcome": "error"},
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload == {
        "level": "WARNING",
        "logger": "s3runner.services.runner",
        "message": "step failed",
        "operation": "delete_bucket",
        "outcome": "error",
    }


def test_json_formatter_ignores_non_dict_extra():
    payload = json.loads(JsonFormatter().format(_record("x", extra="nope")))

    assert "extra" not in payload
    assert payload["message"] == "x"


def test_setup_logging_keeps_stdout_clean(capsys):
    setup_logging(level="INFO", fmt="json")

    logging.getLogger("s3runner.test").info("hello")
    logging.getLogger(STARTUP_LOGGER).info("starting")

    captured = capsys.readouterr()
    assert captured.out == ""
    lines = captured.err.strip().splitlines()
    assert json.loads(lines[0])["message"] == "hello"
    assert lines[1] == f"INFO {STARTUP_LOGGER}: starting"


def test_setup_logging_quiets_sdk_loggers():
    setup_logging(level="DEBUG")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("botocore").level == logging.WARNING
