from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

ENV_FILE = Path(".env")

DEFAULT_REGION = "us-west-2"
DEFAULT_PROFILE = "default"
DEFAULT_DOWNLOAD_CHUNK_SIZE = 64 * 1024
LOG_FORMATS: tuple[str, ...] = ("plain", "json")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# same shape botocore accepts for region_name
REGION_PATTERN = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?$")


class ConfigError(ValueError):
    """Raised when the process configuration cannot produce usable settings."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class MissingSettingError(ConfigError):
    """A required variable is absent or blank."""

    def __init__(self, name: str):
        super().__init__(name, f"{name} must be set")


class InvalidSettingError(ConfigError):
    """A variable is present but its value cannot be used."""

    def __init__(self, name: str, value: str, reason: str):
        super().__init__(name, f"{name}={value!r} is invalid: {reason}")
        self.value = value


def _load_env_file(path: Path = ENV_FILE) -> None:
    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export ") :].strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _require(name: str) -> str:
    value = os.environ.get(name)
    if value is None or not value.strip():
        raise MissingSettingError(name)
    return value.strip()


def _optional(name: str) -> str | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _as_positive_int(name: str, value: str | None, default: int | None) -> int | None:
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise InvalidSettingError(name, value, "expected an integer") from None
    if parsed <= 0:
        raise InvalidSettingError(name, value, "must be greater than zero")
    return parsed


def _as_endpoint(name: str, value: str | None) -> str | None:
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidSettingError(
            name, value, "expected an absolute URL such as http://localhost:9000"
        )
    return value.rstrip("/")


@dataclass(frozen=True)
class Settings:
    AWS_ACCESS_KEY_ID: str
    AWS_SECRET_ACCESS_KEY: str
    AWS_REGION: str = DEFAULT_REGION
    AWS_PROFILE: str = DEFAULT_PROFILE
    AWS_ENDPOINT_URL: str | None = None
    S3_CONNECT_TIMEOUT: int | None = None
    S3_READ_TIMEOUT: int | None = None
    S3_DOWNLOAD_CHUNK_SIZE: int = DEFAULT_DOWNLOAD_CHUNK_SIZE
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "plain"
    METRICS_TEXTFILE: str | None = None

    def __post_init__(self) -> None:
        if not self.AWS_ACCESS_KEY_ID:
            raise MissingSettingError("AWS_ACCESS_KEY_ID")
        if not self.AWS_SECRET_ACCESS_KEY:
            raise MissingSettingError("AWS_SECRET_ACCESS_KEY")
        if not REGION_PATTERN.match(self.AWS_REGION):
            raise InvalidSettingError(
                "AWS_REGION",
                self.AWS_REGION,
                "expected a region name such as us-west-2",
            )
        if self.LOG_FORMAT not in LOG_FORMATS:
            raise InvalidSettingError(
                "LOG_FORMAT",
                self.LOG_FORMAT,
                f"expected one of {', '.join(LOG_FORMATS)}",
            )
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise InvalidSettingError(
                "LOG_LEVEL",
                self.LOG_LEVEL,
                f"expected one of {', '.join(LOG_LEVELS)}",
            )

    @property
    def force_path_style(self) -> bool:
        # any custom endpoint is addressed path-style
        return self.AWS_ENDPOINT_URL is not None

    @property
    def addressing_style(self) -> str | None:
        return "path" if self.force_path_style else None

    @property
    def masked_access_key(self) -> str:
        key = self.AWS_ACCESS_KEY_ID
        if len(key) <= 4:
            return "***"
        return f"{key[:4]}***"

    def describe(self) -> str:
        endpoint = self.AWS_ENDPOINT_URL or "<aws default>"
        return (
            f"region={self.AWS_REGION} profile={self.AWS_PROFILE} "
            f"endpoint={endpoint} path_style={self.force_path_style} "
            f"access_key={self.masked_access_key}"
        )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            AWS_ACCESS_KEY_ID=_require("AWS_ACCESS_KEY_ID"),
            AWS_SECRET_ACCESS_KEY=_require("AWS_SECRET_ACCESS_KEY"),
            AWS_REGION=_optional("AWS_REGION") or cls.AWS_REGION,
            AWS_PROFILE=_optional("AWS_PROFILE") or cls.AWS_PROFILE,
            AWS_ENDPOINT_URL=_as_endpoint(
                "AWS_ENDPOINT_URL", _optional("AWS_ENDPOINT_URL")
            ),
            S3_CONNECT_TIMEOUT=_as_positive_int(
                "S3_CONNECT_TIMEOUT", _optional("S3_CONNECT_TIMEOUT"), None
            ),
            S3_READ_TIMEOUT=_as_positive_int(
                "S3_READ_TIMEOUT", _optional("S3_READ_TIMEOUT"), None
            ),
            S3_DOWNLOAD_CHUNK_SIZE=_as_positive_int(
                "S3_DOWNLOAD_CHUNK_SIZE",
                _optional("S3_DOWNLOAD_CHUNK_SIZE"),
                cls.S3_DOWNLOAD_CHUNK_SIZE,
            ),
            LOG_LEVEL=(_optional("LOG_LEVEL") or cls.LOG_LEVEL).upper(),
            LOG_FORMAT=(_optional("LOG_FORMAT") or cls.LOG_FORMAT).lower(),
            METRICS_TEXTFILE=_optional("METRICS_TEXTFILE"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
