"""Object-storage smoke runner for S3-compatible endpoints."""

__version__ = "0.1.0"
