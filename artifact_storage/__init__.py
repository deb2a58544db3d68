"""Pluggable artifact storage over a filesystem tree or an S3-compatible bucket."""

from artifact_storage.config import BackendConfig, Config
from artifact_storage.errors import (
    ConfigurationError,
    ErrorKind,
    InvalidNameError,
    MoveIncompleteError,
    StorageError,
)
from artifact_storage.factory import get_storage, open_storage
from artifact_storage.storage import LocalStorage, S3Storage, S3StorageError, Storage

__all__ = [
    "BackendConfig",
    "Config",
    "ConfigurationError",
    "ErrorKind",
    "InvalidNameError",
    "LocalStorage",
    "MoveIncompleteError",
    "S3Storage",
    "S3StorageError",
    "Storage",
    "StorageError",
    "get_storage",
    "open_storage",
]
