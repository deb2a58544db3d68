"""Storage backend implementations."""

from artifact_storage.storage.base import Storage
from artifact_storage.storage.local import LocalStorage
from artifact_storage.storage.s3 import S3Storage, S3StorageError

__all__ = ["Storage", "LocalStorage", "S3Storage", "S3StorageError"]
