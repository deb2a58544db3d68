"""Error types shared by every storage backend."""

from enum import Enum


class ErrorKind(str, Enum):
    """Backend-neutral classification of a storage failure."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    OTHER = "other"


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.OTHER, name: str | None = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.name = name


class InvalidNameError(StorageError):
    """Object name is empty or escapes the storage root."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Invalid object name {name!r}: {reason}", ErrorKind.OTHER, name)


class MoveIncompleteError(StorageError):
    """Copy succeeded but removing the source failed; the object exists at both names."""

    def __init__(self, src: str, dest: str, kind: ErrorKind):
        self.src = src
        self.dest = dest
        super().__init__(
            f"Copied {src!r} to {dest!r} but could not delete the source", kind, src
        )


class ConfigurationError(ValueError):
    """Storage configuration is malformed or missing."""

    pass


def from_os_error(err: OSError, name: str) -> StorageError:
    """Wrap an OSError raised by a filesystem call."""
    if isinstance(err, FileNotFoundError):
        kind = ErrorKind.NOT_FOUND
    elif isinstance(err, PermissionError):
        kind = ErrorKind.PERMISSION_DENIED
    elif isinstance(err, (TimeoutError, ConnectionError)):
        kind = ErrorKind.UNAVAILABLE
    else:
        kind = ErrorKind.OTHER
    return StorageError(f"{name}: {err}", kind, name)
