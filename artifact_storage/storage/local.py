"""Filesystem storage backend (local disk or in-memory tree)."""

import io
import os
import posixpath
import shutil
import uuid
from typing import BinaryIO

from fsspec import AbstractFileSystem
from fsspec.implementations.local import LocalFileSystem
from fsspec.implementations.memory import MemoryFileSystem
from loguru import logger

from artifact_storage.errors import ConfigurationError, ErrorKind, StorageError, from_os_error
from artifact_storage.utils import clean_name, parent_dirs

WRITE_BUFFER_SIZE = 2 * 1024 * 1024  # 2MB
READ_BUFFER_SIZE = 2 * 1024 * 1024


class LocalStorage:
    """Storage backend using a hierarchical filesystem tree.

    With a ``base_path`` the tree lives on local disk under that directory.
    Without one it lives in an in-memory filesystem owned by this instance,
    which is freed once the storage is dropped.
    """

    def __init__(self, base_path: str | None = None, fs: AbstractFileSystem | None = None):
        if fs is None and base_path is None:
            fs = MemoryFileSystem(skip_instance_cache=True)
            # MemoryFileSystem shares a class-level tree unless given its own
            fs.store = {}
            fs.pseudo_dirs = [""]
            base_path = "/"
            kind = "in-memory filesystem"
        elif fs is None:
            fs = LocalFileSystem()
            base_path = os.path.abspath(base_path)
            kind = "local filesystem"
        elif base_path is None:
            raise ConfigurationError("base_path is required when a filesystem is given")
        else:
            kind = type(fs).__name__

        self.fs = fs
        self.root = base_path.rstrip("/") or "/"
        self.fs.makedirs(self.root, exist_ok=True)
        self.name = f"{kind} ({self.root})"
        logger.info(f"Using {self.name}")

    def _resolve(self, name: str) -> str:
        """Resolve a cleaned name to a full path."""
        return posixpath.join(self.root, name)

    def save(self, name: str, reader: BinaryIO) -> None:
        """Copy the reader into a file, creating parent directories.

        The content is written to a sibling temp file through a write buffer
        and renamed over the target once flushed, so a failed save leaves any
        previous object at ``name`` untouched.
        """
        name = clean_name(name)
        path = self._resolve(name)
        if self.fs.isdir(path):
            raise StorageError(f"{name}: is a directory", ErrorKind.OTHER, name)
        self._makedirs(name)

        directory, basename = posixpath.split(path)
        temp_path = posixpath.join(directory, f".{basename}.{uuid.uuid4().hex}.partial")
        try:
            with self.fs.open(temp_path, "wb") as f:
                writer = io.BufferedWriter(f, buffer_size=WRITE_BUFFER_SIZE)
                shutil.copyfileobj(reader, writer, WRITE_BUFFER_SIZE)
                writer.flush()
                # The handle is closed by the with block
                writer.detach()
            self.fs.mv(temp_path, path)
        except Exception as e:
            self._discard_partial(temp_path)
            if isinstance(e, OSError):
                raise from_os_error(e, name) from e
            raise

        logger.debug(f"Saved {name}")

    def open_file(self, name: str) -> BinaryIO:
        """Open a file for reading."""
        name = clean_name(name)
        try:
            return self.fs.open(self._resolve(name), "rb")
        except OSError as e:
            raise from_os_error(e, name) from e

    def get_file(self, name: str) -> BinaryIO:
        """Open a file for reading behind a read buffer."""
        return io.BufferedReader(self.open_file(name), buffer_size=READ_BUFFER_SIZE)

    def delete(self, name: str) -> None:
        """Delete a file and any parent directories it leaves empty."""
        name = clean_name(name)
        try:
            self.fs.rm_file(self._resolve(name))
        except OSError as e:
            raise from_os_error(e, name) from e

        self._prune_empty_parents(name)
        logger.debug(f"Deleted {name}")

    def move(self, src: str, dest: str) -> None:
        """Rename a file, creating the destination's parent directories."""
        src = clean_name(src)
        dest = clean_name(dest)
        src_path = self._resolve(src)

        dest_path = self._resolve(dest)

        if not self.fs.isfile(src_path):
            raise StorageError(f"{src}: no such file", ErrorKind.NOT_FOUND, src)
        # mv would drop the file inside an existing directory
        if self.fs.isdir(dest_path):
            raise StorageError(f"{dest}: is a directory", ErrorKind.OTHER, dest)

        self._makedirs(dest)
        try:
            self.fs.mv(src_path, dest_path)
        except OSError as e:
            raise from_os_error(e, src) from e

        self._prune_empty_parents(src)
        logger.debug(f"Moved {src} to {dest}")

    def _makedirs(self, name: str) -> None:
        """Create every missing parent directory of a cleaned name."""
        parent = posixpath.dirname(name)
        if not parent:
            return
        try:
            self.fs.makedirs(self._resolve(parent), exist_ok=True)
        except OSError as e:
            raise from_os_error(e, name) from e

    def _prune_empty_parents(self, name: str) -> None:
        """Best-effort cleanup of directories emptied by a delete or move.

        Walks the ancestors of ``name`` innermost first and stops at the first
        one that cannot be removed, usually because it still holds other
        entries. Removal errors are discarded; the root is never removed.
        """
        for directory in parent_dirs(name):
            try:
                self.fs.rmdir(self._resolve(directory))
            except OSError as e:
                logger.debug(f"Stopped pruning at {directory}: {e}")
                return

    def _discard_partial(self, path: str) -> None:
        """Remove a file left behind by a failed save."""
        try:
            if self.fs.exists(path):
                self.fs.rm_file(path)
        except OSError as e:
            logger.warning(f"Could not remove partial file {path}: {e}")
