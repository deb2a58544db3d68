"""Storage backend protocol definition."""

from typing import BinaryIO, Protocol


class Storage(Protocol):
    """Protocol for storage backends (filesystem tree or S3-compatible bucket).

    Names are slash-separated paths. Every backend accepts the same names and
    raises ``StorageError`` with a backend-neutral ``kind`` on failure.
    """

    name: str

    def save(self, name: str, reader: BinaryIO) -> None:
        """Drain reader into the object at name, replacing any existing object.

        Missing parent namespace is created first. The reader is not closed.
        """
        ...

    def open_file(self, name: str) -> BinaryIO:
        """Open the object for reading. The caller closes the returned stream."""
        ...

    def delete(self, name: str) -> None:
        """Delete the object at name."""
        ...

    def move(self, src: str, dest: str) -> None:
        """Move the object at src to dest."""
        ...

    def get_file(self, name: str) -> BinaryIO:
        """Return a readable stream for the object.

        The caller owns the stream and must close it to release the
        underlying file handle or connection.
        """
        ...
