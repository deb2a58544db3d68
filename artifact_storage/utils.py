"""Helpers for object names."""

import posixpath
from typing import Iterator

from artifact_storage.errors import InvalidNameError


def clean_name(name: str) -> str:
    """Normalize a slash-separated name and keep it inside the storage root."""
    if not name:
        raise InvalidNameError(name, "empty name")
    if name.startswith("/"):
        raise InvalidNameError(name, "absolute names are not allowed")

    cleaned = posixpath.normpath(name)
    if cleaned == ".":
        raise InvalidNameError(name, "name refers to the storage root")
    if cleaned == ".." or cleaned.startswith("../"):
        raise InvalidNameError(name, "name escapes the storage root")
    return cleaned


def parent_dirs(name: str) -> Iterator[str]:
    """Yield the ancestor directories of a cleaned name, innermost first.

    The walk stops before the root, so ``a/b/c.txt`` yields ``a/b`` then ``a``.
    """
    parent = posixpath.dirname(name)
    while parent:
        yield parent
        parent = posixpath.dirname(parent)
