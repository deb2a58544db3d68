"""
Tests for name helpers and error mapping.
"""
import errno

import pytest

from artifact_storage.errors import ErrorKind, InvalidNameError, from_os_error
from artifact_storage.utils import clean_name, parent_dirs


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a.txt", "a.txt"),
        ("a/b/c.txt", "a/b/c.txt"),
        ("a//b/./c.txt", "a/b/c.txt"),
        ("a/b/../c.txt", "a/c.txt"),
        ("a/b/", "a/b"),
    ],
)
def test_clean_name(name, expected):
    assert clean_name(name) == expected


@pytest.mark.parametrize("name", ["", ".", "/abs", "..", "../x", "a/../../x"])
def test_clean_name_rejects(name):
    with pytest.raises(InvalidNameError) as exc_info:
        clean_name(name)

    assert exc_info.value.kind is ErrorKind.OTHER
    assert exc_info.value.name == name


def test_parent_dirs_innermost_first():
    assert list(parent_dirs("a/b/c/file.txt")) == ["a/b/c", "a/b", "a"]


def test_parent_dirs_top_level():
    assert list(parent_dirs("file.txt")) == []


@pytest.mark.parametrize(
    "err, kind",
    [
        (FileNotFoundError(errno.ENOENT, "missing"), ErrorKind.NOT_FOUND),
        (PermissionError(errno.EACCES, "denied"), ErrorKind.PERMISSION_DENIED),
        (TimeoutError("slow"), ErrorKind.UNAVAILABLE),
        (OSError(errno.ENOSPC, "disk full"), ErrorKind.OTHER),
    ],
)
def test_from_os_error(err, kind):
    error = from_os_error(err, "a/b.txt")

    assert error.kind is kind
    assert error.name == "a/b.txt"
    assert "a/b.txt" in str(error)
