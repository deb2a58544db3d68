"""
Shared fixtures for storage tests.
"""
import pytest

from artifact_storage.storage import LocalStorage


@pytest.fixture
def disk_storage(tmp_path):
    """Filesystem storage rooted in a temporary directory."""
    return LocalStorage(base_path=str(tmp_path / "root"))


@pytest.fixture
def memory_storage():
    """Filesystem storage backed by a private in-memory tree."""
    return LocalStorage()


@pytest.fixture(params=["disk", "memory"])
def fs_storage(request, tmp_path):
    """Run a test against both filesystem flavours."""
    if request.param == "disk":
        return LocalStorage(base_path=str(tmp_path / "root"))
    return LocalStorage()
