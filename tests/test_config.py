"""
Tests for TOML configuration and the storage factory.
"""
import io

import pytest

from artifact_storage.config import BackendConfig, Config
from artifact_storage.errors import ConfigurationError
from artifact_storage.factory import get_storage, open_storage
from artifact_storage.storage import LocalStorage, S3Storage

CONFIG = """
[[backends]]
name = "scratch"
type = "memory"

[[backends]]
name = "disk"
type = "local"
base_path = "{base_path}"

[[backends]]
name = "minio"
type = "s3"
url = "http://minio.internal:AKIAEXAMPLE:secret:artifacts"
domain = "https://cdn.example.com"
timeout_seconds = 60

[[backends]]
name = "old"
type = "local"
enabled = false
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "storage.toml"
    path.write_text(CONFIG.format(base_path=(tmp_path / "data").as_posix()))
    return path


def test_from_file(config_file):
    """Test backends are parsed with defaults filled in."""
    config = Config.from_file(config_file)

    assert [b.name for b in config.backends] == ["scratch", "disk", "minio", "old"]
    minio = config.get_backend("minio")
    assert minio.type == "s3"
    assert minio.timeout_seconds == 60
    assert minio.region is None
    assert config.get_backend("scratch").enabled is True


def test_get_enabled_backends(config_file):
    """Test disabled backends are filtered out."""
    config = Config.from_file(config_file)

    assert [b.name for b in config.get_enabled_backends()] == ["scratch", "disk", "minio"]


def test_get_backend_unknown(config_file):
    """Test looking up a name that is not configured."""
    assert Config.from_file(config_file).get_backend("nope") is None


def test_missing_config_file(tmp_path):
    """Test a missing file is a configuration error."""
    with pytest.raises(ConfigurationError):
        Config.from_file(tmp_path / "absent.toml")


def test_invalid_toml(tmp_path):
    """Test a syntax error is a configuration error."""
    path = tmp_path / "storage.toml"
    path.write_text("[[backends]\nname = ")

    with pytest.raises(ConfigurationError):
        Config.from_file(path)


@pytest.mark.parametrize(
    "backend",
    [
        BackendConfig(name="x", type="ftp"),
        BackendConfig(name="x", type="local"),
        BackendConfig(name="x", type="s3"),
    ],
)
def test_validate_rejects_incomplete_backends(backend):
    """Test each backend type checks its required fields."""
    with pytest.raises(ConfigurationError):
        backend.validate()


def test_configuration_error_is_a_value_error():
    """Test callers catching ValueError still see configuration problems."""
    assert issubclass(ConfigurationError, ValueError)


def test_get_storage_builds_each_backend(tmp_path):
    """Test the factory returns the adapter matching the backend type."""
    memory = get_storage(BackendConfig(name="m", type="memory"))
    disk = get_storage(BackendConfig(name="d", type="local", base_path=str(tmp_path / "d")))
    s3 = get_storage(BackendConfig(name="s", type="s3", url="s3://host:ak:sk:bucket", domain="cdn"))

    assert isinstance(memory, LocalStorage)
    assert isinstance(disk, LocalStorage)
    assert isinstance(s3, S3Storage)
    assert s3.endpoint == "https://host"
    assert s3.domain == "cdn"


def test_get_storage_rejects_bad_connection_string():
    """Test a malformed url is raised, not exited on."""
    with pytest.raises(ConfigurationError):
        get_storage(BackendConfig(name="s", type="s3", url="s3://host:ak:sk"))


def test_open_storage(config_file, tmp_path):
    """Test a configured disk backend round-trips an object."""
    storage = open_storage(config_file, "disk")

    storage.save("a/b.txt", io.BytesIO(b"configured"))

    assert (tmp_path / "data" / "a" / "b.txt").read_bytes() == b"configured"


def test_open_storage_s3(config_file):
    """Test the s3 backend picks up url, domain and timeout."""
    storage = open_storage(config_file, "minio")

    assert storage.base_url == "http://minio.internal/artifacts"
    assert storage.domain == "https://cdn.example.com"
    assert storage.timeout == 60


def test_open_storage_unknown_or_disabled(config_file):
    """Test unknown and disabled backends are configuration errors."""
    with pytest.raises(ConfigurationError):
        open_storage(config_file, "nope")
    with pytest.raises(ConfigurationError):
        open_storage(config_file, "old")
