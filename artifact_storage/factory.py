"""Build storage backends from configuration."""

from pathlib import Path

from artifact_storage.config import BackendConfig, Config
from artifact_storage.errors import ConfigurationError
from artifact_storage.storage import LocalStorage, S3Storage, Storage


def get_storage(backend: BackendConfig) -> Storage:
    """Get storage backend based on backend configuration."""
    backend.validate()
    if backend.type == "s3":
        return S3Storage.from_connection_string(
            backend.url,
            domain=backend.domain,
            region=backend.region,
            timeout=backend.timeout_seconds,
        )
    elif backend.type == "local":
        return LocalStorage(base_path=backend.base_path)
    else:
        return LocalStorage()


def open_storage(config_path: str | Path, name: str) -> Storage:
    """Load a configuration file and build the named backend."""
    config = Config.from_file(config_path)
    backend = config.get_backend(name)
    if backend is None:
        raise ConfigurationError(f"Backend '{name}' not found in {config_path}")
    if not backend.enabled:
        raise ConfigurationError(f"Backend '{name}' is disabled")
    return get_storage(backend)
