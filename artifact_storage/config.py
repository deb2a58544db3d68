"""Configuration management using TOML."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from artifact_storage.errors import ConfigurationError

BACKEND_TYPES = ("local", "memory", "s3")


@dataclass
class BackendConfig:
    """Configuration for a single storage backend."""

    name: str
    type: Literal["local", "memory", "s3"]
    enabled: bool = True

    # Local-specific fields
    base_path: str | None = None

    # S3-specific fields
    url: str | None = None
    domain: str = ""
    region: str | None = None
    timeout_seconds: int = 300

    def validate(self) -> None:
        """Validate backend configuration."""
        if self.type not in BACKEND_TYPES:
            raise ConfigurationError(
                f"Backend '{self.name}' has unknown type '{self.type}' "
                f"(expected one of: {', '.join(BACKEND_TYPES)})"
            )
        if self.type == "s3" and not self.url:
            raise ConfigurationError(f"S3 backend '{self.name}' missing required field: url")
        if self.type == "local" and not self.base_path:
            raise ConfigurationError(f"Local backend '{self.name}' missing required field: base_path")


@dataclass
class Config:
    """Complete configuration."""

    backends: list[BackendConfig]

    @classmethod
    def from_file(cls, config_path: str | Path = "storage.toml") -> "Config":
        """Load configuration from TOML file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid configuration file {config_path}: {e}") from e

        backends = []
        for backend_data in data.get("backends", []):
            if "name" not in backend_data or "type" not in backend_data:
                raise ConfigurationError("Every backend needs a name and a type")
            backend = BackendConfig(
                name=backend_data["name"],
                type=backend_data["type"],
                enabled=backend_data.get("enabled", True),
                base_path=backend_data.get("base_path"),
                url=backend_data.get("url"),
                domain=backend_data.get("domain", ""),
                region=backend_data.get("region"),
                timeout_seconds=backend_data.get("timeout_seconds", 300),
            )
            backends.append(backend)

        return cls(backends=backends)

    def get_enabled_backends(self) -> list[BackendConfig]:
        """Get list of enabled backends."""
        return [b for b in self.backends if b.enabled]

    def get_backend(self, name: str) -> BackendConfig | None:
        """Get backend by name."""
        for backend in self.backends:
            if backend.name == name:
                return backend
        return None
