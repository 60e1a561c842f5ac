"""Configuration management for chunkup.

Supports YAML profiles and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml

from chunkup.core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_PARALLEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_METHOD,
    DEFAULT_MODE,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
)
from chunkup.core.exceptions import ConfigurationError, ProfileNotFoundError, ValidationError
from chunkup.core.validation import parse_size

if TYPE_CHECKING:
    from chunkup.models.upload import UploadOptions

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "chunkup"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Environment variable names
ENV_URL = "CHUNKUP_URL"
ENV_PROFILE = "CHUNKUP_PROFILE"
ENV_CHUNK_SIZE = "CHUNKUP_CHUNK_SIZE"
ENV_MAX_PARALLEL = "CHUNKUP_MAX_PARALLEL"
ENV_MAX_RETRIES = "CHUNKUP_MAX_RETRIES"
ENV_RETRY_DELAY = "CHUNKUP_RETRY_DELAY"
ENV_TIMEOUT = "CHUNKUP_TIMEOUT"
ENV_VERIFY_SSL = "CHUNKUP_VERIFY_SSL"


def _env_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def env_overrides() -> dict[str, Any]:
    """Upload tuning values set through environment variables.

    Raises:
        ConfigurationError: If a variable holds an unparsable value.
    """
    overrides: dict[str, Any] = {}
    parsers: list[tuple[str, str, Any]] = [
        (ENV_CHUNK_SIZE, "chunk_size", parse_size),
        (ENV_MAX_PARALLEL, "max_parallel", int),
        (ENV_MAX_RETRIES, "max_retries", int),
        (ENV_RETRY_DELAY, "retry_delay", float),
        (ENV_TIMEOUT, "timeout", float),
    ]
    for env_name, key, parse in parsers:
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            overrides[key] = parse(raw)
        except (ValueError, ValidationError) as e:
            raise ConfigurationError(f"Invalid {env_name}: {raw}", field=key, value=raw) from e
    return overrides


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Configuration profile for an upload destination."""

    url: Optional[str] = None
    method: str = DEFAULT_METHOD
    mode: str = DEFAULT_MODE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    max_parallel: int = DEFAULT_MAX_PARALLEL
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    headers: dict[str, str] = field(default_factory=dict)
    payload_fields: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "url": self.url,
            "method": self.method,
            "mode": self.mode,
            "chunk_size": self.chunk_size,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "max_parallel": self.max_parallel,
            "timeout": self.timeout,
            "verify_ssl": self.verify_ssl,
        }
        if self.headers:
            data["headers"] = dict(self.headers)
        if self.payload_fields:
            data["payload_fields"] = dict(self.payload_fields)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from dictionary."""
        return cls(
            url=data.get("url"),
            method=data.get("method", DEFAULT_METHOD),
            mode=data.get("mode", DEFAULT_MODE),
            chunk_size=parse_size(data.get("chunk_size", DEFAULT_CHUNK_SIZE)),
            max_retries=data.get("max_retries", DEFAULT_MAX_RETRIES),
            retry_delay=data.get("retry_delay", DEFAULT_RETRY_DELAY),
            max_parallel=data.get("max_parallel", DEFAULT_MAX_PARALLEL),
            timeout=data.get("timeout", DEFAULT_TIMEOUT),
            verify_ssl=data.get("verify_ssl", True),
            headers=dict(data.get("headers") or {}),
            payload_fields=dict(data.get("payload_fields") or {}),
        )

    def to_options(self, **overrides: Any) -> "UploadOptions":
        """Build UploadOptions from this profile.

        Priority (highest to lowest):
        1. Explicit overrides (None values are ignored)
        2. Environment variables
        3. Profile values

        Raises:
            ConfigurationError: If the combined values are invalid.
        """
        from chunkup.models.upload import UploadOptions

        values: dict[str, Any] = {
            "method": self.method,
            "mode": self.mode,
            "chunk_size": self.chunk_size,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "max_parallel": self.max_parallel,
            "timeout": self.timeout,
            "headers": dict(self.headers),
            "payload_fields": dict(self.payload_fields),
        }
        values.update(env_overrides())

        for key, value in overrides.items():
            if value is None:
                continue
            if key in ("headers", "payload_fields"):
                values[key] = {**values[key], **value}
            else:
                values[key] = value

        return UploadOptions.create(**values)


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.
        """
        path = config_path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")

                for name, pdata in (data.get("profiles") or {}).items():
                    config.profiles[name] = Profile.from_dict(pdata or {})
            except Exception as e:
                raise ConfigurationError(f"Failed to load config: {e}") from e

        if url := os.getenv(ENV_URL):
            profile = config.profiles.get("default") or Profile()
            profile.url = url
            if verify_ssl := os.getenv(ENV_VERIFY_SSL):
                profile.verify_ssl = _env_bool(verify_ssl)
            config.profiles["default"] = profile

        if profile_name := os.getenv(ENV_PROFILE):
            config.default_profile = profile_name

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file.

        Args:
            config_path: Optional path to config file.
        """
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        Args:
            name: Profile name. If None, uses default_profile.

        Returns:
            Profile configuration.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def has_profile(self, name: str) -> bool:
        """Check if profile exists."""
        return name in self.profiles

    def add_profile(self, name: str, **settings: Any) -> Profile:
        """Add or update a profile.

        Args:
            name: Profile name.
            **settings: Profile fields (url, chunk_size, max_parallel, ...).

        Returns:
            Created profile.
        """
        profile = Profile(**settings)
        self.profiles[name] = profile
        return profile

    def remove_profile(self, name: str) -> bool:
        """Remove a profile.

        Args:
            name: Profile name.

        Returns:
            True if removed, False if didn't exist.
        """
        if name in self.profiles:
            del self.profiles[name]
            return True
        return False

    def set_default_profile(self, name: str) -> None:
        """Set the default profile.

        Args:
            name: Profile name to set as default.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        self.default_profile = name
