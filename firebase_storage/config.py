"""Resolve storage client settings from a profile file, environment and overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from firebase_storage.const import (
    API_URL,
    DEFAULT_CHUNK_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from firebase_storage.exceptions import ConfigError

_ENV_MAP: dict[str, str] = {
    "storage_bucket": "FIREBASE_STORAGE_BUCKET",
    "api_url": "FIREBASE_STORAGE_API_URL",
    "raise_for_status": "FIREBASE_STORAGE_RAISE_FOR_STATUS",
    "request_timeout_seconds": "FIREBASE_STORAGE_REQUEST_TIMEOUT",
    "chunk_timeout_seconds": "FIREBASE_STORAGE_CHUNK_TIMEOUT",
}

YES_CONFIRMATION = {"1", "true", "yes", "y"}


class StorageSettings(BaseModel):
    """Settings for a storage client instance.

    Attributes:
        storage_bucket: bucket that holds every object the client touches.
        api_url: base endpoint of the storage API, ending with ``/``.
        raise_for_status: when true, non-2xx responses raise
            ``RequestFailedError`` before headers or body are read.
        request_timeout_seconds: total timeout for start, metadata and delete.
        chunk_timeout_seconds: total timeout for a single chunk upload.
    """

    storage_bucket: str = Field(min_length=1)
    api_url: str = API_URL
    raise_for_status: bool = True
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0
    )
    chunk_timeout_seconds: float = Field(default=DEFAULT_CHUNK_TIMEOUT_SECONDS, gt=0)

    @field_validator("api_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else f"{value}/"


class ConfigManager:
    """Build effective storage settings from a profile, env and explicit overrides."""

    def __init__(self, profile_path: Path | None = None) -> None:
        """Initialise ConfigManager.

        Args:
            profile_path: Optional YAML file providing the base settings.
        """
        self.profile_path = profile_path

    def _read_profile(self) -> dict[str, Any]:
        """Load the base settings from the YAML profile, if one was given.

        Raises:
            ConfigError: If the profile is missing or is not a mapping.
        """
        if self.profile_path is None:
            return {}

        profile = str(self.profile_path)
        try:
            with self.profile_path.open("r") as profile_file:
                profile_data = yaml.safe_load(profile_file) or {}
        except FileNotFoundError as exc:
            raise ConfigError(f"Profile {profile!r} not found.") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Profile {profile!r} is invalid: {exc}") from exc

        if not isinstance(profile_data, dict):
            raise ConfigError(f"Profile {profile!r} must contain a mapping.")
        return profile_data

    def _read_env_overrides(self) -> dict[str, Any]:
        """Read settings overrides from environment variables.

        Returns:
            A dictionary of settings field names to override values.
        """
        overrides: dict[str, Any] = {}

        for field_name, env_var_name in _ENV_MAP.items():
            env_value = os.getenv(env_var_name)
            if env_value is None:
                continue

            if field_name == "raise_for_status":
                overrides[field_name] = env_value.lower() in YES_CONFIRMATION
            elif field_name.endswith("_seconds"):
                try:
                    overrides[field_name] = float(env_value)
                except ValueError:
                    continue
            else:
                overrides[field_name] = env_value

        return overrides

    def resolve_settings(
        self, overrides: dict[str, Any] | None = None
    ) -> StorageSettings:
        """Resolve the effective storage settings.

        Args:
            overrides: Explicit values taking precedence over profile and env.
                Entries whose value is ``None`` are ignored.

        Returns:
            The resolved ``StorageSettings``.

        Raises:
            ConfigError: If the merged values do not form valid settings.
        """
        merged: dict[str, Any] = self._read_profile()
        merged.update(self._read_env_overrides())
        if overrides is not None:
            merged.update(
                {name: value for name, value in overrides.items() if value is not None}
            )

        try:
            return StorageSettings(**merged)
        except ValidationError as exc:
            raise ConfigError(f"Invalid storage settings: {exc}") from exc
