"""Settings for the mock Patient Records REST API.

Values are resolved in this order: ``MOCK_SERVER_*`` environment variables,
then the JSON settings file, then the model defaults. Accepted users can
only be set from the file.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, Field, field_validator

DEFAULT_MOCK_CONFIG_PATH = Path("mocks/config.json")
ENV_PREFIX = "MOCK_SERVER_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# field name -> converter applied to the raw environment string
ENV_OVERRIDES: dict[str, Callable[[str], Any]] = {
    "host": str,
    "port": int,
    "url_prefix": str,
    "log_level": str,
    "log_path": str,
    "response_delay_ms": int,
}


class MockServerConfig(BaseModel):
    """Where the mock API listens, who may log in and how it logs."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=5000, description="HTTP port")
    url_prefix: str = Field(default="/api", description="Path prefix of every API route")
    log_level: str = Field(default="INFO", description="Mock server log level")
    log_path: str = Field(default="mocks/logs/mock-server.log", description="Mock server log file")
    users: dict[str, str] = Field(
        default_factory=lambda: {"admin": "admin123"},
        description="Accepted username -> password pairs",
    )
    response_delay_ms: int = Field(
        default=0,
        ge=0,
        le=5000,
        description="Artificial latency before each response",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError(f"Invalid port {v}. Must be between 1 and 65535.")
        return v

    @field_validator("url_prefix")
    @classmethod
    def validate_url_prefix(cls, v: str) -> str:
        """Normalise to ``/segment`` form, or ``""`` for routes at the root."""
        prefix = v.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        return prefix


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        if path != DEFAULT_MOCK_CONFIG_PATH:
            raise FileNotFoundError(f"Configuration file not found: '{path}'.")
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse configuration file '{path}': {e}") from e


def _environment_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for field, convert in ENV_OVERRIDES.items():
        env_key = ENV_PREFIX + field.upper()
        raw = os.environ.get(env_key)
        if raw is None:
            continue
        try:
            overrides[field] = convert(raw)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_key}: '{raw}'") from e
    return overrides


def load_config(config_file: Path | None = None) -> MockServerConfig:
    """Build the mock server settings from file and environment.

    Args:
        config_file: Settings JSON. A missing default file is not an error.

    Raises:
        FileNotFoundError: If an explicitly given file does not exist
        ValueError: If the file is not JSON or the merged settings are invalid
    """
    settings = _read_settings_file(config_file or DEFAULT_MOCK_CONFIG_PATH)
    settings.update(_environment_overrides())
    try:
        return MockServerConfig(**settings)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e
