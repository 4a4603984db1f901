"""Load the client configuration from JSON, ``.env`` and the environment.

Precedence, highest first: command-line options (applied by the CLI),
``PATIENT_RECORDS_*`` environment variables, the JSON file, built-in defaults.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from patient_records.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from patient_records.config.schema import Config
from patient_records.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PATIENT_RECORDS_"

# Key fragments that must never be written into a configuration file
SENSITIVE_KEYS = ("password", "token")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


# PATIENT_RECORDS_<suffix> -> (section, field, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "API_URL": ("api", "base_url", str),
    "VERIFY_TLS": ("transport", "verify_tls", _parse_bool),
    "TIMEOUT_CONNECT": ("transport", "timeout_connect", int),
    "TIMEOUT_READ": ("transport", "timeout_read", int),
    "MAX_RETRIES": ("transport", "max_retries", int),
    "BACKOFF_FACTOR": ("transport", "backoff_factor", float),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_FILE": ("logging", "log_file", str),
    "REDACT_PII": ("logging", "redact_pii", _parse_bool),
    "TOKEN_FILE": ("session", "token_file", str),
}


def load_config(config_path: Optional[Path] = None) -> Config:
    """Return the validated client configuration.

    Args:
        config_path: JSON configuration file. Defaults to ./config/config.json;
            a missing file falls back to the built-in defaults.

    Raises:
        ConfigurationError: If the file is unreadable, is not a JSON object,
            or the merged values fail validation

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> config.api.base_url
        'http://localhost:5000/api'
    """
    load_dotenv()
    path = Path(config_path) if config_path is not None else Path(DEFAULT_CONFIG_PATH)

    values = _read_config_file(path)
    _warn_on_credentials(values)
    _apply_env_overrides(values)

    try:
        return Config(**values)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check {path} against the documented configuration sections "
            f"(api, transport, logging, session)."
        ) from e


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.info(f"No config file at {path}; using built-in defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        values = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in config file: {path}\n"
            f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(values, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a JSON object at the top level"
        )

    logger.info(f"Loaded configuration from {path}")
    return values


def _apply_env_overrides(values: dict[str, Any]) -> None:
    """Overlay ``PATIENT_RECORDS_*`` variables onto the loaded sections in place."""
    for suffix, (section, field, convert) in ENV_OVERRIDES.items():
        env_name = ENV_PREFIX + suffix
        raw = os.getenv(env_name)
        if not raw:
            continue
        try:
            converted = convert(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {env_name}: {raw!r}. Expected a number."
            ) from e
        values.setdefault(section, {})[field] = converted
        logger.debug(f"{section}.{field} taken from {env_name}")


def _warn_on_credentials(values: dict[str, Any]) -> None:
    for section_name, section in values.items():
        if not isinstance(section, dict):
            continue
        for key in section:
            if key == "token_file":
                continue
            if any(fragment in key.lower() for fragment in SENSITIVE_KEYS):
                logger.warning(
                    f"'{section_name}.{key}' found in configuration file! "
                    "Credentials belong in the login prompt, not in config files."
                )
