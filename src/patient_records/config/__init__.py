"""Client configuration: pydantic models and the JSON/environment loader."""

from patient_records.config.manager import load_config
from patient_records.config.schema import (
    ApiConfig,
    Config,
    LoggingConfig,
    SessionConfig,
    TransportConfig,
)

__all__ = [
    "load_config",
    "Config",
    "ApiConfig",
    "TransportConfig",
    "LoggingConfig",
    "SessionConfig",
]
