"""Pydantic models of the client configuration file.

The file has four sections, each optional::

    {
      "api": {"base_url": "http://localhost:5000/api"},
      "transport": {"verify_tls": true, "timeout_connect": 10, "timeout_read": 10,
                    "max_retries": 0, "backoff_factor": 0.3},
      "logging": {"level": "INFO", "log_file": "logs/patient-records.log",
                  "redact_pii": false},
      "session": {"token_file": ".patient-records/session.json"}
    }
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ApiConfig(BaseModel):
    """Location of the patient-records REST API."""

    base_url: str = Field(
        default="http://localhost:5000/api",
        description="Prefix every endpoint path is appended to",
    )

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if v.startswith(("http://", "https://")):
            return v.rstrip("/")
        raise ValueError(f"Invalid URL: {v}. Must start with http:// or https://")


class TransportConfig(BaseModel):
    """Timeouts, TLS verification and the opt-in retry policy.

    Attributes:
        verify_tls: Verify the API's TLS certificate
        timeout_connect: Seconds to wait for a connection
        timeout_read: Seconds to wait for a response
        max_retries: Retries of idempotent requests; 0 never retries
        backoff_factor: urllib3 backoff factor between retries
    """

    verify_tls: bool = True
    timeout_connect: int = Field(default=10, ge=1)
    timeout_read: int = Field(default=10, ge=1)
    max_retries: int = Field(default=0, ge=0)
    backoff_factor: float = Field(default=0.3, ge=0.0)


class LoggingConfig(BaseModel):
    """Console level, log file location and name redaction."""

    level: str = Field(default="INFO", description="Console log level")
    log_file: Path = Field(default=Path("logs/patient-records.log"))
    redact_pii: bool = Field(
        default=False,
        description="Scrub patient names and credentials from log output",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        return level


class SessionConfig(BaseModel):
    """Where the bearer token is kept between CLI invocations."""

    token_file: Path = Field(default=Path(".patient-records/session.json"))


class Config(BaseModel):
    """The whole client configuration.

    Example:
        >>> config = Config(api=ApiConfig(base_url="https://clinic.example.com/api/"))
        >>> config.api.base_url
        'https://clinic.example.com/api'
    """

    api: ApiConfig = ApiConfig()
    transport: TransportConfig = TransportConfig()
    logging: LoggingConfig = LoggingConfig()
    session: SessionConfig = SessionConfig()
