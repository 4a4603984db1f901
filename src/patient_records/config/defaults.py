"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Fallback used when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "api": {
        # Local development API (and the bundled mock server)
        "base_url": "http://localhost:5000/api",
    },
    "transport": {
        "verify_tls": True,
        "timeout_connect": 10,
        "timeout_read": 10,
        # Failed requests are surfaced to the user, never retried automatically
        "max_retries": 0,
        "backoff_factor": 0.3,
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/patient-records.log",
        # Opt-in: patient names stay visible in logs unless requested
        "redact_pii": False,
    },
    "session": {
        "token_file": ".patient-records/session.json",
    },
}

DEFAULT_CONFIG_PATH = "config/config.json"
