"""Helpers shared by the CLI command modules."""

import logging
from pathlib import Path
from typing import Optional

import click

from patient_records.config.schema import Config
from patient_records.transport import PatientRecordsClient, SessionGate, TokenStore
from patient_records.utils.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    ValidationError,
    create_error_info,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USER_ERROR = 1
EXIT_API_ERROR = 2


def get_config(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def build_client(ctx: click.Context) -> PatientRecordsClient:
    """Create an API client using the stored session token, if any."""
    config = get_config(ctx)
    store = TokenStore(Path(config.session.token_file))
    return PatientRecordsClient(config, SessionGate.from_store(store))


def exit_code_for(error: Exception) -> int:
    """Map an exception to the CLI exit code.

    Validation, configuration and authentication problems exit with 1;
    API and transport failures exit with 2.
    """
    if isinstance(error, (ValidationError, ConfigurationError, AuthenticationError)):
        return EXIT_USER_ERROR
    return EXIT_API_ERROR


def report_error(error: Exception, patient_id: Optional[int] = None) -> int:
    """Print an error with its remediation and return the exit code to use."""
    info = create_error_info(error, patient_id=patient_id)
    logger.error(f"{info.error_type}: {info.message}")

    color = "yellow" if info.category == ErrorCategory.TRANSIENT else "red"
    click.echo(click.style("✗ ", fg=color, bold=True) + info.message, err=True)
    click.echo(f"  → {info.remediation}", err=True)
    if info.technical_details:
        click.echo(f"  ({info.technical_details})", err=True)
    return exit_code_for(error)
