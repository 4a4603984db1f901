"""Top-level click group of the patient-records command line client."""

from pathlib import Path
from typing import Optional

import click

from patient_records import __version__
from patient_records.cli.auth_commands import login, logout
from patient_records.cli.mock_commands import mock_group
from patient_records.cli.patient_commands import patients_group
from patient_records.config import Config, load_config
from patient_records.logging_audit import configure_logging
from patient_records.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="patient-records")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact patient names and credentials from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """Patient Records - clinic patient roster and record editor.

    Common usage:

        # Start the local mock API (separate terminal)
        patient-records mock start

        # Log in once; the session token is kept for later commands
        patient-records login --username admin

        # Roster with statistics
        patient-records patients list --search shaw

        # Create a patient from a record file
        patient-records patients save new-patient.json

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_config(config)
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["config"] = settings
    ctx.obj["verbose"] = verbose

    # Command-line flags win over the configuration file
    configure_logging(
        level="DEBUG" if verbose else settings.logging.level,
        log_file=log_file or settings.logging.log_file,
        redact_pii=redact_pii or settings.logging.redact_pii,
    )


for command in (login, logout, patients_group, mock_group):
    cli.add_command(command)


def _settings_summary(settings: Config) -> list[tuple[str, list[tuple[str, object]]]]:
    transport = settings.transport
    return [
        ("API", [("Base URL", settings.api.base_url)]),
        ("Transport", [
            ("Verify TLS", transport.verify_tls),
            ("Timeouts", f"{transport.timeout_connect}s connect, {transport.timeout_read}s read"),
            ("Retries", transport.max_retries),
        ]),
        ("Logging", [
            ("Level", settings.logging.level),
            ("Log file", settings.logging.log_file),
            ("Redact PII", settings.logging.redact_pii),
        ]),
        ("Session", [("Token file", settings.session.token_file)]),
    ]


@cli.group()
def config() -> None:
    """Inspect the client configuration."""


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Check CONFIG_FILE and print the effective settings.

    Example:
        patient-records config validate config/config.json
    """
    try:
        settings = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)

    click.echo(click.style("✓", fg="green", bold=True) + f" Configuration is valid: {config_file}")
    for section, rows in _settings_summary(settings):
        click.echo(f"\n{section}:")
        for label, value in rows:
            click.echo(f"  {label + ':':<12} {value}")


@cli.command()
def version() -> None:
    """Print the client version."""
    click.echo(f"patient-records version {__version__}")


if __name__ == "__main__":
    cli()
