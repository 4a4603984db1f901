"""CLI commands for the mock REST API."""

import logging
from pathlib import Path

import click

from patient_records.mock_server.app import run_server
from patient_records.mock_server.config import load_config

logger = logging.getLogger(__name__)


@click.group(name="mock")
def mock_group():
    """Run the local mock of the patient-records REST API.

    The mock serves /Auth/login, /Patients, /Addresses and /PatientDetails
    under its URL prefix (default /api) from an in-memory store, plus /health.
    """


@mock_group.command(name="start")
@click.option("--host", type=str, default=None, help="Server host (overrides config file)")
@click.option("--port", type=int, default=None, help="Server port (overrides config file)")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to mock configuration file (default: mocks/config.json)",
)
@click.option("--debug", is_flag=True, help="Enable Flask debug mode")
def start_server(host: str | None, port: int | None, config: Path | None, debug: bool):
    """Start the mock API in the foreground (Ctrl+C to stop).

    Examples:

        patient-records mock start

        patient-records mock start --port 5050
    """
    try:
        server_config = load_config(config)
    except (ValueError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    host = host or server_config.host
    port = port or server_config.port
    if not 1 <= port <= 65535:
        raise click.ClickException(f"Invalid port {port}. Port must be between 1 and 65535.")

    click.echo("=" * 50)
    click.echo("Patient Records Mock API")
    click.echo("=" * 50)
    click.echo(f"Base URL:     http://{host}:{port}{server_config.url_prefix}")
    click.echo(f"Health Check: http://{host}:{port}/health")
    click.echo(f"Users:        {', '.join(sorted(server_config.users))}")
    click.echo("=" * 50)

    run_server(server_config, host=host, port=port, debug=debug)
