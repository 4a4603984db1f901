"""Login and logout commands."""

import logging
import sys

import click

from patient_records.cli.common import build_client, report_error
from patient_records.utils.exceptions import PatientRecordsError

logger = logging.getLogger(__name__)


@click.command()
@click.option("--username", "-u", prompt=True, help="Staff username")
@click.option(
    "--password",
    "-p",
    prompt=True,
    hide_input=True,
    help="Staff password (prompted if omitted)",
)
@click.pass_context
def login(ctx: click.Context, username: str, password: str) -> None:
    """Log in and store the session token for later commands.

    Example:

        patient-records login --username nurse
    """
    with build_client(ctx) as client:
        try:
            client.login(username, password)
        except PatientRecordsError as e:
            sys.exit(report_error(e))

    click.echo(click.style("✓", fg="green", bold=True) + f" Logged in as {username}")


@click.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Forget the stored session token."""
    with build_client(ctx) as client:
        client.logout()
    click.echo("Logged out")
