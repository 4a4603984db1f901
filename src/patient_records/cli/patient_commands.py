"""Patient roster and record editor commands.

This module provides the ``patients`` command group: roster listing with
summary statistics, showing a loaded record, saving a record from a JSON
record file and deleting a patient.
"""

import logging
import sys
from dataclasses import fields
from pathlib import Path
from typing import Optional

import click

from patient_records.cli.common import build_client, report_error
from patient_records.cli.record_file import apply_record_data, load_record_file
from patient_records.models.health_detail import HealthDetail, TriState
from patient_records.models.record import RecordForm
from patient_records.records.orchestrator import EditorState, RecordEditor
from patient_records.records.roster import PatientStats, RosterView
from patient_records.utils.exceptions import PatientRecordsError

logger = logging.getLogger(__name__)

# Form field -> label, in display order
PERSONAL_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "father_name": "Father's name",
    "age": "Age",
    "gender": "Gender",
    "dob": "Date of birth",
}
ADDRESS_LABELS = {
    "home_flat_no": "Home/flat no",
    "street_no": "Street",
    "town": "Town",
    "full_address": "Full address",
}
_HIDDEN_DETAIL_FIELDS = {"report", "detail_id", "maternity_id", "diabetic_id", "cardiac_id"}


def _label(name: str) -> str:
    return name.replace("_", " ").capitalize()


def _print_stats(stats: PatientStats) -> None:
    click.echo(
        f"Total patients: {stats.total}   Male: {stats.male}   "
        f"Female: {stats.female}   Average age: {stats.average_age}"
    )


def _print_section(title: str, rows: list[tuple[str, object]]) -> None:
    click.secho(f"\n{title}", bold=True)
    width = max(len(label) for label, _ in rows)
    for label, value in rows:
        click.echo(f"  {label.ljust(width)}  {value if value not in ('', None) else '-'}")


def _detail_rows(detail: HealthDetail) -> list[tuple[str, object]]:
    rows = []
    for f in fields(detail):
        if f.name in _HIDDEN_DETAIL_FIELDS:
            continue
        value = getattr(detail, f.name)
        if isinstance(value, TriState):
            value = value.value
        rows.append((_label(f.name), value))
    return rows


def _print_form(form: RecordForm) -> None:
    click.echo(f"Patient {form.patient_id if form.patient_id is not None else '(new)'}")
    _print_section(
        "Personal information",
        [(label, getattr(form.personal, name)) for name, label in PERSONAL_LABELS.items()],
    )
    _print_section(
        f"Current address (id {form.address_id if form.address_id is not None else '-'})",
        [(label, getattr(form.address, name)) for name, label in ADDRESS_LABELS.items()],
    )
    _print_section(f"{form.health_type.value} details", _detail_rows(form.active_detail))


@click.group(name="patients")
def patients_group() -> None:
    """Patient roster and record commands.

    Requires a session: run 'patient-records login' first.
    """
    pass


@patients_group.command(name="list")
@click.option("--search", "-s", "term", default="", help="Filter by name, father's name or id")
@click.pass_context
def list_patients(ctx: click.Context, term: str) -> None:
    """List patients with summary statistics.

    Examples:

        patient-records patients list

        patient-records patients list --search shaw
    """
    with build_client(ctx) as client:
        roster = RosterView(client)
        try:
            roster.refresh()
        except PatientRecordsError as e:
            click.secho(roster.error, fg="red", err=True)
            sys.exit(report_error(e))

    _print_stats(roster.stats)
    patients = roster.search(term)
    if not patients:
        click.echo("\nNo patients found.")
        return

    click.echo("")
    header = f"{'ID':>6}  {'Name':<28}  {'Father':<20}  {'Age':>3}  {'Gender':<7}  Health type"
    click.secho(header, bold=True)
    for p in patients:
        click.echo(
            f"{p.patient_id!s:>6}  {p.full_name:<28.28}  {p.father_name:<20.20}  "
            f"{p.age:>3}  {p.gender:<7}  {p.health_type or '-'}"
        )
    if term:
        click.echo(f"\n{len(patients)} of {roster.stats.total} patient(s) match '{term}'")


@patients_group.command(name="stats")
@click.pass_context
def show_stats(ctx: click.Context) -> None:
    """Show roster statistics only."""
    with build_client(ctx) as client:
        roster = RosterView(client)
        try:
            roster.refresh()
        except PatientRecordsError as e:
            click.secho(roster.error, fg="red", err=True)
            sys.exit(report_error(e))

    _print_stats(roster.stats)


@patients_group.command(name="show")
@click.argument("patient_id", type=int)
@click.pass_context
def show_patient(ctx: click.Context, patient_id: int) -> None:
    """Load a patient record as the editor would and print it."""
    with build_client(ctx) as client:
        editor = RecordEditor(client)
        if not editor.load(patient_id):
            click.secho("Failed to load patient data", fg="red", err=True)
            sys.exit(report_error(editor.last_error, patient_id=patient_id))

    for warning in editor.load_warnings:
        click.secho(f"⚠️  {warning}", fg="yellow", err=True)
    _print_form(editor.form)


@patients_group.command(name="save")
@click.argument("record_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--patient-id",
    type=int,
    default=None,
    help="Existing patient to update (omit to create a new patient)",
)
@click.pass_context
def save_patient(ctx: click.Context, record_file: Path, patient_id: Optional[int]) -> None:
    """Create or update a patient from a JSON record file.

    The file is applied onto a blank form, or onto the loaded record when
    --patient-id is given, then validated and saved as patient, address and
    health detail in that order.

    Examples:

        patient-records patients save new-patient.json

        patient-records patients save changes.json --patient-id 42
    """
    try:
        data = load_record_file(record_file)
    except PatientRecordsError as e:
        sys.exit(report_error(e))

    with build_client(ctx) as client:
        editor = RecordEditor(client)
        if patient_id is None:
            editor.start_new()
        elif not editor.load(patient_id):
            click.secho("Failed to load patient data", fg="red", err=True)
            sys.exit(report_error(editor.last_error, patient_id=patient_id))

        for warning in editor.load_warnings:
            click.secho(f"⚠️  {warning}", fg="yellow", err=True)

        try:
            apply_record_data(editor.form, data, record_file.parent)
        except PatientRecordsError as e:
            sys.exit(report_error(e))

        saved = editor.save()

    if saved:
        click.echo(
            click.style("✓", fg="green", bold=True)
            + f" Saved patient {editor.form.patient_id} ({editor.form.health_type.value})"
        )
        return

    if editor.state == EditorState.EDITING:
        click.secho("Please fix the following fields:", fg="red", err=True)
        for field_name, message in editor.errors.items():
            click.echo(f"  {field_name}: {message}", err=True)
        sys.exit(1)

    step = editor.failed_step.value if editor.failed_step else "session check"
    click.secho(f"Save failed at step: {step}", fg="red", err=True)
    if editor.completed_steps:
        click.echo(
            f"  Already saved: {', '.join(s.value for s in editor.completed_steps)}",
            err=True,
        )
    sys.exit(report_error(editor.last_error, patient_id=editor.form.patient_id))


@patients_group.command(name="delete")
@click.argument("patient_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_patient(ctx: click.Context, patient_id: int, yes: bool) -> None:
    """Delete a patient together with its address and health details."""

    def confirm() -> bool:
        return yes or click.confirm(f"Are you sure you want to delete patient {patient_id}?")

    with build_client(ctx) as client:
        roster = RosterView(client)
        try:
            deleted = roster.delete(patient_id, confirm)
        except PatientRecordsError as e:
            sys.exit(report_error(e, patient_id=patient_id))

    if deleted:
        click.echo(click.style("✓", fg="green", bold=True) + f" Deleted patient {patient_id}")
    else:
        click.echo("Delete cancelled")
