"""Record workflow: validation, mapping, address reconciliation, editor and roster."""

from patient_records.records.address_reconciler import ReconciledAddress, reconcile_address
from patient_records.records.detail_mapper import (
    detail_from_api,
    detail_to_api,
    format_date_for_input,
    select_detail_payload,
    to_iso_datetime,
)
from patient_records.records.orchestrator import EditorState, RecordEditor, SaveStep
from patient_records.records.roster import (
    PatientStats,
    RosterView,
    compute_stats,
    filter_patients,
)
from patient_records.records.validators import (
    validate_number,
    validate_record,
    validate_required,
)

__all__ = [
    "EditorState",
    "PatientStats",
    "ReconciledAddress",
    "RecordEditor",
    "RosterView",
    "SaveStep",
    "compute_stats",
    "detail_from_api",
    "detail_to_api",
    "filter_patients",
    "format_date_for_input",
    "reconcile_address",
    "select_detail_payload",
    "to_iso_datetime",
    "validate_number",
    "validate_record",
    "validate_required",
]
