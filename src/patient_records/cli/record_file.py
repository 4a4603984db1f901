"""JSON record files for ``patients save``.

A record file fills in the record form the way a user would in an editor.
Every section and field is optional; fields that are present replace the
form's current value, everything else keeps what was loaded::

    {
      "health_type": "Diabetic",
      "personal": {"first_name": "Ada", "last_name": "Shaw", "age": 34},
      "address": {"town": "Leeds"},
      "health_detail": {
        "blood_pressure": "120/80",
        "weight": 68.5,
        "has_medical_history": "yes",
        "report": "reports/hba1c.pdf"
      }
    }

Tri-state answers accept true/false/null or "yes"/"no"/"unset". A relative
``report`` path is resolved against the record file's directory; null drops
any existing report.
"""

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

from patient_records.models.address import Address
from patient_records.models.health_detail import (
    HealthDetail,
    TriState,
    attach_report,
    clear_report,
)
from patient_records.models.patient import HealthType, PersonalInfo
from patient_records.models.record import RecordForm
from patient_records.utils.exceptions import RecordFileError

logger = logging.getLogger(__name__)

SECTIONS = {"health_type", "personal", "address", "health_detail"}

# Assigned by the API or managed through "report"
_READ_ONLY_DETAIL_FIELDS = {
    "detail_id",
    "maternity_id",
    "diabetic_id",
    "cardiac_id",
    "report_name",
}

_TRI_STATE_WORDS = {
    "yes": TriState.YES,
    "no": TriState.NO,
    "unset": TriState.UNSET,
    "": TriState.UNSET,
}


def load_record_file(path: Path) -> dict[str, Any]:
    """Read a record file.

    Raises:
        RecordFileError: If the file cannot be read or is not a JSON object
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RecordFileError(f"Record file '{path}' is not valid JSON: {e}") from e
    except OSError as e:
        raise RecordFileError(f"Cannot read record file '{path}': {e}") from e

    if not isinstance(data, dict):
        raise RecordFileError(f"Record file '{path}' must contain a JSON object")

    unknown = set(data) - SECTIONS
    if unknown:
        raise RecordFileError(
            f"Unknown section(s) in record file: {', '.join(sorted(unknown))}. "
            f"Expected: {', '.join(sorted(SECTIONS))}"
        )
    return data


def parse_health_type(value: Any) -> HealthType:
    for health_type in HealthType:
        if isinstance(value, str) and value.strip().lower() == health_type.value.lower():
            return health_type
    raise RecordFileError(
        f"Invalid health_type '{value}'. Must be one of: "
        f"{', '.join(h.value for h in HealthType)}"
    )


def _parse_tri_state(name: str, value: Any) -> TriState:
    if value is None or isinstance(value, bool):
        return TriState.from_wire(value)
    if isinstance(value, str) and value.strip().lower() in _TRI_STATE_WORDS:
        return _TRI_STATE_WORDS[value.strip().lower()]
    raise RecordFileError(f"Invalid value for {name}: {value!r}. Use yes, no or unset")


def _as_text(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise RecordFileError(f"Invalid value for {name}: {value!r}")
    return str(value)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise RecordFileError(f"Section '{key}' must be a JSON object")
    return section


def _check_fields(section_name: str, section: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(section) - allowed
    if unknown:
        raise RecordFileError(
            f"Unknown field(s) in '{section_name}': {', '.join(sorted(unknown))}"
        )


def _apply_personal(personal: PersonalInfo, section: dict[str, Any]) -> None:
    _check_fields("personal", section, {f.name for f in fields(PersonalInfo)})
    for name, value in section.items():
        if name == "age":
            if value is None:
                personal.age = 0
            elif isinstance(value, int) and not isinstance(value, bool):
                personal.age = value
            elif isinstance(value, str) and value.strip().isdigit():
                personal.age = int(value.strip())
            else:
                raise RecordFileError(f"Invalid value for age: {value!r}")
        else:
            setattr(personal, name, _as_text(name, value))


def _apply_address(address: Address, section: dict[str, Any]) -> None:
    _check_fields("address", section, {f.name for f in fields(Address)})
    for name, value in section.items():
        setattr(address, name, _as_text(name, value))


def _apply_detail(detail: HealthDetail, section: dict[str, Any], base_dir: Path) -> None:
    allowed = {f.name for f in fields(detail)} - _READ_ONLY_DETAIL_FIELDS
    _check_fields("health_detail", section, allowed)

    for name, value in section.items():
        if name == "report":
            if value is None:
                clear_report(detail)
                continue
            report_path = Path(_as_text(name, value))
            if not report_path.is_absolute():
                report_path = base_dir / report_path
            try:
                attach_report(detail, report_path)
            except FileNotFoundError as e:
                raise RecordFileError(str(e)) from e
        elif isinstance(getattr(detail, name), TriState):
            setattr(detail, name, _parse_tri_state(name, value))
        else:
            setattr(detail, name, _as_text(name, value))


def apply_record_data(form: RecordForm, data: dict[str, Any], base_dir: Path) -> None:
    """Apply record file data onto a form.

    Args:
        form: Form to modify (new or loaded)
        data: Parsed record file
        base_dir: Directory relative report paths are resolved against

    Raises:
        RecordFileError: On unknown fields or values of the wrong kind
    """
    if "health_type" in data:
        form.health_type = parse_health_type(data["health_type"])

    _apply_personal(form.personal, _section(data, "personal"))
    _apply_address(form.address, _section(data, "address"))
    _apply_detail(form.active_detail, _section(data, "health_detail"), base_dir)

    logger.debug(
        f"Record file applied ({form.health_type.value}, "
        f"{'new patient' if form.is_new else f'patient {form.patient_id}'})"
    )
