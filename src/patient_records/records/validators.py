"""Field validators and the record validation rule set.

All functions here are pure: they inspect values and return error messages,
never raise and never perform I/O. An empty string means "valid".
"""

from typing import Any

from patient_records.models.health_detail import (
    CardiacDetail,
    DiabeticDetail,
    MaternityDetail,
    TriState,
)
from patient_records.models.record import RecordForm


def validate_required(value: Any, label: str) -> str:
    """Check that a value is present.

    A value is missing if it is None or its string form trims to empty.

    Args:
        value: Value to check
        label: Human-readable field label used in the message

    Returns:
        "<label> is required" when missing, otherwise ""

    Example:
        >>> validate_required("  ", "First Name")
        'First Name is required'
        >>> validate_required("Ada", "First Name")
        ''
    """
    if value is None or str(value).strip() == "":
        return f"{label} is required"
    return ""


def validate_number(value: Any, label: str) -> str:
    """Check that a value is a positive number.

    Args:
        value: Number (or numeric string) to check
        label: Human-readable field label used in the message

    Returns:
        "Valid <label> is required" when absent, non-numeric or <= 0, otherwise ""

    Example:
        >>> validate_number(0, "Age")
        'Valid Age is required'
        >>> validate_number(5, "Age")
        ''
    """
    message = f"Valid {label} is required"
    if value is None or isinstance(value, bool):
        return message
    try:
        number = float(value)
    except (TypeError, ValueError):
        return message
    if not number > 0:
        return message
    return ""


def validate_record(form: RecordForm) -> dict[str, str]:
    """Apply the full save-time rule set to a record form.

    Always required: first name, last name, father's name, a positive age,
    gender, the four current-address fields, blood pressure and weight.
    The remaining rules depend on the selected health type.

    Args:
        form: Record form to validate

    Returns:
        Mapping of field name to error message; empty when the form is valid
    """
    errors: dict[str, str] = {}

    checks = [
        ("first_name", validate_required(form.personal.first_name, "First Name")),
        ("last_name", validate_required(form.personal.last_name, "Last Name")),
        ("father_name", validate_required(form.personal.father_name, "Father's Name")),
        ("age", validate_number(form.personal.age, "Age")),
        ("gender", validate_required(form.personal.gender, "Gender")),
        ("current_home_flat_no",
         validate_required(form.address.home_flat_no, "Current Home/Flat Number")),
        ("current_street_no", validate_required(form.address.street_no, "Current Street")),
        ("current_town", validate_required(form.address.town, "Current Town/City")),
        ("current_full_address",
         validate_required(form.address.full_address, "Current Full Address")),
    ]

    detail = form.active_detail
    checks.append(("blood_pressure", validate_required(detail.blood_pressure, "Blood Pressure")))
    checks.append(("weight", validate_required(detail.weight, "Weight")))

    if isinstance(detail, MaternityDetail):
        checks.extend(_maternity_checks(detail))
    elif isinstance(detail, (DiabeticDetail, CardiacDetail)):
        checks.extend(_clinical_history_checks(detail))
    else:
        raise TypeError(f"Unsupported health detail type: {type(detail).__name__}")

    for field_name, message in checks:
        if message:
            errors[field_name] = message

    return errors


def _maternity_checks(detail: MaternityDetail) -> list[tuple[str, str]]:
    checks = [
        ("last_menstrual_period",
         validate_required(detail.last_menstrual_period, "Last Menstrual Period")),
    ]

    answer = detail.significant_history
    if answer is TriState.YES:
        if validate_required(detail.description, "Description"):
            checks.append((
                "description",
                "Description is required when Significant History is Yes",
            ))
    elif answer not in (TriState.NO, TriState.UNSET):
        raise ValueError(f"Unsupported significant history answer: {answer!r}")

    return checks


def _clinical_history_checks(
    detail: DiabeticDetail | CardiacDetail,
) -> list[tuple[str, str]]:
    checks = [
        ("heart_rate", validate_required(detail.heart_rate, "Heart Rate")),
        ("current_symptoms", validate_required(detail.current_symptoms, "Current Symptoms")),
        ("family_history", validate_required(detail.family_history, "Family History")),
    ]

    answer = detail.has_medical_history
    if answer is TriState.NO:
        if validate_required(detail.description, "Description"):
            checks.append((
                "description",
                "Description is required when Medical History is No",
            ))
    elif answer is TriState.YES:
        checks.extend([
            ("previous_doctor",
             validate_required(detail.previous_doctor, "Previous Doctor")),
            ("hospital_details",
             validate_required(detail.hospital_details, "Hospital Details")),
            ("last_diagnosed_date",
             validate_required(detail.last_diagnosed_date, "Last Diagnosed Date")),
        ])
    elif answer is not TriState.UNSET:
        raise ValueError(f"Unsupported medical history answer: {answer!r}")

    return checks
