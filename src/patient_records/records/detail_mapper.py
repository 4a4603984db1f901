"""Health detail mapping between the REST wire shape and the record form.

Inbound (API -> form) normalises numbers to display strings, date-times to
YYYY-MM-DD and nullable booleans to TriState. Outbound (form -> API) parses
them back. Malformed values become "" inbound and None outbound; nothing in
this module raises on bad data.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

from patient_records.models.health_detail import (
    CardiacDetail,
    DiabeticDetail,
    HealthDetail,
    MaternityDetail,
    TriState,
    variant_identity,
)
from patient_records.models.patient import HealthType

logger = logging.getLogger(__name__)

# fromisoformat on 3.10 only takes 3 or 6 fractional digits; .NET sends 7
_FRACTIONAL_SECONDS = re.compile(r"(?<=:\d{2})\.(\d+)")


def format_date_for_input(value: Any) -> str:
    """Convert an API date or date-time to a YYYY-MM-DD string.

    Offset-aware values are converted to UTC before the date is taken.

    Args:
        value: ISO 8601 date or date-time string (or None)

    Returns:
        YYYY-MM-DD, or "" if the value is absent or cannot be parsed

    Example:
        >>> format_date_for_input("2024-03-05T10:30:00Z")
        '2024-03-05'
        >>> format_date_for_input("not a date")
        ''
    """
    if not value or not isinstance(value, str):
        return ""

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTIONAL_SECONDS.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return ""

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def to_iso_datetime(value: str) -> Optional[str]:
    """Convert a YYYY-MM-DD form date to the ISO date-time the API expects.

    Args:
        value: Form date string

    Returns:
        "YYYY-MM-DDT00:00:00.000Z", or None when empty or malformed

    Example:
        >>> to_iso_datetime("2024-03-05")
        '2024-03-05T00:00:00.000Z'
    """
    date_part = format_date_for_input(value)
    if not date_part:
        return None
    return f"{date_part}T00:00:00.000Z"


def _display_number(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip() if _parse_float(value) is not None else ""
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def _parse_float(value: str) -> Optional[float]:
    if not value or not str(value).strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: str) -> Optional[int]:
    # Accepts "72" and "72.0"; anything else is treated as not entered
    number = _parse_float(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _display_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return _display_number(value)


def select_detail_payload(payload: Any, patient_id: int) -> dict[str, Any]:
    """Pick the detail record for a patient from a GET /PatientDetails response.

    The endpoint answers with either a list or a single object.

    Args:
        payload: Parsed JSON response
        patient_id: Patient the detail should belong to

    Returns:
        The matching record, else the first record, else {}
    """
    if isinstance(payload, list):
        records = [item for item in payload if isinstance(item, dict)]
        for item in records:
            if item.get("patientId") == patient_id:
                return item
        return records[0] if records else {}
    if isinstance(payload, dict):
        return payload
    return {}


def detail_from_api(payload: dict[str, Any], health_type: HealthType) -> HealthDetail:
    """Build the form detail for a health type from an API detail record.

    Args:
        payload: Detail JSON object (may be empty)
        health_type: Variant to build

    Returns:
        Populated MaternityDetail, DiabeticDetail or CardiacDetail

    Raises:
        ValueError: If health_type is not a known HealthType
    """
    common = {
        # Free text such as "120/80", not a number
        "blood_pressure": _display_text(payload.get("bloodPressure")),
        "weight": _display_number(payload.get("weight")),
        "description": _text(payload.get("description")),
        "report": None,
        "report_name": _text(payload.get("report")),
        "report_url": "",
    }

    if health_type is HealthType.MATERNITY:
        maternity_id = payload.get("maternityId")
        return MaternityDetail(
            **common,
            detail_id=payload.get("detailId") or maternity_id,
            last_menstrual_period=format_date_for_input(payload.get("lastMenstrualPeriod")),
            weeks=_display_number(payload.get("numberOfWeeks")),
            significant_history=TriState.from_wire(payload.get("significantHistory")),
            maternity_id=maternity_id,
        )

    if health_type is HealthType.DIABETIC:
        diabetic_id = payload.get("diabeticId")
        return DiabeticDetail(
            **common,
            **_clinical_history_from_api(payload),
            detail_id=payload.get("detailId") or diabetic_id,
            diabetic_id=diabetic_id,
        )

    if health_type is HealthType.CARDIAC:
        cardiac_id = payload.get("cardiacId")
        return CardiacDetail(
            **common,
            **_clinical_history_from_api(payload),
            detail_id=payload.get("detailId") or cardiac_id,
            cardiac_id=cardiac_id,
        )

    raise ValueError(f"Unsupported health type: {health_type!r}")


def _clinical_history_from_api(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "heart_rate": _display_number(payload.get("heartRate")),
        "current_symptoms": _text(payload.get("currentSymptoms")),
        "treatment_date": format_date_for_input(payload.get("treatmentDate")),
        "family_history": _text(payload.get("familyHistory")),
        "has_medical_history": TriState.from_wire(payload.get("medicalHistory")),
        "previous_doctor": _text(payload.get("previousDoctor")),
        "hospital_details": _text(payload.get("hospitalDetails")),
        "last_diagnosed_date": format_date_for_input(payload.get("lastDiagnosedDate")),
    }


def detail_to_api(
    detail: HealthDetail,
    health_type: HealthType,
    patient_id: int,
) -> dict[str, Any]:
    """Build the POST/PUT /PatientDetails payload for a form detail.

    The attached report file itself is never part of the payload; only its
    name (or the URL of an already uploaded report) is submitted.

    Args:
        detail: Form detail of the active variant
        health_type: Active health type
        patient_id: Owning patient identity

    Returns:
        JSON-serialisable payload including ``detailId`` (None when creating)

    Raises:
        ValueError: If health_type is not a known HealthType
        TypeError: If detail does not match health_type
    """
    expected = {
        HealthType.MATERNITY: MaternityDetail,
        HealthType.DIABETIC: DiabeticDetail,
        HealthType.CARDIAC: CardiacDetail,
    }.get(health_type)
    if expected is None:
        raise ValueError(f"Unsupported health type: {health_type!r}")
    if not isinstance(detail, expected):
        raise TypeError(
            f"{health_type.value} record requires {expected.__name__}, "
            f"got {type(detail).__name__}"
        )

    report_name = detail.report.name if detail.report is not None else detail.report_name

    payload: dict[str, Any] = {
        "patientId": patient_id,
        "healthType": health_type.value,
        "report": report_name or detail.report_url or None,
        "bloodPressure": detail.blood_pressure or None,
        "weight": _parse_float(detail.weight),
        "description": detail.description or None,
        "detailId": detail.detail_id or variant_identity(detail),
    }

    if isinstance(detail, MaternityDetail):
        payload.update({
            "lastMenstrualPeriod": to_iso_datetime(detail.last_menstrual_period),
            "numberOfWeeks": _parse_int(detail.weeks),
            "significantHistory": detail.significant_history.to_wire(),
        })
    else:
        payload.update({
            "heartRate": _parse_int(detail.heart_rate),
            "currentSymptoms": detail.current_symptoms or None,
            "treatmentDate": to_iso_datetime(detail.treatment_date),
            "familyHistory": detail.family_history or None,
            "medicalHistory": detail.has_medical_history.to_wire(),
            "previousDoctor": detail.previous_doctor or None,
            "hospitalDetails": detail.hospital_details or None,
            "lastDiagnosedDate": to_iso_datetime(detail.last_diagnosed_date),
        })

    logger.debug(
        f"Mapped {health_type.value} detail for patient {patient_id} "
        f"(detailId={payload['detailId']})"
    )
    return payload
