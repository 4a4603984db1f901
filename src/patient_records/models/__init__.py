"""Models module.

This module provides data models and dataclasses for the application.
"""

from patient_records.models.address import ADDRESS_TYPE_CURRENT, Address
from patient_records.models.health_detail import (
    CardiacDetail,
    DiabeticDetail,
    HealthDetail,
    MaternityDetail,
    ReportAttachment,
    TriState,
    attach_report,
    clear_report,
    empty_detail,
)
from patient_records.models.patient import (
    Gender,
    HealthType,
    Patient,
    PersonalInfo,
    detect_health_type,
)
from patient_records.models.record import RecordForm

__all__ = [
    "ADDRESS_TYPE_CURRENT",
    "Address",
    "CardiacDetail",
    "DiabeticDetail",
    "Gender",
    "HealthDetail",
    "HealthType",
    "MaternityDetail",
    "Patient",
    "PersonalInfo",
    "RecordForm",
    "ReportAttachment",
    "TriState",
    "attach_report",
    "clear_report",
    "detect_health_type",
    "empty_detail",
]
