"""Health detail data models.

A patient carries exactly one active health detail form, selected by its
health type. The three variants share blood pressure, weight, description
and report-attachment fields; Diabetic and Cardiac share the same clinical
history fields and differ only in their identity field.

Numeric fields are held as display strings and dates as YYYY-MM-DD strings
(or "") so the form can hold partially entered values; conversion to wire
types happens in records.detail_mapper.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from patient_records.models.patient import HealthType


class TriState(Enum):
    """Answer to a yes/no question that may not have been answered yet."""

    YES = "yes"
    NO = "no"
    UNSET = "unset"

    @classmethod
    def from_wire(cls, value: Optional[bool]) -> "TriState":
        """Convert a wire boolean (or null/absent) to a TriState.

        Args:
            value: True, False or None

        Returns:
            YES, NO or UNSET
        """
        if value is None:
            return cls.UNSET
        return cls.YES if value else cls.NO

    def to_wire(self) -> Optional[bool]:
        """Convert to the wire representation (True, False or None)."""
        if self is TriState.YES:
            return True
        if self is TriState.NO:
            return False
        return None


@dataclass
class ReportAttachment:
    """A local report file pending upload.

    Only its name is ever submitted; the bytes stay on disk.

    Attributes:
        path: Local path of the file
        name: File name shown to the user and submitted as the report name
    """

    path: Path
    name: str


@dataclass
class _DetailBase:
    blood_pressure: str = ""
    weight: str = ""
    description: str = ""
    report: Optional[ReportAttachment] = None
    report_name: str = ""
    report_url: str = ""
    # Correlates the detail with its create/update target on the API
    detail_id: Optional[int] = None


@dataclass
class MaternityDetail(_DetailBase):
    """Maternity health detail.

    Attributes:
        last_menstrual_period: YYYY-MM-DD (required)
        weeks: Weeks of pregnancy as a display string
        significant_history: Whether there is significant history; a YES answer
            makes the description mandatory
        maternity_id: Variant identity assigned by the API
    """

    last_menstrual_period: str = ""
    weeks: str = ""
    significant_history: TriState = TriState.UNSET
    maternity_id: Optional[int] = None


@dataclass
class _ClinicalHistoryDetail(_DetailBase):
    heart_rate: str = ""
    current_symptoms: str = ""
    treatment_date: str = ""
    family_history: str = ""
    has_medical_history: TriState = TriState.UNSET
    previous_doctor: str = ""
    hospital_details: str = ""
    last_diagnosed_date: str = ""


@dataclass
class DiabeticDetail(_ClinicalHistoryDetail):
    """Diabetic health detail.

    A NO medical-history answer requires a description; a YES answer requires
    previous doctor, hospital details and last diagnosed date.
    """

    diabetic_id: Optional[int] = None


@dataclass
class CardiacDetail(_ClinicalHistoryDetail):
    """Cardiac health detail. Same fields and rules as DiabeticDetail."""

    cardiac_id: Optional[int] = None


HealthDetail = Union[MaternityDetail, DiabeticDetail, CardiacDetail]

DETAIL_CLASSES: dict[HealthType, type] = {
    HealthType.MATERNITY: MaternityDetail,
    HealthType.DIABETIC: DiabeticDetail,
    HealthType.CARDIAC: CardiacDetail,
}


def empty_detail(health_type: HealthType) -> HealthDetail:
    """Construct a fresh, empty detail for the given health type."""
    return DETAIL_CLASSES[health_type]()


def variant_identity(detail: HealthDetail) -> Optional[int]:
    """Return the variant-specific identity field of a detail."""
    if isinstance(detail, MaternityDetail):
        return detail.maternity_id
    if isinstance(detail, DiabeticDetail):
        return detail.diabetic_id
    if isinstance(detail, CardiacDetail):
        return detail.cardiac_id
    raise TypeError(f"Unsupported health detail type: {type(detail).__name__}")


def attach_report(detail: HealthDetail, path: Path) -> None:
    """Hold a local report file on the detail until the record is saved.

    Args:
        detail: Detail to attach the report to
        path: Local file path

    Raises:
        FileNotFoundError: If the path does not point to a file
    """
    if not path.is_file():
        raise FileNotFoundError(f"Report file not found: {path}")
    detail.report = ReportAttachment(path=path, name=path.name)
    detail.report_name = path.name


def clear_report(detail: HealthDetail) -> None:
    """Drop any attached or previously uploaded report from the detail."""
    detail.report = None
    detail.report_name = ""
    detail.report_url = ""
