"""Patient data models.

This module defines the Patient record as returned by the REST API, the
editable personal-information section of the record form, and the
Gender/HealthType enumerations shared by the rest of the package.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Gender(str, Enum):
    """Administrative gender as submitted to the API."""

    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class HealthType(str, Enum):
    """Condition-specific health detail form attached to a patient."""

    MATERNITY = "Maternity"
    DIABETIC = "Diabetic"
    CARDIAC = "Cardiac"


_HEALTH_TYPE_KEYWORDS = [
    (HealthType.MATERNITY, ("maternity", "pregnancy")),
    (HealthType.DIABETIC, ("diabetic", "diabetes")),
    (HealthType.CARDIAC, ("cardiac", "heart")),
]


def detect_health_type(value: Optional[str]) -> HealthType:
    """Resolve a free-form health type label to a HealthType.

    Older records carry labels such as "Pregnancy" or "Heart disease", so
    matching is a case-insensitive substring search.

    Args:
        value: Health type label from the API, or None

    Returns:
        Matching HealthType; Maternity when absent or unrecognised

    Example:
        >>> detect_health_type("Type 2 Diabetes")
        <HealthType.DIABETIC: 'Diabetic'>
        >>> detect_health_type(None)
        <HealthType.MATERNITY: 'Maternity'>
    """
    if not value:
        return HealthType.MATERNITY

    lowered = value.lower()
    for health_type, keywords in _HEALTH_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return health_type

    return HealthType.MATERNITY


@dataclass
class Patient:
    """Patient entity as held by the roster.

    Attributes:
        patient_id: API identity (None until the patient is created)
        first_name: Patient's first name
        last_name: Patient's last name
        father_name: Father's name ("" when not recorded)
        age: Age in years
        gender: Gender label as stored by the API
        dob: Date of birth as an ISO string ("" when not recorded)
        health_type: Health type label as stored by the API (None when not set)
    """

    patient_id: Optional[int]
    first_name: str
    last_name: str
    father_name: str = ""
    age: int = 0
    gender: str = ""
    dob: str = ""
    health_type: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Patient":
        """Build a Patient from an API payload, applying roster defaults.

        Args:
            payload: JSON object returned by GET /Patients or GET /Patients/{id}

        Returns:
            Patient instance
        """
        age = payload.get("age")
        return cls(
            patient_id=payload.get("patientId"),
            first_name=payload.get("firstName") or "",
            last_name=payload.get("lastName") or "",
            father_name=payload.get("fatherName") or "",
            age=age if isinstance(age, int) else 0,
            gender=payload.get("gender") or "",
            dob=payload.get("dob") or "",
            health_type=payload.get("healthType") or None,
        )


@dataclass
class PersonalInfo:
    """Personal-information section of the record form.

    Attributes:
        first_name: First name (required)
        last_name: Last name (required)
        father_name: Father's name (required)
        age: Age in years (must be positive)
        gender: Gender label (required, "Male" for a new record)
        dob: Date of birth as YYYY-MM-DD, or "" when not recorded
    """

    first_name: str = ""
    last_name: str = ""
    father_name: str = ""
    age: int = 0
    gender: str = Gender.MALE.value
    dob: str = ""
