"""Patient roster with summary statistics, search and delete."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from patient_records.logging_audit import log_audit_event
from patient_records.models.patient import Patient
from patient_records.transport.api_client import PatientRecordsClient
from patient_records.utils.exceptions import PatientRecordsError

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = "Failed to fetch patients. Please try again."


@dataclass
class PatientStats:
    """Roster summary shown above the patient table."""

    total: int = 0
    male: int = 0
    female: int = 0
    average_age: int = 0


def compute_stats(patients: list[Patient]) -> PatientStats:
    """Count patients by gender and compute the average age.

    Gender is compared case-insensitively. The average is rounded half-up
    to a whole number of years and is 0 for an empty roster.

    Example:
        >>> compute_stats([Patient(1, "A", "B", age=20), Patient(2, "C", "D", age=30),
        ...                Patient(3, "E", "F", age=41)]).average_age
        30
    """
    total = len(patients)
    male = sum(1 for p in patients if p.gender.lower() == "male")
    female = sum(1 for p in patients if p.gender.lower() == "female")

    if total == 0:
        return PatientStats()

    mean = sum(p.age for p in patients) / total
    return PatientStats(
        total=total,
        male=male,
        female=female,
        average_age=int(math.floor(mean + 0.5)),
    )


def filter_patients(patients: list[Patient], term: str) -> list[Patient]:
    """Return patients whose name, father's name or id contains ``term``."""
    needle = term.strip().lower()
    if not needle:
        return list(patients)

    matches = []
    for patient in patients:
        if (
            needle in patient.full_name.lower()
            or needle in patient.father_name.lower()
            or (patient.patient_id is not None and needle in str(patient.patient_id))
        ):
            matches.append(patient)
    return matches


class RosterView:
    """Roster of all patients as last fetched from the API.

    Attributes:
        client: API client
        patients: Patients from the last successful refresh
        stats: Statistics over ``patients``
        error: User-facing message from the last failed refresh, if any
    """

    def __init__(self, client: PatientRecordsClient) -> None:
        self.client = client
        self.patients: list[Patient] = []
        self.stats = PatientStats()
        self.error: Optional[str] = None

    def refresh(self) -> list[Patient]:
        """Fetch the roster and recompute statistics.

        Raises:
            PatientRecordsError: If the roster cannot be fetched; ``error``
                holds the message to display
        """
        try:
            payload = self.client.patients.list()
        except PatientRecordsError as e:
            logger.error(f"Roster refresh failed: {e}")
            self.error = FETCH_ERROR_MESSAGE
            raise

        self.patients = [Patient.from_api(item) for item in payload if isinstance(item, dict)]
        self.stats = compute_stats(self.patients)
        self.error = None
        logger.info(f"Roster refreshed: {self.stats.total} patient(s)")
        return self.patients

    def search(self, term: str) -> list[Patient]:
        return filter_patients(self.patients, term)

    def delete(self, patient_id: Any, confirm: Callable[[], bool]) -> bool:
        """Delete a patient after confirmation.

        Args:
            patient_id: Patient to delete
            confirm: Asked before anything is sent; False aborts the delete

        Returns:
            True if the patient was deleted, False if the user declined
        """
        if not confirm():
            logger.info(f"Delete of patient {patient_id} cancelled")
            return False

        try:
            self.client.patients.delete(patient_id)
        except PatientRecordsError as e:
            log_audit_event("PATIENT_DELETED", {
                "status": "failure",
                "patient_id": patient_id,
                "error_message": str(e),
            })
            raise

        self.patients = [p for p in self.patients if p.patient_id != patient_id]
        self.stats = compute_stats(self.patients)
        log_audit_event("PATIENT_DELETED", {"status": "success", "patient_id": patient_id})
        return True
