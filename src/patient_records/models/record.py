"""Record form model: the editor's in-memory state for one patient."""

from dataclasses import dataclass, field
from typing import Optional

from patient_records.models.address import Address
from patient_records.models.health_detail import HealthDetail, empty_detail
from patient_records.models.patient import HealthType, PersonalInfo


def _empty_details() -> dict[HealthType, HealthDetail]:
    return {health_type: empty_detail(health_type) for health_type in HealthType}


@dataclass
class RecordForm:
    """Everything the record editor holds for one patient.

    All three health detail variants are kept in ``details``; only the one
    selected by ``health_type`` is validated and submitted.

    Attributes:
        patient_id: Patient identity (None for a new patient)
        personal: Personal information section
        address: Current address section
        address_id: Identity of the existing current address (None = create)
        health_type: Selected health detail variant
        details: One detail per health type
    """

    patient_id: Optional[int] = None
    personal: PersonalInfo = field(default_factory=PersonalInfo)
    address: Address = field(default_factory=Address)
    address_id: Optional[int] = None
    health_type: HealthType = HealthType.MATERNITY
    details: dict[HealthType, HealthDetail] = field(default_factory=_empty_details)

    @property
    def active_detail(self) -> HealthDetail:
        return self.details[self.health_type]

    @property
    def is_new(self) -> bool:
        return self.patient_id is None
