"""Current-address reconciliation for the record editor.

GET /Addresses?patientId={id} is not guaranteed to filter by patient and may
answer with a list or a single object. The reconciler picks the record that
belongs to the patient and resolves its identity, which decides between
create and update on save.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from patient_records.models.address import Address

logger = logging.getLogger(__name__)


@dataclass
class ReconciledAddress:
    """Result of address reconciliation.

    Attributes:
        address: Normalised address (empty when none was found)
        address_id: Identity of the existing record, or None to create on save
    """

    address: Address
    address_id: Optional[int]


def _address_identity(record: dict[str, Any]) -> Optional[int]:
    return record.get("addressId") or record.get("id") or None


def reconcile_address(payload: Any, patient_id: int) -> ReconciledAddress:
    """Select the patient's current address from an address lookup response.

    For a list, the record whose ``patientId`` matches is used. If none matches
    but the list is not empty, the first record is used. For a single object,
    it is used only if its ``patientId`` matches.

    Args:
        payload: Parsed JSON response of GET /Addresses
        patient_id: Patient being edited

    Returns:
        ReconciledAddress; an empty address with ``address_id=None`` when
        nothing usable was returned

    Example:
        >>> result = reconcile_address(
        ...     [{"addressId": 1, "patientId": 7}, {"addressId": 2, "patientId": 9}], 9
        ... )
        >>> result.address_id
        2
    """
    record: Optional[dict[str, Any]] = None

    if isinstance(payload, list):
        records = [item for item in payload if isinstance(item, dict)]
        record = next(
            (item for item in records if item.get("patientId") == patient_id),
            None,
        )
        if record is None and records:
            # Legacy behaviour: may reuse another patient's address
            record = records[0]
            logger.warning(
                f"No address matched patient {patient_id}; falling back to the first "
                f"of {len(records)} returned record(s) "
                f"(patientId={record.get('patientId')})"
            )
    elif isinstance(payload, dict) and payload.get("patientId") == patient_id:
        record = payload

    if record is None:
        logger.debug(f"No current address found for patient {patient_id}")
        return ReconciledAddress(address=Address(), address_id=None)

    address_id = _address_identity(record)
    logger.debug(f"Resolved current address {address_id} for patient {patient_id}")
    return ReconciledAddress(address=Address.from_api(record), address_id=address_id)
