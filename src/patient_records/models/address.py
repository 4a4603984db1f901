"""Address data model."""

from dataclasses import dataclass
from typing import Any, Optional

# Only the current address is modelled by the client
ADDRESS_TYPE_CURRENT = "Current"

# Field name -> accepted wire keys, in lookup order
_ADDRESS_ALIASES = {
    "home_flat_no": ("homeFlatNo", "homeFlatNumber", "flatNo"),
    "street_no": ("streetNo", "streetNumber", "street"),
    "town": ("town", "city", "townCity"),
    "full_address": ("fullAddress", "address", "completeAddress"),
}


def _first_present(payload: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = payload.get(key)
        if value:
            return str(value)
    return ""


@dataclass
class Address:
    """Current address of a patient. All four fields are required on save.

    Attributes:
        home_flat_no: Home or flat number
        street_no: Street
        town: Town or city
        full_address: Complete postal address
    """

    home_flat_no: str = ""
    street_no: str = ""
    town: str = ""
    full_address: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Address":
        """Build an Address from an API record, accepting legacy key names.

        Args:
            payload: Address JSON object (may be empty)

        Returns:
            Address with missing fields set to ""
        """
        return cls(**{
            field: _first_present(payload, keys)
            for field, keys in _ADDRESS_ALIASES.items()
        })

    def to_api(self, patient_id: int, address_id: Optional[int] = None) -> dict[str, Any]:
        """Build the POST/PUT payload for this address.

        Args:
            patient_id: Owning patient identity
            address_id: Existing address identity, or None when creating

        Returns:
            JSON-serialisable payload
        """
        payload: dict[str, Any] = {
            "patientId": patient_id,
            "type": ADDRESS_TYPE_CURRENT,
            "homeFlatNo": self.home_flat_no or None,
            "streetNo": self.street_no or None,
            "town": self.town or None,
            "fullAddress": self.full_address or None,
        }
        if address_id is not None:
            payload["addressId"] = address_id
        return payload
