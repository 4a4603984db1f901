"""In-memory record store backing the mock REST API."""

import itertools
import secrets
import threading
from typing import Any, Optional


class RecordStore:
    """Thread-safe in-memory patients, addresses, health details and tokens.

    Records are stored as camelCase JSON objects exactly as the API returns
    them. Every accessor returns copies so callers cannot mutate the store.

    Example:
        >>> store = RecordStore()
        >>> patient = store.create_patient({"firstName": "Ada", "lastName": "Shaw"})
        >>> store.get_patient(patient["patientId"])["firstName"]
        'Ada'
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._patients: dict[int, dict[str, Any]] = {}
        self._addresses: dict[int, dict[str, Any]] = {}
        self._details: dict[int, dict[str, Any]] = {}
        self._tokens: dict[str, str] = {}
        self._patient_ids = itertools.count(1)
        self._address_ids = itertools.count(1)
        self._detail_ids = itertools.count(1)

    # Tokens

    def issue_token(self, username: str) -> str:
        token = secrets.token_urlsafe(24)
        with self._lock:
            self._tokens[token] = username
        return token

    def is_valid_token(self, token: str) -> bool:
        with self._lock:
            return token in self._tokens

    # Patients

    def list_patients(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(p) for p in self._patients.values()]

    def get_patient(self, patient_id: int) -> Optional[dict[str, Any]]:
        with self._lock:
            patient = self._patients.get(patient_id)
            return dict(patient) if patient else None

    def create_patient(self, data: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            patient_id = next(self._patient_ids)
            record = {**data, "patientId": patient_id}
            self._patients[patient_id] = record
            return dict(record)

    def update_patient(self, patient_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._lock:
            if patient_id not in self._patients:
                return None
            record = {**self._patients[patient_id], **data, "patientId": patient_id}
            self._patients[patient_id] = record
            return dict(record)

    def delete_patient(self, patient_id: int) -> bool:
        """Delete a patient together with its addresses and health details."""
        with self._lock:
            if self._patients.pop(patient_id, None) is None:
                return False
            self._addresses = {
                k: v for k, v in self._addresses.items() if v.get("patientId") != patient_id
            }
            self._details = {
                k: v for k, v in self._details.items() if v.get("patientId") != patient_id
            }
            return True

    def has_patient(self, patient_id: Any) -> bool:
        with self._lock:
            return patient_id in self._patients

    # Addresses

    def list_addresses(self, patient_id: Optional[int] = None) -> list[dict[str, Any]]:
        with self._lock:
            return [
                dict(a) for a in self._addresses.values()
                if patient_id is None or a.get("patientId") == patient_id
            ]

    def create_address(self, data: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            address_id = next(self._address_ids)
            record = {**data, "addressId": address_id}
            self._addresses[address_id] = record
            return dict(record)

    def update_address(self, address_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._lock:
            if address_id not in self._addresses:
                return None
            record = {**self._addresses[address_id], **data, "addressId": address_id}
            self._addresses[address_id] = record
            return dict(record)

    # Health details

    def list_details(self, patient_id: Optional[int] = None) -> list[dict[str, Any]]:
        with self._lock:
            return [
                dict(d) for d in self._details.values()
                if patient_id is None or d.get("patientId") == patient_id
            ]

    def create_detail(self, data: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            detail_id = next(self._detail_ids)
            record = {**data, "detailId": detail_id}
            self._details[detail_id] = record
            return dict(record)

    def update_detail(self, detail_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._lock:
            if detail_id not in self._details:
                return None
            record = {**self._details[detail_id], **data, "detailId": detail_id}
            self._details[detail_id] = record
            return dict(record)
