"""REST client for the patient-records API.

Resource groups mirror the API: ``client.patients``, ``client.addresses``,
``client.details``, plus ``client.login``. Every call except login carries
the session's bearer token.

Example:
    >>> config = load_config()
    >>> client = PatientRecordsClient(config, SessionGate())
    >>> client.login("nurse", "secret")
    >>> patients = client.patients.list()
"""

import json
import logging
import time
from typing import Any, Optional

import requests

from patient_records.config.schema import Config
from patient_records.logging_audit import log_audit_event, log_transaction
from patient_records.transport.http_client import ConnectionPool, ConnectionPoolConfig
from patient_records.transport.session import SessionGate
from patient_records.utils.exceptions import (
    ApiError,
    AuthenticationError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_ERROR = "Invalid username or password"


def _server_message(response: requests.Response) -> Optional[str]:
    """Extract the message field of a JSON error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None

    if isinstance(body, dict):
        for key in ("message", "title", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def _api_error(response: requests.Response) -> ApiError:
    server_message = _server_message(response)
    message = server_message or response.text.strip()[:200] or response.reason or "Request failed"
    return ApiError(message, status_code=response.status_code, server_message=server_message)


class PatientRecordsClient:
    """Client for the patient-records REST API.

    Attributes:
        config: Application configuration
        session: Session gate providing the bearer token
        base_url: API base URL without trailing slash
        patients: Patient endpoints
        addresses: Address endpoints
        details: Health detail endpoints
    """

    def __init__(
        self,
        config: Config,
        session: SessionGate,
        pool: Optional[ConnectionPool] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Application configuration (base URL, timeouts, TLS)
            session: Session gate holding the bearer token
            pool: Connection pool to draw the HTTP session from; one is
                created from the transport config if not provided
        """
        self.config = config
        self.session = session
        self.base_url = config.api.base_url
        self._pool = pool or ConnectionPool(
            ConnectionPoolConfig.from_transport_config(config.transport)
        )
        self._timeout = (config.transport.timeout_connect, config.transport.timeout_read)

        self.patients = PatientsApi(self)
        self.addresses = AddressesApi(self)
        self.details = PatientDetailsApi(self)

    def close(self) -> None:
        """Release pooled connections."""
        self._pool.close()

    def __enter__(self) -> "PatientRecordsClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        payload: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
        authenticate: bool = True,
        sensitive: bool = False,
    ) -> Any:
        """Send one request and return the parsed JSON body.

        Args:
            method: HTTP method
            path: Endpoint path relative to the base URL (e.g. "/Patients")
            payload: JSON body, if any
            params: Query parameters, if any
            authenticate: Whether to attach the bearer token
            sensitive: Keep request and response bodies out of the transaction log

        Returns:
            Parsed JSON body, or None for an empty response

        Raises:
            TransportError: If the request could not be sent or the body is not JSON
            ApiError: If the API answered with a non-2xx status
        """
        url = f"{self.base_url}{path}"
        headers = self.session.authorization_header() if authenticate else {}
        body = json.dumps(payload) if payload is not None else None
        logged_body = None if sensitive else body

        start_time = time.time()
        try:
            response = self._pool.get_session().request(
                method,
                url,
                data=body,
                params=params,
                headers=headers,
                timeout=self._timeout,
                verify=self.config.transport.verify_tls,
            )
        except requests.RequestException as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            log_transaction(method, url, None, request_body=logged_body, elapsed_ms=elapsed_ms)
            logger.error(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise TransportError(f"{method} {path} failed: {e}") from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        log_transaction(
            method,
            response.url or url,
            response.status_code,
            request_body=logged_body,
            response_body=None if sensitive else response.text,
            elapsed_ms=elapsed_ms,
        )

        if not response.ok:
            error = _api_error(response)
            logger.error(f"{method} {path} returned HTTP {response.status_code}: {error.message}")
            raise error

        if not response.content or not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {path} returned a non-JSON body: {response.text[:200]}"
            ) from e

    def login(self, username: str, password: str) -> str:
        """Authenticate and store the returned token in the session gate.

        Args:
            username: Staff username
            password: Staff password

        Returns:
            The bearer token

        Raises:
            AuthenticationError: If the credentials are rejected or no token is returned
            TransportError: If the API cannot be reached
        """
        try:
            result = self.request(
                "POST",
                "/Auth/login",
                payload={"username": username, "password": password},
                authenticate=False,
                sensitive=True,
            )
        except ApiError as e:
            if e.status_code is None or not 400 <= e.status_code < 500:
                raise
            message = e.server_message or DEFAULT_LOGIN_ERROR
            log_audit_event("LOGIN", {
                "status": "failure",
                "username": username,
                "error_message": message,
            })
            raise AuthenticationError(message) from e

        token = result.get("token") if isinstance(result, dict) else None
        if not token:
            raise AuthenticationError("Login response did not contain a token")

        self.session.set_token(token)
        log_audit_event("LOGIN", {"status": "success", "username": username})
        return token

    def logout(self) -> None:
        """Forget the session token."""
        self.session.clear()


class _ResourceApi:
    def __init__(self, client: PatientRecordsClient) -> None:
        self._client = client


class PatientsApi(_ResourceApi):
    """Endpoints under /Patients."""

    def list(self) -> list[dict[str, Any]]:
        """GET /Patients."""
        result = self._client.request("GET", "/Patients")
        return result if isinstance(result, list) else []

    def get(self, patient_id: int) -> dict[str, Any]:
        """GET /Patients/{id}."""
        result = self._client.request("GET", f"/Patients/{patient_id}")
        if not isinstance(result, dict):
            raise TransportError(f"GET /Patients/{patient_id} returned no patient")
        return result

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """POST /Patients; returns the created patient."""
        result = self._client.request("POST", "/Patients", payload=data)
        return result if isinstance(result, dict) else {}

    def update(self, patient_id: int, data: dict[str, Any]) -> Any:
        """PUT /Patients/{id}."""
        return self._client.request("PUT", f"/Patients/{patient_id}", payload=data)

    def delete(self, patient_id: int) -> Any:
        """DELETE /Patients/{id}."""
        return self._client.request("DELETE", f"/Patients/{patient_id}")


class AddressesApi(_ResourceApi):
    """Endpoints under /Addresses."""

    def list_for_patient(self, patient_id: int) -> Any:
        """GET /Addresses?patientId={id}; a list or a single object."""
        return self._client.request("GET", "/Addresses", params={"patientId": patient_id})

    def create(self, data: dict[str, Any]) -> Any:
        """POST /Addresses."""
        return self._client.request("POST", "/Addresses", payload=data)

    def update(self, address_id: int, data: dict[str, Any]) -> Any:
        """PUT /Addresses/{id}."""
        return self._client.request("PUT", f"/Addresses/{address_id}", payload=data)


class PatientDetailsApi(_ResourceApi):
    """Endpoints under /PatientDetails."""

    def get_for_patient(self, patient_id: int) -> Any:
        """GET /PatientDetails?patientId={id}; a list or a single object."""
        return self._client.request(
            "GET", "/PatientDetails", params={"patientId": patient_id}
        )

    def create(self, data: dict[str, Any]) -> Any:
        """POST /PatientDetails."""
        return self._client.request("POST", "/PatientDetails", payload=data)

    def update(self, detail_id: int, data: dict[str, Any]) -> Any:
        """PUT /PatientDetails/{id}."""
        return self._client.request("PUT", f"/PatientDetails/{detail_id}", payload=data)
