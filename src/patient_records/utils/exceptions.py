"""Exceptions raised by the Patient Records client, and how to present them.

Everything the client raises derives from PatientRecordsError. The CLI turns
any of them into an ErrorInfo with a category and a remediation hint.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests


class PatientRecordsError(Exception):
    """Base class of every client exception."""


class ValidationError(PatientRecordsError):
    """Input that cannot be turned into a record form at all.

    Field-level form problems are reported as an error map by the record
    editor instead of being raised.
    """


class RecordFileError(ValidationError):
    """A JSON record file that is unreadable, malformed or names unknown fields."""


class TransportError(PatientRecordsError):
    """The request never produced a usable response.

    Wrapped ``requests`` failures (refused connection, timeout, TLS) are kept
    as ``__cause__``; a response body that is not JSON is raised bare.
    """


class ApiError(TransportError):
    """The REST API answered with a non-success status.

    Attributes:
        status_code: HTTP status code, or None when the body was unusable
        message: Message shown to the user
        server_message: ``message`` field of the response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        server_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.server_message = server_message

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class AuthenticationError(PatientRecordsError):
    """Login was rejected, or a request needs a session token that is missing."""


class ConfigurationError(PatientRecordsError):
    """The configuration file or an environment override is invalid."""


class ErrorCategory(Enum):
    """How a failure should be presented to the user.

    The client never retries on its own. TRANSIENT failures (timeouts, 5xx)
    are worth retrying by hand, PERMANENT ones need the input fixed, and
    CRITICAL ones need the environment fixed (unreachable API, TLS,
    configuration or an expired session).
    """

    TRANSIENT = "TRANSIENT"
    PERMANENT = "PERMANENT"
    CRITICAL = "CRITICAL"


@dataclass
class ErrorInfo:
    """A failure as shown by the CLI: what happened and what to do next."""

    category: ErrorCategory
    error_type: str
    message: str
    remediation: str
    is_retryable: bool
    technical_details: Optional[str] = None
    patient_id: Optional[int] = None


def _root_cause(exception: Exception) -> Exception:
    """Return the requests failure a TransportError wraps, if there is one."""
    cause = exception.__cause__
    if (
        isinstance(exception, TransportError)
        and isinstance(cause, Exception)
        and not isinstance(cause, TransportError)
    ):
        return cause
    return exception


def _is_session_failure(exception: Exception) -> bool:
    if isinstance(exception, AuthenticationError):
        return True
    return isinstance(exception, ApiError) and exception.status_code in (401, 403)


def categorize_error(exception: Exception) -> ErrorCategory:
    """Map an exception raised by the client onto an ErrorCategory.

    >>> categorize_error(ApiError("Service Unavailable", status_code=503))
    <ErrorCategory.TRANSIENT: 'TRANSIENT'>
    """
    if isinstance(exception, ConfigurationError) or _is_session_failure(exception):
        return ErrorCategory.CRITICAL

    cause = _root_cause(exception)
    # SSLError subclasses ConnectionError
    if isinstance(cause, requests.ConnectionError):
        return ErrorCategory.CRITICAL
    if isinstance(cause, requests.Timeout):
        return ErrorCategory.TRANSIENT

    if isinstance(exception, ApiError) and exception.status_code is not None:
        return ErrorCategory.TRANSIENT if exception.status_code >= 500 else ErrorCategory.PERMANENT
    if isinstance(exception, TransportError):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.PERMANENT


def create_error_info(
    exception: Exception,
    patient_id: Optional[int] = None,
) -> ErrorInfo:
    """Describe ``exception`` for the user.

    Args:
        exception: The failure to describe
        patient_id: Patient whose record was being saved or deleted, if any
    """
    category = categorize_error(exception)
    cause = exception.__cause__
    return ErrorInfo(
        category=category,
        error_type=type(exception).__name__,
        message=str(exception),
        remediation=_remediation_for(exception, category),
        is_retryable=category is ErrorCategory.TRANSIENT,
        technical_details=f"Caused by: {type(cause).__name__}: {cause}" if cause else None,
        patient_id=patient_id,
    )


def _remediation_for(exception: Exception, category: ErrorCategory) -> str:
    cause = _root_cause(exception)

    if _is_session_failure(exception):
        return "Session is missing or expired. Run 'patient-records login' and retry."
    if isinstance(cause, requests.exceptions.SSLError):
        return (
            "TLS certificate validation failed. For a development API with a "
            "self-signed certificate set transport.verify_tls=false in config.json."
        )
    if isinstance(cause, requests.ConnectionError):
        return (
            "Cannot reach the API. Check api.base_url in config.json and that "
            "the API server is running."
        )
    if isinstance(cause, requests.Timeout):
        return (
            "Request timed out. Increase transport.timeout_read in config.json "
            "or retry once the API is responsive."
        )
    if isinstance(exception, ApiError) and exception.status_code == 404:
        return "Record not found. Refresh the roster with 'patient-records patients list'."
    if isinstance(exception, ValidationError):
        return "The record could not be read. Fix the listed fields in the record file."
    if isinstance(exception, ConfigurationError):
        return "Inspect the settings with 'patient-records config validate' and fix config.json."
    if category is ErrorCategory.TRANSIENT:
        return "The API reported a temporary failure. Retry the operation."
    return "See the log file for the full request and response."
