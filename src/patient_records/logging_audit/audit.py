"""Audit trail of record changes and the DEBUG log of REST traffic.

Audit lines look like::

    AUDIT [PATIENT_SAVED] | status=success | patient_id=7 | mode=create | duration=0.42s | ...

Failures (``status=failure``) are logged at ERROR, everything else at INFO.
"""

import time
import uuid
from typing import Any, Dict, Iterator, Optional

from .logger import get_logger

logger = get_logger(__name__)

# Bodies longer than this are cut in the transaction log
MAX_LOGGED_BODY = 2000

# Leading fields, in this order; any other detail follows
AUDIT_FIELD_ORDER = (
    "status",
    "patient_id",
    "mode",
    "step",
    "duration",
    "error_message",
    "correlation_id",
)


def _audit_fields(details: Dict[str, Any]) -> Iterator[str]:
    for name in AUDIT_FIELD_ORDER:
        if name not in details:
            continue
        value = details[name]
        if name == "duration" and isinstance(value, (int, float)):
            yield f"duration={value:.2f}s"
        else:
            yield f"{name}={value}"
    for name, value in details.items():
        if name not in AUDIT_FIELD_ORDER and name != "timestamp":
            yield f"{name}={value}"


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Write one audit line for a login, save or delete.

    A ``correlation_id`` and ``timestamp`` are added when the caller did not
    supply them; ``details`` itself is left unchanged.

    Args:
        event_type: LOGIN, PATIENT_SAVED, PATIENT_SAVE_FAILED, PATIENT_DELETED...
        details: Event fields, usually status, patient_id, and for failed saves
            the step (patient, address, health_detail) and error_message

    Example:
        >>> log_audit_event("PATIENT_SAVED", {"patient_id": 12, "mode": "update",
        ...                                   "status": "success", "duration": 0.42})
    """
    event = {"correlation_id": str(uuid.uuid4()), "timestamp": time.time(), **details}
    line = " | ".join([f"AUDIT [{event_type}]", *_audit_fields(event)])

    if event.get("status") == "failure":
        logger.error(line)
    else:
        logger.info(line)


def log_transaction(
    method: str,
    url: str,
    status_code: Optional[int],
    request_body: Optional[str] = None,
    response_body: Optional[str] = None,
    elapsed_ms: int = 0,
) -> None:
    """Log one REST call and its bodies at DEBUG.

    The summary and body lines share a correlation id so they can be matched
    up in the log file.

    Args:
        method: HTTP method
        url: Full request URL
        status_code: HTTP status, or None if no response was received
        request_body: Serialized JSON request body, if any
        response_body: Raw response text, if any
        elapsed_ms: Round-trip latency in milliseconds
    """
    correlation_id = str(uuid.uuid4())
    status = "no-response" if status_code is None else status_code
    logger.debug(
        f"TRANSACTION [{method} {url}] | status={status} | "
        f"elapsed={elapsed_ms}ms | correlation_id={correlation_id}"
    )

    for label, body in (("REQUEST", request_body), ("RESPONSE", response_body)):
        if body:
            logger.debug(
                f"TRANSACTION {label} | correlation_id={correlation_id}\n"
                f"{body[:MAX_LOGGED_BODY]}"
            )
