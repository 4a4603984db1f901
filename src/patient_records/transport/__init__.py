"""Transport module.

This module provides the REST client, its pooled HTTP session and the
session gate holding the bearer token.
"""

from patient_records.transport.api_client import PatientRecordsClient
from patient_records.transport.http_client import ConnectionPool, ConnectionPoolConfig
from patient_records.transport.session import SessionGate, TokenStore

__all__ = [
    "ConnectionPool",
    "ConnectionPoolConfig",
    "PatientRecordsClient",
    "SessionGate",
    "TokenStore",
]
