"""Pooled ``requests`` session shared by every endpoint of the API client.

Retries are off unless configured: a failed save or delete is reported to the
user, who decides whether to try again. When enabled they only cover
idempotent methods, so a record create (POST) is never sent twice.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from patient_records.config.schema import TransportConfig

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
IDEMPOTENT_METHODS = frozenset({"HEAD", "GET", "PUT", "DELETE", "OPTIONS"})


@dataclass
class ConnectionPoolConfig:
    """Pool size and retry policy of the shared session.

    Attributes:
        max_connections: Connections kept per host. Must be >= 1.
        pool_block: Wait for a free connection instead of opening extras.
        retry_count: Retries for idempotent requests; 0 disables them.
        backoff_factor: urllib3 exponential backoff factor.
    """

    max_connections: int = 10
    pool_block: bool = True
    retry_count: int = 0
    backoff_factor: float = 0.3

    def __post_init__(self) -> None:
        checks = (
            ("max_connections", self.max_connections, 1),
            ("retry_count", self.retry_count, 0),
            ("backoff_factor", self.backoff_factor, 0),
        )
        for name, value, minimum in checks:
            if value < minimum:
                raise ValueError(f"{name} must be >= {minimum}, got {value}")

    @classmethod
    def from_transport_config(cls, transport: TransportConfig) -> "ConnectionPoolConfig":
        """Take the retry policy from the ``transport`` config section."""
        return cls(retry_count=transport.max_retries, backoff_factor=transport.backoff_factor)

    def retry_policy(self) -> Retry | int:
        """Return the urllib3 retry policy, or 0 when retries are disabled."""
        if not self.retry_count:
            return 0
        return Retry(
            total=self.retry_count,
            backoff_factor=self.backoff_factor,
            status_forcelist=sorted(RETRYABLE_STATUSES),
            allowed_methods=IDEMPOTENT_METHODS,
            raise_on_status=False,
        )


class ConnectionPool:
    """Lazily created, thread-safe holder of the shared session.

    Example:
        >>> with ConnectionPool() as pool:
        ...     pool.get_session().get("http://localhost:5000/api/patients")
    """

    def __init__(self, config: Optional[ConnectionPoolConfig] = None) -> None:
        self.config = config or ConnectionPoolConfig()
        self._session: Optional[requests.Session] = None
        self._lock = Lock()

    def get_session(self) -> requests.Session:
        with self._lock:
            if self._session is None:
                self._session = self._open_session()
            return self._session

    def _open_session(self) -> requests.Session:
        size = self.config.max_connections
        adapter = HTTPAdapter(
            pool_connections=size,
            pool_maxsize=size,
            pool_block=self.config.pool_block,
            max_retries=self.config.retry_policy(),
        )
        session = requests.Session()
        for scheme in ("http://", "https://"):
            session.mount(scheme, adapter)
        session.headers.update(JSON_HEADERS)
        logger.debug(f"Opened HTTP session (pool size {size}, retries {self.config.retry_count})")
        return session

    def close(self) -> None:
        """Close the session; the next ``get_session`` opens a fresh one."""
        with self._lock:
            if self._session is None:
                return
            self._session.close()
            self._session = None
        logger.debug("HTTP session closed")

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
