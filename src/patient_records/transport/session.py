"""Session gate: the bearer token credential used by the API client.

The token is an explicit object handed to the client at construction. It is
set on login and cleared on logout; the optional TokenStore keeps it between
CLI invocations, which is the only state the client persists locally.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from patient_records.utils.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class TokenStore:
    """JSON file holding the opaque session token.

    Attributes:
        path: Location of the token file

    Example:
        >>> store = TokenStore(Path(".patient-records/session.json"))
        >>> store.save("eyJhbGciOi...")
        >>> store.load()
        'eyJhbGciOi...'
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Optional[str]:
        """Read the stored token.

        Returns:
            The token, or None when no usable token file exists
        """
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    def save(self, token: str) -> None:
        """Write the token, restricting the file to the current user.

        Args:
            token: Opaque bearer token
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.debug(f"Could not restrict permissions on {self.path}: {e}")
        logger.debug(f"Session token stored in {self.path}")

    def clear(self) -> None:
        """Delete the token file if present."""
        if self.path.exists():
            self.path.unlink()
            logger.debug(f"Session file removed: {self.path}")


class SessionGate:
    """Holds the bearer token for one client session.

    Attributes:
        store: Optional persistent token store; kept in sync on set/clear

    Example:
        >>> session = SessionGate()
        >>> session.set_token("abc")
        >>> session.authorization_header()
        {'Authorization': 'Bearer abc'}
    """

    def __init__(self, token: Optional[str] = None, store: Optional[TokenStore] = None) -> None:
        self.store = store
        self._token = token

    @classmethod
    def from_store(cls, store: TokenStore) -> "SessionGate":
        """Restore a session from a token store.

        Args:
            store: Token store to read from

        Returns:
            SessionGate, authenticated if the store held a token
        """
        return cls(token=store.load(), store=store)

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def set_token(self, token: str) -> None:
        """Start the session with a token obtained from login.

        Args:
            token: Opaque bearer token

        Raises:
            AuthenticationError: If the token is empty
        """
        if not token:
            raise AuthenticationError("Login response did not contain a token")
        self._token = token
        if self.store is not None:
            self.store.save(token)

    def clear(self) -> None:
        """End the session."""
        self._token = None
        if self.store is not None:
            self.store.clear()

    def require_token(self) -> str:
        """Return the token or fail if the session is not authenticated.

        Raises:
            AuthenticationError: If no token is held
        """
        if not self._token:
            raise AuthenticationError("No authentication token found")
        return self._token

    def authorization_header(self) -> dict[str, str]:
        """Authorization header for an outbound request ({} when logged out)."""
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}
