"""Unit tests for the session gate and token store."""

import os
import stat
import sys

import pytest

from patient_records.transport.session import SessionGate, TokenStore
from patient_records.utils.exceptions import AuthenticationError


class TestTokenStore:
    """Tests for TokenStore."""

    def test_save_and_load(self, tmp_path):
        store = TokenStore(tmp_path / "nested" / "session.json")

        store.save("abc")

        assert store.load() == "abc"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
    def test_file_is_private(self, tmp_path):
        store = TokenStore(tmp_path / "session.json")

        store.save("abc")

        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_missing_file(self, tmp_path):
        assert TokenStore(tmp_path / "none.json").load() is None

    @pytest.mark.parametrize("content", ["not json", "[]", '{"token": ""}', '{"token": 5}'])
    def test_unusable_file_is_ignored(self, tmp_path, content):
        path = tmp_path / "session.json"
        path.write_text(content, encoding="utf-8")

        assert TokenStore(path).load() is None

    def test_clear(self, tmp_path):
        store = TokenStore(tmp_path / "session.json")
        store.save("abc")

        store.clear()
        store.clear()

        assert not store.path.exists()


class TestSessionGate:
    """Tests for SessionGate."""

    def test_unauthenticated_by_default(self):
        session = SessionGate()
        assert session.is_authenticated is False
        assert session.authorization_header() == {}

    def test_require_token_without_login(self):
        with pytest.raises(AuthenticationError, match="No authentication token found"):
            SessionGate().require_token()

    def test_set_token(self):
        session = SessionGate()

        session.set_token("abc")

        assert session.require_token() == "abc"
        assert session.authorization_header() == {"Authorization": "Bearer abc"}

    def test_empty_token_rejected(self):
        with pytest.raises(AuthenticationError):
            SessionGate().set_token("")

    def test_store_kept_in_sync(self, tmp_path):
        """Test set_token persists and clear removes the stored token."""
        # Arrange
        store = TokenStore(tmp_path / "session.json")
        session = SessionGate(store=store)

        # Act & Assert
        session.set_token("abc")
        assert SessionGate.from_store(store).token == "abc"

        session.clear()
        assert session.token is None
        assert SessionGate.from_store(store).is_authenticated is False
