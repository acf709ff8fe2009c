"""
Security tests for session ids and secret key handling
"""

import os
import stat
import sys

import pytest

from sessionvault.core.security import (
    generate_secure_secret_key,
    generate_session_id,
    get_or_create_secret_key,
    sanitize_log_data,
    validate_secret_key,
)

VALID_SECRET = "Zq8-vL2_xN4pR7tY1mK9wE3sD6fH0jB5"


class TestSessionIds:

    def test_session_id_is_url_safe(self):
        session_id = generate_session_id()

        assert len(session_id) == 43
        assert all(c.isalnum() or c in "-_" for c in session_id)

    def test_session_ids_are_unique(self):
        ids = {generate_session_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestSecretKeys:

    def test_generated_key_is_valid(self):
        key = generate_secure_secret_key()

        assert len(key) == 64
        validate_secret_key(key)

    @pytest.mark.parametrize("key", [
        "",
        "short",
        "a" * 40,
        "ababababababababababababababababab",
    ])
    def test_weak_keys_rejected(self, key):
        with pytest.raises(ValueError):
            validate_secret_key(key)

    def test_environment_key_takes_precedence(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SECRET_KEY", VALID_SECRET)

        key = get_or_create_secret_key(str(tmp_path / ".secret_key"))

        assert key == VALID_SECRET
        assert not (tmp_path / ".secret_key").exists()

    def test_generates_and_persists_key(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SECRET_KEY", raising=False)
        secret_file = tmp_path / "data" / ".secret_key"

        first = get_or_create_secret_key(str(secret_file))
        second = get_or_create_secret_key(str(secret_file))

        assert first == second
        assert secret_file.read_text() == first

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_secret_file_permissions(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SECRET_KEY", raising=False)
        secret_file = tmp_path / ".secret_key"

        get_or_create_secret_key(str(secret_file))

        assert stat.S_IMODE(os.stat(secret_file).st_mode) == 0o600

    def test_invalid_key_file_rejected(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SECRET_KEY", raising=False)
        secret_file = tmp_path / ".secret_key"
        secret_file.write_text("change-me")

        with pytest.raises(ValueError):
            get_or_create_secret_key(str(secret_file))


class TestLogSanitization:

    def test_masks_long_tokens(self):
        cookie = "a" * 30 + "%3D"
        assert cookie not in sanitize_log_data(f"rejected cookie {cookie}")

    def test_masks_key_values(self):
        assert "hunter2" not in sanitize_log_data("password=hunter2")

    def test_truncates(self):
        assert sanitize_log_data("word " * 100, max_length=20).endswith("...")

    def test_empty(self):
        assert sanitize_log_data("") == ""
