"""
Security tests for the session cookie codec

The codec must never raise on untrusted input: truncated, tampered, forged
or foreign cookies all decode to None.
"""

import base64
import string
from urllib.parse import quote, unquote

import pytest

from sessionvault.core.cookies import SessionCookieCodec
from sessionvault.core.security import generate_session_id

pytestmark = pytest.mark.security

URL_SAFE_CHARACTERS = set(string.ascii_letters + string.digits + "%-_.~")


@pytest.fixture
def codec(cryptography_configuration):
    return SessionCookieCodec(cryptography_configuration)


def _flip(character: str) -> str:
    return "B" if character == "A" else "A"


class TestCookieEncoding:

    def test_round_trip(self, codec):
        session_id = generate_session_id()
        assert codec.decode(codec.encode(session_id)) == session_id

    def test_prefix_length(self, codec):
        assert codec.hmac_prefix_length == 44

    def test_encoded_value_is_cookie_safe(self, codec):
        value = codec.encode(generate_session_id())
        assert set(value) <= URL_SAFE_CHARACTERS

    def test_encoded_value_does_not_reveal_id(self, codec):
        session_id = generate_session_id()
        assert session_id not in unquote(codec.encode(session_id))

    def test_encoding_is_randomized(self, codec):
        session_id = generate_session_id()
        first = codec.encode(session_id)
        second = codec.encode(session_id)

        assert first != second
        assert codec.decode(first) == codec.decode(second) == session_id

    def test_prefix_is_hmac_of_payload(self, codec):
        data = unquote(codec.encode("abc"))
        tag, payload = data[:44], data[44:]

        assert base64.b64decode(tag) == codec.hmac_provider.generate_hmac(payload)
        assert codec.encryption_provider.decrypt(payload) == "abc"


class TestCookieRejection:

    @pytest.mark.parametrize("value", [None, "", "short", "x" * 43])
    def test_empty_or_short_values(self, codec, value):
        assert codec.decode(value) is None

    def test_prefix_only(self, codec):
        data = unquote(codec.encode("abc"))
        assert codec.decode(quote(data[:44], safe="")) is None

    @pytest.mark.parametrize("cut", [1, 10, 50])
    def test_truncated_payload(self, codec, cut):
        data = unquote(codec.encode("abc"))
        assert codec.decode(quote(data[:-cut], safe="")) is None

    def test_tampered_payload(self, codec):
        data = unquote(codec.encode("abc"))
        position = 60
        tampered = data[:position] + _flip(data[position]) + data[position + 1:]

        assert codec.decode(quote(tampered, safe="")) is None

    def test_tampered_hmac(self, codec):
        data = unquote(codec.encode("abc"))
        tampered = _flip(data[0]) + data[1:]

        assert codec.decode(quote(tampered, safe="")) is None

    def test_non_canonical_hmac_alias(self, codec):
        data = unquote(codec.encode("abc"))
        alphabet = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"

        # The last data character of a 32 byte tag carries two unused bits;
        # flipping one yields a different string that decodes to the same bytes
        last = data[42]
        alias_char = alphabet[alphabet.index(last) ^ 1]
        alias = data[:42] + alias_char + data[43:]
        assert base64.b64decode(alias[:44]) == base64.b64decode(data[:44])

        assert codec.decode(quote(alias, safe="")) is None

    def test_valid_hmac_over_undecryptable_payload(self, codec):
        payload = "not-a-fernet-token"
        tag = base64.b64encode(codec.hmac_provider.generate_hmac(payload)).decode("ascii")

        assert codec.decode(quote(tag + payload, safe="")) is None

    def test_cookie_from_other_keys(self, cryptography_configuration, other_cryptography_configuration):
        foreign = SessionCookieCodec(other_cryptography_configuration).encode("abc")
        assert SessionCookieCodec(cryptography_configuration).decode(foreign) is None

    def test_raw_session_id_is_not_accepted(self, codec):
        assert codec.decode(generate_session_id()) is None

    @pytest.mark.parametrize("value", ["%", "%zz" * 20, "\x00" * 60, "é" * 60, "=" * 80])
    def test_garbage_never_raises(self, codec, value):
        assert codec.decode(value) is None
