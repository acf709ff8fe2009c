"""
Session cookie codec.

Wire format: ``urlencode(base64(hmac) + encrypted_id)``. The HMAC prefix has
a fixed length determined by the HMAC provider, and covers the encrypted
payload exactly as it appears in the cookie. Decoding untrusted input never
raises: anything malformed, truncated or tampered with decodes to ``None``.
"""

import base64
import hmac
import logging
from typing import Optional
from urllib.parse import quote, unquote

from sessionvault.core.utils.encryption import (
    CryptographyConfiguration,
    DecryptionError,
    get_base64_length,
)

logger = logging.getLogger(__name__)


class SessionCookieCodec:
    """Turns session ids into tamper-evident cookie values and back."""

    def __init__(self, cryptography_configuration: CryptographyConfiguration):
        self.encryption_provider = cryptography_configuration.encryption_provider
        self.hmac_provider = cryptography_configuration.hmac_provider
        self.hmac_prefix_length = get_base64_length(self.hmac_provider.hmac_length)

    def encode(self, session_id: str) -> str:
        """
        Encrypt and sign a session id for use as a cookie value.

        Args:
            session_id: The session id to encode

        Returns:
            URL-encoded cookie value
        """
        encrypted = self.encryption_provider.encrypt(session_id)
        tag = self.hmac_provider.generate_hmac(encrypted)
        return quote(base64.b64encode(tag).decode("ascii") + encrypted, safe="")

    def decode(self, cookie_value: Optional[str]) -> Optional[str]:
        """
        Verify and decrypt a cookie value.

        Args:
            cookie_value: Raw cookie value from the request

        Returns:
            The session id, or None if the cookie is invalid
        """
        if not cookie_value:
            return self._reject("empty cookie")

        data = unquote(cookie_value)
        if len(data) < self.hmac_prefix_length:
            return self._reject("cookie shorter than the HMAC prefix")

        presented_hmac = data[:self.hmac_prefix_length]
        payload = data[self.hmac_prefix_length:]

        # Compare the canonical encodings so non-canonical base64 cannot alias a valid tag
        expected_hmac = base64.b64encode(self.hmac_provider.generate_hmac(payload))
        if not hmac.compare_digest(presented_hmac.encode("utf-8"), expected_hmac):
            return self._reject("HMAC mismatch")

        try:
            return self.encryption_provider.decrypt(payload)
        except DecryptionError:
            return self._reject("payload could not be decrypted")

    def _reject(self, reason: str) -> None:
        logger.debug(f"Session cookie rejected: {reason}")
        return None
