"""
Cryptography providers for the session cookie.

The session cookie carries an encrypted session id prefixed with an HMAC of
the ciphertext. Encryption uses Fernet, the tag uses HMAC-SHA256, and both
keys are derived from the application secret with PBKDF2.
"""

import base64
import logging
import os
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

DEFAULT_KDF_ITERATIONS = 300_000
MIN_KDF_ITERATIONS = 100_000
MAX_KDF_ITERATIONS = 1_000_000

# Distinct salts so the encryption and HMAC keys never coincide
ENCRYPTION_KEY_SALT = b"sessionvault:cookie-encryption"
HMAC_KEY_SALT = b"sessionvault:cookie-hmac"


class DecryptionError(Exception):
    """Raised when a payload cannot be decrypted with the configured key"""
    pass


@runtime_checkable
class EncryptionProvider(Protocol):
    """Symmetric encryption of text payloads."""

    def encrypt(self, data: str) -> str:
        ...

    def decrypt(self, data: str) -> str:
        """Raises DecryptionError when the payload is not valid ciphertext."""
        ...


@runtime_checkable
class HmacProvider(Protocol):
    """Keyed authentication tags with a fixed length in bytes."""

    hmac_length: int

    def generate_hmac(self, data: str) -> bytes:
        ...


class FernetEncryptionProvider:
    """Encrypts text with Fernet (AES-128-CBC + HMAC-SHA256, URL-safe base64 output)."""

    def __init__(self, key: bytes):
        self.cipher = Fernet(key)

    def encrypt(self, data: str) -> str:
        # Fernet tokens are already URL-safe base64
        return self.cipher.encrypt(data.encode("utf-8")).decode("ascii")

    def decrypt(self, data: str) -> str:
        try:
            return self.cipher.decrypt(data.encode("utf-8")).decode("utf-8")
        except (InvalidToken, UnicodeError, ValueError, TypeError) as e:
            raise DecryptionError(f"Could not decrypt payload: {type(e).__name__}") from e


class Sha256HmacProvider:
    """HMAC-SHA256 tags (32 bytes)."""

    hmac_length = 32

    def __init__(self, key: bytes):
        if len(key) < 16:
            raise ValueError("HMAC key must be at least 16 bytes")
        self._key = key

    def generate_hmac(self, data: str) -> bytes:
        h = crypto_hmac.HMAC(self._key, hashes.SHA256())
        h.update(data.encode("utf-8"))
        return h.finalize()


@dataclass(frozen=True)
class CryptographyConfiguration:
    """The encryption and HMAC providers used for the session cookie."""

    encryption_provider: EncryptionProvider
    hmac_provider: HmacProvider

    def __post_init__(self) -> None:
        if not isinstance(self.encryption_provider, EncryptionProvider):
            raise TypeError("encryption_provider must implement encrypt() and decrypt()")
        if not isinstance(self.hmac_provider, HmacProvider):
            raise TypeError("hmac_provider must implement generate_hmac() and hmac_length")

    @classmethod
    def from_secret(
        cls, secret: str, iterations: int = DEFAULT_KDF_ITERATIONS
    ) -> "CryptographyConfiguration":
        """
        Derive both cookie keys from an application secret.

        The same secret always yields the same keys, so cookies issued by one
        process can be read by every other process sharing the secret.

        Args:
            secret: Application secret key
            iterations: PBKDF2 iterations (clamped to a safe range)

        Returns:
            Cryptography configuration bound to the derived keys
        """
        if not secret:
            raise ValueError("A secret is required to derive cookie keys")

        iterations = normalize_kdf_iterations(iterations)
        secret_bytes = secret.encode("utf-8")
        encryption_key = _derive_key(secret_bytes, ENCRYPTION_KEY_SALT, iterations)
        hmac_key = _derive_key(secret_bytes, HMAC_KEY_SALT, iterations)

        return cls(
            encryption_provider=FernetEncryptionProvider(base64.urlsafe_b64encode(encryption_key)),
            hmac_provider=Sha256HmacProvider(hmac_key),
        )

    @classmethod
    def default(cls) -> "CryptographyConfiguration":
        """
        Random keys generated for this process only.

        Cookies issued with these keys become unreadable after a restart.
        """
        logger.warning(
            "Using randomly generated cookie keys; sessions will not survive a restart"
        )
        return cls(
            encryption_provider=FernetEncryptionProvider(Fernet.generate_key()),
            hmac_provider=Sha256HmacProvider(os.urandom(32)),
        )


def normalize_kdf_iterations(iterations: int) -> int:
    """Clamp PBKDF2 iterations to the supported range"""
    try:
        iterations = int(iterations)
    except (ValueError, TypeError):
        logger.warning(f"Invalid KDF iterations value, using default: {DEFAULT_KDF_ITERATIONS}")
        return DEFAULT_KDF_ITERATIONS

    if iterations > MAX_KDF_ITERATIONS:
        logger.warning(f"KDF iterations {iterations} exceeds maximum, using {MAX_KDF_ITERATIONS:,}")
        return MAX_KDF_ITERATIONS

    if iterations < MIN_KDF_ITERATIONS:
        logger.warning(
            f"KDF iterations {iterations} below recommended minimum, using {MIN_KDF_ITERATIONS:,}"
        )
        return MIN_KDF_ITERATIONS

    return iterations


def get_base64_length(byte_count: int) -> int:
    """Length of the padded base64 encoding of ``byte_count`` raw bytes"""
    return ((byte_count + 2) // 3) * 4


def _derive_key(secret: bytes, salt: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(secret)
