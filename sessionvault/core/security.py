"""
Security utilities for SessionVault

This module provides security-related utility functions including
session id generation, secure secret key handling and log sanitization.
"""

import logging
import os
import re
import secrets
import string

logger = logging.getLogger(__name__)

SECRET_KEY_FILE = "data/.secret_key"

# 32 random bytes, 256 bits of entropy
SESSION_ID_BYTES = 32


def generate_session_id() -> str:
    """Generate an unguessable, URL-safe session identifier."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def generate_secure_secret_key(length: int = 64) -> str:
    """
    Generate a cryptographically secure secret key.

    Args:
        length: Length of the secret key (default: 64 characters)

    Returns:
        A secure random string suitable for use as a SECRET_KEY
    """
    alphabet = string.ascii_letters + string.digits + "-_"
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def get_or_create_secret_key(secret_file_path: str = SECRET_KEY_FILE) -> str:
    """
    Get SECRET_KEY from environment or generate a new secure one.

    1. First, check if SECRET_KEY is set in environment variables
    2. If not found, check for a secret key file
    3. If neither exists, generate a new secure key and save it

    Returns:
        A secure secret key string

    Raises:
        ValueError: If the secret key doesn't meet security requirements
    """
    secret_key = os.environ.get("SECRET_KEY")
    if secret_key:
        logger.info("Using SECRET_KEY from environment variable")
        validate_secret_key(secret_key)
        return secret_key

    if os.path.exists(secret_file_path):
        try:
            with open(secret_file_path, 'r') as f:
                secret_key = f.read().strip()
            if secret_key:
                logger.info("Using SECRET_KEY from secret file")
                validate_secret_key(secret_key)
                return secret_key
        except OSError as e:
            logger.warning(f"Could not read secret key file: {e}")

    logger.warning("No secure SECRET_KEY found, generating new one")
    secret_key = generate_secure_secret_key()

    try:
        os.makedirs(os.path.dirname(secret_file_path) or ".", exist_ok=True)
        with open(secret_file_path, 'w') as f:
            f.write(secret_key)
        _set_secure_file_permissions(secret_file_path)
        logger.info("Generated new SECRET_KEY and saved to secure file")
    except OSError as e:
        logger.error(f"Could not save secret key to file: {e}")
        logger.warning("Using generated key in memory only (will regenerate on restart)")

    validate_secret_key(secret_key)
    return secret_key


def validate_secret_key(secret_key: str) -> None:
    """
    Validate that a secret key meets security requirements.

    Args:
        secret_key: The secret key to validate

    Raises:
        ValueError: If the secret key doesn't meet requirements
    """
    if not secret_key:
        raise ValueError("SECRET_KEY cannot be empty")

    if len(secret_key) < 32:
        raise ValueError("SECRET_KEY must be at least 32 characters long")

    insecure_defaults = [
        "your-secret-key-here-change-in-production",
        "change-me",
        "secret",
        "password",
        "123456",
        "admin"
    ]

    if secret_key.lower() in [default.lower() for default in insecure_defaults]:
        raise ValueError("SECRET_KEY appears to be an insecure default value")

    # At least 8 different characters
    unique_chars = len(set(secret_key.lower()))
    if unique_chars < 8:
        raise ValueError("SECRET_KEY has insufficient entropy (too repetitive)")

    logger.debug("SECRET_KEY validation passed")


def _set_secure_file_permissions(file_path: str) -> None:
    """Set 0o600 (owner read/write only) on POSIX systems."""
    try:
        os.chmod(file_path, 0o600)
        logger.debug(f"Set secure file permissions 0o600 on {file_path}")
    except OSError as e:
        logger.warning(f"Could not set secure file permissions on {file_path}: {e}")


def sanitize_log_data(data: str, max_length: int = 100) -> str:
    """
    Sanitize data for safe logging.

    Args:
        data: The data to sanitize
        max_length: Maximum length to log

    Returns:
        Sanitized data safe for logging
    """
    if not data:
        return ""

    if len(data) > max_length:
        data = data[:max_length] + "..."

    # Mask potential secrets, tokens and cookie payloads
    data = re.sub(r'[A-Za-z0-9+/_%=-]{20,}', '****', data)

    data = re.sub(r'(?i)(password|secret|key|token)[\'"\s]*[:=][\'"\s]*[^\s\'"]+',
                  r'\1=****', data)

    return data
