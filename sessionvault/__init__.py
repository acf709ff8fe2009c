"""SessionVault: document-backed, encrypted cookie sessions for ASGI applications."""

from sessionvault.core.config import SessionConfiguration, SessionConfigurationError
from sessionvault.core.cookies import SessionCookieCodec
from sessionvault.core.utils.encryption import CryptographyConfiguration
from sessionvault.sessions import (
    DocumentSessions,
    Session,
    SessionStoreError,
    enable_sessions,
    get_session,
)

__version__ = "1.0.0"

__all__ = [
    "CryptographyConfiguration",
    "DocumentSessions",
    "Session",
    "SessionConfiguration",
    "SessionConfigurationError",
    "SessionCookieCodec",
    "SessionStoreError",
    "enable_sessions",
    "get_session",
]
