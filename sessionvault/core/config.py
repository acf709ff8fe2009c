"""
Application and session-store configuration.

``Settings`` holds environment-driven values for the hosting application
(read from environment variables or a .env file). ``SessionConfiguration``
is the immutable, validated configuration consumed by the session manager
and the document store; it is built once per application and shared by all
request threads.
"""

from datetime import timedelta
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import Engine

from sessionvault.core.utils.encryption import (
    DEFAULT_KDF_ITERATIONS,
    CryptographyConfiguration,
)
from sessionvault.core.utils.serialization import (
    JsonSessionSerializer,
    SessionSerializer,
)

DEFAULT_SESSION_DATABASE = "NancySession"
DEFAULT_SESSION_TABLE = "Session"
DEFAULT_ROLLING_SESSIONS = True
DEFAULT_EXPIRY = timedelta(hours=2)
DEFAULT_EXPIRY_CHECK_FREQUENCY = timedelta(minutes=1)
DEFAULT_COOKIE_NAME = "_nsid"


class SessionConfigurationError(ValueError):
    """Raised when a session configuration is missing required values."""


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "SessionVault"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    DEV_MODE: bool = False
    HOST: str = "127.0.0.1"
    PORT: int = 8500
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Document store
    DATABASE_URL: str = "sqlite:///./data/sessions.db"

    # Cookie encryption; generated and persisted when unset
    SECRET_KEY: Optional[str] = None
    ENCRYPTION_KDF_ITERATIONS: int = DEFAULT_KDF_ITERATIONS

    # Session storage
    SESSION_DATABASE: str = DEFAULT_SESSION_DATABASE
    SESSION_TABLE: str = DEFAULT_SESSION_TABLE
    SESSION_USE_ROLLING: bool = DEFAULT_ROLLING_SESSIONS
    SESSION_EXPIRY_MINUTES: int = 120
    SESSION_EXPIRY_CHECK_SECONDS: int = 60

    # Session cookie
    SESSION_COOKIE_NAME: str = DEFAULT_COOKIE_NAME
    SESSION_COOKIE_DOMAIN: Optional[str] = None
    SESSION_COOKIE_PATH: Optional[str] = "/"
    SESSION_COOKIE_SECURE: bool = False


class SessionConfiguration(BaseModel):
    """
    Configuration for document-backed cookie sessions.

    All values are validated when the object is constructed and the model is
    frozen afterwards, so a single instance can be read concurrently from any
    number of request threads.

    Raises:
        SessionConfigurationError: If the store location, connection or
            cryptography configuration is missing or invalid
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    connection: Engine
    cryptography_configuration: Any
    database: str = DEFAULT_SESSION_DATABASE
    table: str = DEFAULT_SESSION_TABLE
    expiry: timedelta = DEFAULT_EXPIRY
    expiry_check_frequency: timedelta = DEFAULT_EXPIRY_CHECK_FREQUENCY
    use_rolling_sessions: bool = DEFAULT_ROLLING_SESSIONS
    cookie_name: str = DEFAULT_COOKIE_NAME
    domain: Optional[str] = None
    path: Optional[str] = "/"
    secure: bool = False
    serializer: Any = Field(default_factory=JsonSessionSerializer)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise SessionConfigurationError(f"Session configuration is invalid: {e}") from e

    @field_validator("cryptography_configuration")
    @classmethod
    def _cryptography_required(cls, value: Any) -> CryptographyConfiguration:
        if not isinstance(value, CryptographyConfiguration):
            raise ValueError("a CryptographyConfiguration is required")
        return value

    @field_validator("serializer")
    @classmethod
    def _serializer_contract(cls, value: Any) -> SessionSerializer:
        if not isinstance(value, SessionSerializer):
            raise ValueError("serializer must provide dumps() and loads()")
        return value

    @field_validator("database", "table", "cookie_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("expiry")
    @classmethod
    def _positive_expiry(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("expiry must be a positive duration")
        return value

    @field_validator("expiry_check_frequency")
    @classmethod
    def _non_negative_frequency(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("expiry check frequency cannot be negative")
        return value

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        connection: Engine,
        cryptography_configuration: Optional[CryptographyConfiguration] = None,
    ) -> "SessionConfiguration":
        """
        Build a session configuration from application settings.

        Args:
            settings: Application settings
            connection: SQLAlchemy engine backing the session store
            cryptography_configuration: Cookie cryptography; derived from
                SECRET_KEY when omitted, random per-process keys otherwise

        Returns:
            Validated session configuration
        """
        if cryptography_configuration is None:
            if settings.SECRET_KEY:
                cryptography_configuration = CryptographyConfiguration.from_secret(
                    settings.SECRET_KEY, settings.ENCRYPTION_KDF_ITERATIONS
                )
            else:
                cryptography_configuration = CryptographyConfiguration.default()

        return cls(
            connection=connection,
            cryptography_configuration=cryptography_configuration,
            database=settings.SESSION_DATABASE,
            table=settings.SESSION_TABLE,
            expiry=timedelta(minutes=settings.SESSION_EXPIRY_MINUTES),
            expiry_check_frequency=timedelta(seconds=settings.SESSION_EXPIRY_CHECK_SECONDS),
            use_rolling_sessions=settings.SESSION_USE_ROLLING,
            cookie_name=settings.SESSION_COOKIE_NAME,
            domain=settings.SESSION_COOKIE_DOMAIN,
            path=settings.SESSION_COOKIE_PATH,
            secure=settings.SESSION_COOKIE_SECURE,
        )


# Global settings instance
settings = Settings()
