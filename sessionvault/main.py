import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from sessionvault.api import session as session_api
from sessionvault.core.config import SessionConfiguration, Settings
from sessionvault.core.logging_config import init_application_logging
from sessionvault.core.security import get_or_create_secret_key
from sessionvault.core.utils.database_helpers import check_database_health
from sessionvault.core.utils.encryption import CryptographyConfiguration
from sessionvault.db.session import create_session_engine
from sessionvault.sessions.middleware import enable_sessions

logger = logging.getLogger("sessionvault.main")


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    cryptography_configuration: Optional[CryptographyConfiguration] = None,
) -> FastAPI:
    """
    Build the SessionVault application.

    Args:
        settings: Application settings; read from the environment when omitted
        engine: Engine backing the session store; built from DATABASE_URL
            when omitted
        cryptography_configuration: Cookie cryptography; derived from the
            application secret key when omitted

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        from sessionvault.core.config import settings

    init_application_logging(settings)

    if engine is None:
        engine = create_session_engine(settings.DATABASE_URL)

    if cryptography_configuration is None:
        secret_key = settings.SECRET_KEY or get_or_create_secret_key()
        cryptography_configuration = CryptographyConfiguration.from_secret(
            secret_key, settings.ENCRYPTION_KDF_ITERATIONS
        )

    app = FastAPI(
        title=settings.APP_NAME,
        description="Document-backed cookie sessions",
        version=settings.VERSION,
    )

    configuration = SessionConfiguration.from_settings(
        settings, engine, cryptography_configuration=cryptography_configuration
    )
    enable_sessions(app, configuration)

    app.include_router(session_api.router, prefix="/api")

    @app.get("/health")
    def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy"}

    @app.get("/api/health")
    def api_health_check():
        """
        Health check with session store connectivity and version info.
        """
        health_status = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.VERSION,
            "environment": {
                "dev_mode": settings.DEV_MODE,
                "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            },
            "services": {},
        }

        db_health = check_database_health(engine)
        health_status["services"]["session_store"] = {
            "status": db_health["status"],
            "type": db_health["database_type"],
            "connected": db_health["connected"],
            "table": f"{configuration.database}.{configuration.table}",
            "last_error": db_health["last_error"],
        }

        if db_health["status"] != "healthy":
            health_status["status"] = "unhealthy"
            return JSONResponse(status_code=503, content=health_status)

        return health_status

    logger.info("SessionVault application created", extra={"app_version": settings.VERSION})
    return app
