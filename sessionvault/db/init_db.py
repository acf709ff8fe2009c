#!/usr/bin/env python3
"""Initialize the session store with proper schema"""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from sessionvault.core.config import SessionConfiguration, Settings
from sessionvault.core.utils.encryption import CryptographyConfiguration
from sessionvault.db.session import create_session_engine
from sessionvault.sessions.sql_store import SqlAlchemySessionStore

logger = logging.getLogger("sessionvault.database")


def init_database(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> SqlAlchemySessionStore:
    """
    Create the session namespace, table and last accessed index if absent.

    Returns:
        The store that was set up
    """
    if settings is None:
        from sessionvault.core.config import settings
    if engine is None:
        engine = create_session_engine(settings.DATABASE_URL)

    # Schema setup never touches cookies; throwaway keys are enough here
    configuration = SessionConfiguration.from_settings(
        settings, engine, cryptography_configuration=CryptographyConfiguration.default()
    )
    store = SqlAlchemySessionStore(configuration)

    try:
        logger.info("Setting up session store...")
        store.ensure_schema()
        logger.info("Session store initialized", extra={
            "session_table": store.qualified_name,
            "database_type": engine.dialect.name,
        })
    except Exception as e:
        logger.error(f"Error initializing session store: {e}", extra={
            "error_type": type(e).__name__,
            "database_url": "[REDACTED]"  # Don't log connection strings
        })
        logger.error("Please check database connection settings and permissions.")
        raise

    return store


if __name__ == "__main__":
    init_database()
