"""
Database helper utilities for SessionVault.

Provides dialect-agnostic connection checks used by the health endpoint and
the setup script.
"""

import logging
from typing import Any, Dict

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def get_database_type(engine: Engine) -> str:
    """Get the dialect name of the engine ('sqlite', 'postgresql', ...)."""
    return engine.dialect.name


def get_database_info(engine: Engine) -> Dict[str, Any]:
    """
    Get database connection information and metadata.

    Returns:
        Dict containing database type, connection status, version and tables
    """
    db_type = get_database_type(engine)
    info = {
        "type": db_type,
        "connected": False,
        "tables": [],
        "version": None,
        "error": None,
    }

    try:
        with engine.connect() as conn:
            info["connected"] = True

            if db_type == "sqlite":
                info["version"] = conn.execute(text("SELECT sqlite_version()")).scalar()
            elif db_type == "postgresql":
                version_str = conn.execute(text("SELECT version()")).scalar()
                # Extract just the version number
                info["version"] = version_str.split()[1] if version_str else "unknown"

            info["tables"] = inspect(conn).get_table_names()
    except SQLAlchemyError as e:
        logger.error(f"Database connection error: {e}")
        info["error"] = str(e)

    return info


def check_database_health(engine: Engine) -> Dict[str, Any]:
    """
    Perform database health check.

    Returns:
        Dict containing health status and metrics
    """
    db_info = get_database_info(engine)
    health = {
        "status": "healthy",
        "database_type": db_info["type"],
        "connected": db_info["connected"],
        "connection_pool_status": "unknown",
        "last_error": None,
    }

    if db_info["error"]:
        health["status"] = "unhealthy"
        health["last_error"] = db_info["error"]
    elif not db_info["connected"]:
        health["status"] = "unhealthy"
        health["last_error"] = "Unable to connect to database"

    pool = engine.pool
    if hasattr(pool, "status"):
        health["connection_pool_status"] = str(pool.status())

    return health
