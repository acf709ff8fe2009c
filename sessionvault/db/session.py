from pathlib import Path
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool


def get_connect_args(database_url: str) -> Dict[str, Any]:
    """Get database-specific connection arguments"""
    if database_url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for FastAPI's threadpool
        return {"check_same_thread": False}
    # PostgreSQL and other databases don't need special args
    return {}


def create_session_engine(database_url: str, **kwargs: Any) -> Engine:
    """
    Create the engine backing the session store.

    The engine pools connections and is safe to share between request
    threads; build one per application. In-memory SQLite URLs get a static
    pool so every thread sees the same database.
    """
    url = make_url(database_url)
    engine_kwargs: Dict[str, Any] = {"connect_args": get_connect_args(database_url)}

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine_kwargs.update(kwargs)
    return create_engine(database_url, **engine_kwargs)
