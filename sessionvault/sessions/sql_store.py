"""
SQLAlchemy-backed session document store.

Documents live in one table inside the configured database namespace. On
dialects with schema support the namespace is a SQL schema, created on
setup if missing; on SQLite the namespace is the database file itself.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, NoReturn, Optional

from sqlalchemy import delete, insert, inspect, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateSchema

from sessionvault.core.config import SessionConfiguration
from sessionvault.core.utils.serialization import SessionSerializationError
from sessionvault.db.base import build_metadata
from sessionvault.db.models.session_document import session_document_table
from sessionvault.sessions.store import (
    Clock,
    SessionDocument,
    SessionStore,
    SessionStoreError,
    utcnow,
)

logger = logging.getLogger(__name__)


class SqlAlchemySessionStore(SessionStore):
    def __init__(self, configuration: SessionConfiguration, clock: Clock = utcnow):
        self.configuration = configuration
        self.engine = configuration.connection
        self.serializer = configuration.serializer
        self.clock = clock
        self.schema = self._resolve_schema()
        self.metadata = build_metadata(self.schema)
        self.table = session_document_table(self.metadata, configuration.table)

    def _resolve_schema(self) -> Optional[str]:
        if self.engine.dialect.name == "sqlite":
            logger.debug(
                f"SQLite has no schemas; session namespace {self.configuration.database!r} "
                "maps to the database file"
            )
            return None
        return self.configuration.database

    @property
    def qualified_name(self) -> str:
        return f"{self.configuration.database}.{self.configuration.table}"

    def _handle_store_error(self, operation: str, error: Exception) -> NoReturn:
        """Centralized error handling for store operations."""
        logger.error(f"Session store error during {operation}: {error}")
        raise SessionStoreError(f"Could not {operation}", error) from error

    def create(self, session_id: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(self.table).values(
                        id=session_id,
                        last_accessed=self.clock(),
                        data=self.serializer.dumps({}),
                    )
                )
        except SQLAlchemyError as e:
            self._handle_store_error("create new session", e)
        logger.debug("Created new session document")

    def retrieve(self, session_id: str) -> Optional[SessionDocument]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(self.table.c.id, self.table.c.last_accessed, self.table.c.data)
                    .where(self.table.c.id == session_id)
                ).first()
        except SQLAlchemyError as e:
            self._handle_store_error("retrieve session", e)

        if row is None:
            return None

        try:
            data = self.serializer.loads(row.data)
        except SessionSerializationError as e:
            self._handle_store_error("read stored session data", e)

        return SessionDocument(id=row.id, last_accessed=_as_utc(row.last_accessed), data=data)

    def touch_last_accessed(self, session_id: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    update(self.table)
                    .where(self.table.c.id == session_id)
                    .values(last_accessed=self.clock())
                )
        except SQLAlchemyError as e:
            self._handle_store_error("update last access for session", e)

    def update(self, session_id: str, data: Mapping[str, Any]) -> None:
        try:
            values = {"data": self.serializer.dumps(data)}
        except SessionSerializationError as e:
            self._handle_store_error("save data for session", e)

        if self.configuration.use_rolling_sessions:
            values["last_accessed"] = self.clock()

        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(self.table).where(self.table.c.id == session_id).values(**values)
                )
        except SQLAlchemyError as e:
            self._handle_store_error("save data for session", e)

        if result.rowcount == 0:
            # Swept between load and save; the next load starts a new session
            logger.warning("Session document no longer exists; data was not saved")

    def delete_expired(self, cutoff: datetime) -> int:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    delete(self.table).where(self.table.c.last_accessed < cutoff)
                )
        except SQLAlchemyError as e:
            self._handle_store_error("expire sessions", e)
        return result.rowcount or 0

    def ensure_schema(self) -> None:
        """
        Set up the session store; ensures the namespace, table and the last
        accessed index exist. Each object is checked before it is created.
        """
        try:
            with self.engine.begin() as conn:
                inspector = inspect(conn)

                if self.schema is not None and not inspector.has_schema(self.schema):
                    logger.info(f"Creating session store schema {self.schema}")
                    conn.execute(CreateSchema(self.schema))

                if not inspector.has_table(self.table.name, schema=self.schema):
                    logger.info(f"Creating session store table {self.qualified_name}")
                    # Creates the last accessed index along with the table
                    self.table.create(conn)
                    return

                existing = {
                    index["name"]
                    for index in inspector.get_indexes(self.table.name, schema=self.schema)
                }
                for index in self.table.indexes:
                    if index.name not in existing:
                        logger.info(
                            f"Creating last accessed index on session store table {self.qualified_name}"
                        )
                        index.create(conn)
        except SQLAlchemyError as e:
            self._handle_store_error(f"set up session store {self.qualified_name}", e)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
