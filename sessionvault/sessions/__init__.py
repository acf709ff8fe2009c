from sessionvault.sessions.manager import DocumentSessions
from sessionvault.sessions.memory_store import InMemorySessionStore
from sessionvault.sessions.middleware import SessionStoreMiddleware, enable_sessions, get_session
from sessionvault.sessions.session import SESSION_ID_KEY, Session
from sessionvault.sessions.sql_store import SqlAlchemySessionStore
from sessionvault.sessions.store import SessionDocument, SessionStore, SessionStoreError

__all__ = [
    "DocumentSessions",
    "InMemorySessionStore",
    "SESSION_ID_KEY",
    "Session",
    "SessionDocument",
    "SessionStore",
    "SessionStoreError",
    "SessionStoreMiddleware",
    "SqlAlchemySessionStore",
    "enable_sessions",
    "get_session",
]
