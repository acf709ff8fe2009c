import copy
import logging
from datetime import datetime
from threading import Lock
from typing import Any, Dict, Mapping, Optional

from sessionvault.sessions.store import (
    Clock,
    SessionDocument,
    SessionStore,
    SessionStoreError,
    utcnow,
)

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """In-process session store for development and tests. Not persistent."""

    def __init__(self, clock: Clock = utcnow, use_rolling_sessions: bool = True):
        self.clock = clock
        self.use_rolling_sessions = use_rolling_sessions
        self._documents: Dict[str, SessionDocument] = {}
        self._lock = Lock()

    def create(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._documents:
                raise SessionStoreError("Could not create new session: duplicate id")
            self._documents[session_id] = SessionDocument(
                id=session_id, last_accessed=self.clock(), data={}
            )

    def retrieve(self, session_id: str) -> Optional[SessionDocument]:
        with self._lock:
            document = self._documents.get(session_id)
            return copy.deepcopy(document) if document is not None else None

    def touch_last_accessed(self, session_id: str) -> None:
        with self._lock:
            document = self._documents.get(session_id)
            if document is not None:
                document.last_accessed = self.clock()

    def update(self, session_id: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            document = self._documents.get(session_id)
            if document is None:
                logger.warning("Session document no longer exists; data was not saved")
                return
            document.data = copy.deepcopy(dict(data))
            if self.use_rolling_sessions:
                document.last_accessed = self.clock()

    def delete_expired(self, cutoff: datetime) -> int:
        with self._lock:
            expired = [
                session_id
                for session_id, document in self._documents.items()
                if document.last_accessed < cutoff
            ]
            for session_id in expired:
                del self._documents[session_id]
        return len(expired)

    def ensure_schema(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._documents
