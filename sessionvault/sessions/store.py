"""
Session document store contract.

A store persists one document per session, keyed by session id, and can
bulk-delete documents by last access time. Implementations perform each
operation as a single round trip, never retry, and report every
store-level failure as ``SessionStoreError``. A missing document is not an
error: ``retrieve`` returns ``None``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStoreError(RuntimeError):
    """Raised when the session store reports a failure"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message if cause is None else f"{message}: {cause}")
        self.cause = cause


@dataclass
class SessionDocument:
    """A persisted session."""

    id: str
    last_accessed: datetime
    data: Dict[str, Any] = field(default_factory=dict)


class SessionStore(ABC):
    """Persistence for session documents."""

    @abstractmethod
    def create(self, session_id: str) -> None:
        """
        Insert a new document with empty data, accessed now.

        Raises:
            SessionStoreError: If the insert fails (including a duplicate id)
        """

    @abstractmethod
    def retrieve(self, session_id: str) -> Optional[SessionDocument]:
        """Point lookup; None when no document has this id."""

    @abstractmethod
    def touch_last_accessed(self, session_id: str) -> None:
        """Set only the last accessed time to now (rolling sessions)."""

    @abstractmethod
    def update(self, session_id: str, data: Mapping[str, Any]) -> None:
        """
        Replace the document's data.

        Rolling-session stores also refresh the last accessed time in the
        same write.
        """

    @abstractmethod
    def delete_expired(self, cutoff: datetime) -> int:
        """
        Delete every document last accessed before ``cutoff``.

        Returns:
            Number of documents removed
        """

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create the backing storage if absent. Safe to call repeatedly."""
