"""
Document-backed cookie sessions.

``DocumentSessions`` binds each request to a session document through an
encrypted, signed cookie. ``load`` runs before the request is handled and
``save`` after it; both piggyback a throttled sweep that deletes expired
documents, so no background timer is needed.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from sessionvault.core.config import SessionConfiguration, SessionConfigurationError
from sessionvault.core.cookies import SessionCookieCodec
from sessionvault.core.logging_config import log_security_event
from sessionvault.core.security import generate_session_id
from sessionvault.sessions.session import SESSION_ID_KEY, Session
from sessionvault.sessions.sql_store import SqlAlchemySessionStore
from sessionvault.sessions.store import Clock, SessionStore, utcnow

logger = logging.getLogger(__name__)

NEVER = datetime.min.replace(tzinfo=timezone.utc)


class DocumentSessions:
    """
    Sessions persisted in a document store.

    Build one instance per application and share it across requests; it is
    safe for concurrent use. The backing store is set up (created if absent)
    when the instance is constructed.

    Args:
        configuration: Validated session configuration
        store: Session store; a SQLAlchemy store over the configured
            connection when omitted
        clock: Source of the current UTC time
    """

    def __init__(
        self,
        configuration: SessionConfiguration,
        store: Optional[SessionStore] = None,
        clock: Clock = utcnow,
    ):
        if configuration is None:
            raise SessionConfigurationError("A session configuration is required")

        self.configuration = configuration
        self.clock = clock
        self.store = store if store is not None else SqlAlchemySessionStore(configuration, clock=clock)
        self.codec = SessionCookieCodec(configuration.cryptography_configuration)

        # When expired sessions were last swept; guarded by _expiry_lock
        self.last_expiry_check = NEVER
        self._expiry_lock = threading.Lock()

        self.store.ensure_schema()

    def load(self, request: Any) -> Session:
        """
        Load the session for an incoming request.

        A missing, invalid or tampered cookie, or a cookie whose document no
        longer exists, yields a brand-new empty session. Store failures
        propagate.

        Args:
            request: Incoming request exposing a ``cookies`` mapping

        Returns:
            The request's session
        """
        self.expire_old_sessions()

        cookie_value = request.cookies.get(self.configuration.cookie_name)
        if not cookie_value:
            return self._create_new_session()

        session_id = self.codec.decode(cookie_value)
        if session_id is None:
            client = getattr(request, "client", None)
            log_security_event(
                "session_cookie_rejected",
                "Invalid session cookie presented; issuing a new session",
                level=logging.WARNING,
                ip_address=client.host if client else None,
            )
            return self._create_new_session()

        document = self.store.retrieve(session_id)
        if document is None:
            logger.debug("Session cookie refers to a missing document; issuing a new session")
            return self._create_new_session()

        if self.configuration.use_rolling_sessions:
            self.store.touch_last_accessed(session_id)

        return Session(document.data, session_id=session_id)

    def save(self, session: Optional[Session], response: Any) -> None:
        """
        Persist a changed session and attach its cookie to the response.

        Unchanged sessions are neither written nor given a cookie.

        Args:
            session: The request's session
            response: Outgoing response exposing ``set_cookie``
        """
        self.expire_old_sessions()

        if session is None or not session.has_changed:
            return

        session_id = session.id
        if session_id is None:
            logger.warning("Changed session has no id; it was not loaded by this manager and will not be saved")
            return

        data = session.to_dict()
        data.pop(SESSION_ID_KEY, None)
        self.store.update(session_id, data)

        response.set_cookie(
            self.configuration.cookie_name,
            self.codec.encode(session_id),
            domain=self.configuration.domain,
            path=self.configuration.path,
            secure=self.configuration.secure,
            httponly=True,
            samesite="lax",
        )

    def expire_old_sessions(self) -> bool:
        """
        Delete expired sessions, at most once per expiry check frequency.

        The sweep runs only when more than ``expiry_check_frequency`` has
        elapsed since the last one. The timestamp is claimed under the lock
        before the delete is issued, so concurrent requests do not pile up
        duplicate sweeps.

        Returns:
            True if a sweep was issued
        """
        now = self.clock()
        with self._expiry_lock:
            if now - self.last_expiry_check <= self.configuration.expiry_check_frequency:
                return False
            self.last_expiry_check = now

        removed = self.store.delete_expired(now - self.configuration.expiry)
        if removed:
            logger.info(f"Expired {removed} session(s)", extra={"expired_sessions": removed})
        return True

    def _create_new_session(self) -> Session:
        session_id = generate_session_id()
        self.store.create(session_id)
        return Session(session_id=session_id)
