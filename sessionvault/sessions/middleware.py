"""
Request pipeline integration for document-backed sessions.

``SessionStoreMiddleware`` loads the session before the endpoint runs and
saves it afterwards. The manager is synchronous, so both calls are moved
off the event loop onto Starlette's threadpool.
"""

import logging
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from sessionvault.core.config import SessionConfiguration, SessionConfigurationError
from sessionvault.core.logging_config import set_correlation_id
from sessionvault.core.security import sanitize_log_data
from sessionvault.core.utils.encryption import CryptographyConfiguration
from sessionvault.sessions.manager import DocumentSessions
from sessionvault.sessions.session import Session
from sessionvault.sessions.store import SessionStoreError

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


class SessionStoreMiddleware(BaseHTTPMiddleware):
    """
    Middleware binding every request to a persisted session.

    The session is available to endpoints as ``request.state.session`` and
    ``request.session``. A failing session store answers 503 instead of
    running the endpoint.
    """

    def __init__(self, app, sessions: DocumentSessions):
        super().__init__(app)
        self.sessions = sessions

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        try:
            session = await run_in_threadpool(self.sessions.load, request)
        except SessionStoreError as e:
            return self._store_unavailable("load", e)

        request.state.session = session
        request.scope["session"] = session

        response = await call_next(request)

        try:
            await run_in_threadpool(self.sessions.save, session, response)
        except SessionStoreError as e:
            return self._store_unavailable("save", e)

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response

    @staticmethod
    def _store_unavailable(stage: str, error: SessionStoreError) -> JSONResponse:
        logger.error(
            f"Session {stage} failed: {sanitize_log_data(str(error), max_length=500)}",
            extra={"error_type": type(error.cause or error).__name__},
        )
        return JSONResponse(status_code=503, content={"detail": "Session storage unavailable"})


def enable_sessions(
    app: FastAPI,
    configuration: Optional[SessionConfiguration] = None,
    *,
    connection: Optional[Engine] = None,
    cryptography_configuration: Optional[CryptographyConfiguration] = None,
    **options,
) -> DocumentSessions:
    """
    Enable document-backed sessions on an application.

    Either pass a full ``configuration``, or a ``connection`` (plus optional
    cryptography and any other ``SessionConfiguration`` fields as keyword
    options) to use the defaults. Without cryptography, random per-process
    keys are generated.

    Args:
        app: Application to register the middleware on
        configuration: Complete session configuration
        connection: Engine backing the session store
        cryptography_configuration: Cookie cryptography
        **options: Further ``SessionConfiguration`` fields

    Returns:
        The session manager shared by all requests

    Raises:
        SessionConfigurationError: If neither a configuration nor a
            connection is given, or both are
    """
    if configuration is None:
        if connection is None:
            raise SessionConfigurationError("A session configuration or connection is required")
        configuration = SessionConfiguration(
            connection=connection,
            cryptography_configuration=cryptography_configuration or CryptographyConfiguration.default(),
            **options,
        )
    elif connection is not None or cryptography_configuration is not None or options:
        raise SessionConfigurationError(
            "Pass either a configuration or connection options, not both"
        )

    sessions = DocumentSessions(configuration)
    app.add_middleware(SessionStoreMiddleware, sessions=sessions)
    app.state.sessions = sessions
    logger.info(
        "Document sessions enabled",
        extra={
            "session_table": f"{configuration.database}.{configuration.table}",
            "rolling_sessions": configuration.use_rolling_sessions,
        },
    )
    return sessions


def get_session(request: Request) -> Session:
    """
    FastAPI dependency returning the current request's session.

    Raises:
        RuntimeError: If the session middleware is not installed
    """
    session = getattr(request.state, "session", None)
    if session is None:
        raise RuntimeError("Sessions are not enabled; call enable_sessions() on the application")
    return session
