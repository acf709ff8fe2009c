"""
Session API endpoints.

Read and modify the caller's session data. The session itself is bound to
the request by ``SessionStoreMiddleware``; changes made here are persisted
when the response is sent.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from sessionvault.sessions.middleware import get_session
from sessionvault.sessions.session import SESSION_ID_KEY, Session

router = APIRouter(prefix="/session", tags=["session"])


class SessionValue(BaseModel):
    """Request model for storing a session value."""

    value: Any = Field(..., description="Any JSON value")


class SessionData(BaseModel):
    """Response model for the visible session data."""

    data: Dict[str, Any]


@router.get("", response_model=SessionData)
def read_session(session: Session = Depends(get_session)):
    """Return the caller's session data."""
    return SessionData(data=session.to_dict())


@router.put("/{key}", response_model=SessionData)
def store_value(key: str, payload: SessionValue, session: Session = Depends(get_session)):
    """
    Store a value in the caller's session.

    Raises:
        HTTPException: If the key is reserved
    """
    if key == SESSION_ID_KEY:
        raise HTTPException(status_code=400, detail=f"'{SESSION_ID_KEY}' is a reserved key")

    session[key] = payload.value
    return SessionData(data=session.to_dict())


@router.delete("/{key}", response_model=SessionData)
def delete_value(key: str, session: Session = Depends(get_session)):
    """
    Remove a value from the caller's session.

    Raises:
        HTTPException: If the key is not in the session
    """
    if key not in session:
        raise HTTPException(status_code=404, detail="Session key not found")

    del session[key]
    return SessionData(data=session.to_dict())
