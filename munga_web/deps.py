"""
FastAPI dependencies for session gating.

The backend serves a single operator. Protected routes require the session
token (cookie or Bearer header) to match the live session; every accepted
request counts as operator activity.
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Request, status

from munga.app import MungaApp
from munga.models import Session

SESSION_COOKIE = "munga_session"


def get_munga(request: Request) -> MungaApp:
    munga = getattr(request.app.state, "munga", None)
    if munga is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Terminal core offline")
    return munga


def extract_token(request: Request) -> Optional[str]:
    """Session token from the Authorization header or the session cookie"""
    auth_header = request.headers.get("Authorization") or ""
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE) or None


def _matching_session(munga: MungaApp, token: Optional[str]) -> Optional[Session]:
    # expire before checking so a stale session is never served between watchdog runs
    munga.lifecycle.tick()
    session = munga.session
    if session is None or not token:
        return None
    if not secrets.compare_digest(token.encode("utf-8"), session.token.encode("utf-8")):
        return None
    return session


async def optional_session(request: Request) -> Optional[Session]:
    """The live session if the request carries its token, else None"""
    munga = get_munga(request)
    session = _matching_session(munga, extract_token(request))
    if session is not None:
        munga.record_activity("request")
    return session


async def require_session(request: Request) -> Session:
    """Dependency for protected routes. Raises 401 without a matching session."""
    session = await optional_session(request)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session
