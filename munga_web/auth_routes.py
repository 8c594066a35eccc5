"""
FastAPI routes for the two-step operator authentication.

Prefix: /auth

The verification code travels out of band (outbox file or SMTP); it is never
part of a response body.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from munga.models import Session
from munga.utils.logger import get_logger
from .deps import SESSION_COOKIE, get_munga, optional_session
from .models import CredentialsRequest, CredentialsResponse, SessionPublic, VerifyRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: JSONResponse, token: str, secure: bool) -> None:
    """Attach the session token as an http-only cookie. Clients may also send it as a Bearer token."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


@router.post("/credentials", response_model=CredentialsResponse)
async def submit_credentials(request: Request, payload: CredentialsRequest) -> CredentialsResponse:
    """
    Credential step of login or registration.

    Request (JSON):
        email, username (registration only), register

    Errors:
        404 operator not found, 409 email already registered,
        422 missing handle or malformed email, 502 code could not be delivered
    """
    munga = get_munga(request)
    result = await run_in_threadpool(
        munga.submit_credentials,
        payload.email,
        payload.username,
        payload.register,
    )
    return CredentialsResponse(
        step=munga.auth_flow.step.value,
        email=munga.auth_flow.pending_email or payload.email.strip().lower(),
        channel=result.channel,
    )


@router.post("/verify", response_model=SessionPublic)
async def verify(request: Request, payload: VerifyRequest) -> Any:
    """
    Verification step. On success the session starts and its token is returned
    and set as the session cookie.
    """
    munga = get_munga(request)
    session = await run_in_threadpool(munga.verify_code, payload.code)
    public = SessionPublic(username=session.username, email=session.email, token=session.token)
    response = JSONResponse(content=public.model_dump())
    _set_session_cookie(response, session.token, munga.settings.app.environment == "production")
    return response


@router.post("/reset")
async def reset(request: Request) -> Dict[str, str]:
    """Back to the credential step, dropping any pending code"""
    munga = get_munga(request)
    munga.reset_auth()
    return {"step": munga.auth_flow.step.value}


@router.post("/logout")
async def logout(request: Request, session: Optional[Session] = Depends(optional_session)) -> Any:
    """
    Purge the session and everything scoped to it.

    A live session can only be ended by a request carrying its token.
    """
    munga = get_munga(request)
    if munga.session is not None and session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    logger.info("LOGOUT", username=session.username if session else None)
    munga.logout()
    response = JSONResponse({"status": "success"})
    response.delete_cookie(SESSION_COOKIE)
    return response
