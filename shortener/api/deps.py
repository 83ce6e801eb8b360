"""
Authentication Dependencies

Resolves the caller's identity for protected and optionally-authenticated
routes. Two credentials are accepted:
- ``session_id`` cookie issued by the OAuth login flow (checked first)
- JWT from the ``token`` cookie or an ``Authorization: Bearer`` header
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from shortener.core.components import get_session_store
from shortener.core.exceptions import AuthenticationError, SessionInvalidOrExpired
from shortener.core.security import decode_access_token
from shortener.services.session_store import SessionStore

SESSION_COOKIE = "session_id"
TOKEN_COOKIE = "token"
OAUTH_STATE_COOKIE = "oauth_state"


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    email: str
    session_id: Optional[str] = None


def _access_token(request: Request) -> Optional[str]:
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):].strip() or None
    return None


def resolve_current_user(request: Request, store: SessionStore) -> CurrentUser:
    """
    Raises:
        SessionInvalidOrExpired: A session cookie was sent, it is no longer
            valid and no token was sent either
        AuthenticationError: No credentials, or an invalid token
    """
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        session = store.get_session(session_id)
        if session is not None:
            return CurrentUser(session.user_id, session.user_email, session_id)

    token = _access_token(request)
    if token:
        claims = decode_access_token(token)
        return CurrentUser(claims.user_id, claims.email)

    if session_id:
        raise SessionInvalidOrExpired()
    raise AuthenticationError("No token provided")


async def get_current_user(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> CurrentUser:
    return resolve_current_user(request, store)


async def get_optional_user(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> Optional[CurrentUser]:
    try:
        return resolve_current_user(request, store)
    except AuthenticationError:
        return None


async def get_session_user(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> CurrentUser:
    """Session-only variant used by the OAuth routes."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        raise AuthenticationError("No session found")
    session = store.get_session(session_id)
    if session is None:
        raise SessionInvalidOrExpired()
    return CurrentUser(session.user_id, session.user_email, session_id)
