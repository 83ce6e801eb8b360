"""
OAuth Endpoints

Google sign-in backed by server-side sessions:
- /login sets a short-lived ``oauth_state`` cookie and returns the
  provider's authorization URL
- /callback checks the state, upserts the user and opens a session
- /logout destroys the session
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.api.deps import (
    OAUTH_STATE_COOKIE,
    SESSION_COOKIE,
    CurrentUser,
    get_session_user,
)
from shortener.api.schemas import (
    MessageResponse,
    OAuthLoginResponse,
    SessionLoginResponse,
    UserResponse,
)
from shortener.core.components import get_oauth_provider, get_session_store
from shortener.core.exceptions import OAuthError
from shortener.core.security import generate_state_token, state_matches
from shortener.core.setting import settings
from shortener.db.session import get_session
from shortener.services.auth_service import AuthService
from shortener.services.oauth import OAuthProvider
from shortener.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/oauth")


@router.get("/login", response_model=OAuthLoginResponse)
async def oauth_login(
    response: Response,
    provider: OAuthProvider = Depends(get_oauth_provider)
) -> OAuthLoginResponse:
    state = generate_state_token()
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state,
        max_age=settings.OAUTH_STATE_TTL_SECONDS,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return OAuthLoginResponse(auth_url=provider.authorization_url(state))


@router.get("/callback", response_model=SessionLoginResponse)
async def oauth_callback(
    request: Request,
    response: Response,
    code: Optional[str] = None,
    state: Optional[str] = None,
    provider: OAuthProvider = Depends(get_oauth_provider),
    store: SessionStore = Depends(get_session_store),
    session: AsyncSession = Depends(get_session)
) -> SessionLoginResponse:
    if not code or not state:
        raise OAuthError("Missing code or state parameter")

    if not state_matches(request.cookies.get(OAUTH_STATE_COOKIE, ""), state):
        logger.warning("OAuth callback rejected: state mismatch")
        raise OAuthError("Invalid state parameter")

    response.delete_cookie(OAUTH_STATE_COOKIE, httponly=True, secure=settings.is_production, samesite="lax")

    info = await provider.fetch_user_info(code)
    user = await AuthService(session).login_or_register_oauth(info.email, info.name, info.picture)

    session_id, expires_at = store.create_session(user.id, user.email)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        max_age=int(store.ttl),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return SessionLoginResponse(user=UserResponse.model_validate(user), expires_at=expires_at)


@router.post("/logout", response_model=MessageResponse)
async def oauth_logout(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store)
) -> MessageResponse:
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        store.destroy_session(session_id)
    response.delete_cookie(SESSION_COOKIE, httponly=True, secure=settings.is_production, samesite="lax")
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=UserResponse)
async def oauth_profile(
    user: CurrentUser = Depends(get_session_user),
    session: AsyncSession = Depends(get_session)
) -> UserResponse:
    return UserResponse.model_validate(await AuthService(session).get_user_by_id(user.user_id))
