"""
Password Authentication Endpoints

Register, login and token refresh for email/password accounts. The JWT is
returned in the body and also set as the HttpOnly ``token`` cookie.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.api.deps import TOKEN_COOKIE, CurrentUser, get_current_user
from shortener.api.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from shortener.core.security import create_access_token
from shortener.core.setting import settings
from shortener.db.session import get_session
from shortener.services.auth_service import AuthService

router = APIRouter(prefix="/api/v1/auth")


def set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        max_age=settings.JWT_EXPIRY_HOURS * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session)
) -> AuthResponse:
    user = await AuthService(session).register(body.email, body.password, body.name)
    token = create_access_token(user.id, user.email)
    set_token_cookie(response, token)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session)
) -> AuthResponse:
    user = await AuthService(session).login(body.email, body.password)
    token = create_access_token(user.id, user.email)
    set_token_cookie(response, token)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(TOKEN_COOKIE, httponly=True, secure=settings.is_production, samesite="strict")
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    response: Response,
    user: CurrentUser = Depends(get_current_user)
) -> TokenResponse:
    token = create_access_token(user.user_id, user.email)
    set_token_cookie(response, token)
    return TokenResponse(token=token)


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> UserResponse:
    return UserResponse.model_validate(await AuthService(session).get_user_by_id(user.user_id))
