"""
FastAPI Endpoints for URL Shortener Service

This module defines the URL management endpoints and the public redirect
with minimal logic. Endpoints only handle:
- Request validation (Pydantic models)
- Resolving the caller's identity
- Delegating to service layer

Errors are raised as URLShortenerException subclasses and rendered by the
application-wide exception handler. Rate limiting is applied by middleware.

The redirect lives on its own router so it can be mounted last: its
``/{short_code}`` path would otherwise shadow every other single-segment route.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.api.deps import CurrentUser, get_current_user, get_optional_user
from shortener.api.schemas import (
    AnalyticsResponse,
    ClickResponse,
    CreateURLRequest,
    MessageResponse,
    StatsResponse,
    UpdateURLRequest,
    URLListResponse,
    URLResponse,
)
from shortener.core.components import get_click_recorder
from shortener.core.setting import settings
from shortener.core.validators import sanitize_short_code
from shortener.db.models import ShortURL
from shortener.db.session import get_session
from shortener.middleware.client import get_client_ip
from shortener.services.click_recorder import ClickRecorder, RequestContext
from shortener.services.redirect_service import RedirectService
from shortener.services.url_registry import SQLURLRegistry
from shortener.services.url_service import URLShorteningService

router = APIRouter(prefix="/api/v1/urls")
redirect_router = APIRouter()


def to_url_response(short_url: ShortURL) -> URLResponse:
    response = URLResponse.model_validate(short_url)
    response.short_url = f"{settings.BASE_URL}/{short_url.short_code}"
    return response


def _checked_code(short_code: str) -> str:
    sanitized_code = sanitize_short_code(short_code)
    if not sanitized_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid short code format: '{short_code}'. Short codes may contain only letters, digits, '-' and '_'."
        )
    return sanitized_code


@router.post(
    "",
    response_model=URLResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and returns a shortened version, optionally under a custom alias"
)
async def create_short_url(
    body: CreateURLRequest,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session)
) -> URLResponse:
    url_service = URLShorteningService(session)
    short_url = await url_service.create_url(
        body.original_url,
        custom_alias=body.custom_alias,
        user_id=user.user_id if user else None,
        title=body.title,
        description=body.description,
        expires_at=body.expires_at,
    )
    return to_url_response(short_url)


@router.get("", response_model=URLListResponse, summary="List the caller's URLs")
async def list_user_urls(
    limit: int = Query(default=10, ge=1),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> URLListResponse:
    limit = min(limit, 100)
    urls, total = await URLShorteningService(session).get_user_urls(user.user_id, limit=limit, offset=offset)
    return URLListResponse(
        urls=[to_url_response(u) for u in urls],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.put("/{url_id}", response_model=URLResponse, summary="Update one of the caller's URLs")
async def update_url(
    url_id: int,
    body: UpdateURLRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> URLResponse:
    short_url = await URLShorteningService(session).update_url(
        url_id,
        user.user_id,
        original_url=body.original_url,
        title=body.title,
        description=body.description,
        expires_at=body.expires_at,
    )
    return to_url_response(short_url)


@router.delete("/{url_id}", response_model=MessageResponse, summary="Delete one of the caller's URLs")
async def delete_url(
    url_id: int,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    await URLShorteningService(session).delete_url(url_id, user.user_id)
    return MessageResponse(message="URL deleted successfully")


@router.get(
    "/{url_id}/analytics",
    response_model=AnalyticsResponse,
    summary="Get URL analytics",
    description="Returns the most recent clicks and aggregate statistics for one of the caller's URLs"
)
async def get_url_analytics(
    url_id: int,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> AnalyticsResponse:
    result = await URLShorteningService(session).get_url_analytics(url_id, user.user_id)
    return AnalyticsResponse(
        analytics=[ClickResponse.model_validate(c) for c in result["analytics"]],
        stats=StatsResponse(**result["stats"]),
    )


@router.get("/{short_code}/info", response_model=URLResponse, summary="Public details of a short URL")
async def get_url_info(
    short_code: str,
    session: AsyncSession = Depends(get_session),
    click_recorder: ClickRecorder = Depends(get_click_recorder)
) -> URLResponse:
    redirect_service = RedirectService(SQLURLRegistry(session), click_recorder)
    short_url = await redirect_service.resolve(_checked_code(short_code))
    return to_url_response(short_url)


@redirect_router.get(
    "/{short_code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Takes a short code or alias and redirects to the original long URL"
)
async def redirect_to_url(
    short_code: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    click_recorder: ClickRecorder = Depends(get_click_recorder)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    The click is queued for recording and never delays the redirect.

    Raises:
        HTTPException 400: If short code format is invalid
        NotFoundError (404): If no active URL uses the code
        ExpiredError (410): If the URL has expired
    """
    short_code = _checked_code(short_code)

    context = RequestContext(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
        referrer=request.headers.get("Referer"),
    )
    redirect_service = RedirectService(SQLURLRegistry(session), click_recorder)
    original_url = await redirect_service.get_redirect_url(short_code, context)

    return RedirectResponse(
        url=original_url,
        status_code=status.HTTP_302_FOUND
    )
