"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

URL and alias fields are plain strings here: their rules live in the
service layer so that violations map to the service's own error codes.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateURLRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    original_url: str = Field(..., description="The long URL to shorten")
    custom_alias: Optional[str] = Field(default=None, max_length=50, description="Caller-chosen short code")
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    expires_at: Optional[datetime] = Field(default=None, description="RFC 3339 expiry instant")


class UpdateURLRequest(BaseModel):
    """
    Request model for URL update endpoint.

    Omitted or null fields are left unchanged; an empty title or description clears it.
    """
    original_url: Optional[str] = None
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    expires_at: Optional[datetime] = None


class URLResponse(BaseModel):
    """A short URL as returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    original_url: str
    short_code: str
    short_url: str = Field(default="", description="The complete short URL")
    custom_alias: Optional[str] = None
    user_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class URLListResponse(BaseModel):
    urls: List[URLResponse]
    total: int
    limit: int
    offset: int


class ClickResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    url_id: int
    ip_address: str
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    device: Optional[str] = None
    os: Optional[str] = None
    browser: Optional[str] = None
    clicked_at: datetime


class StatsResponse(BaseModel):
    """Aggregate click statistics for one URL."""
    url_id: int
    total_clicks: int
    unique_clicks: int
    last_clicked: Optional[str] = None


class AnalyticsResponse(BaseModel):
    analytics: List[ClickResponse]
    stats: StatsResponse


class RegisterRequest(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    password: str = Field(..., min_length=8, max_length=72)  # bcrypt only uses 72 bytes
    name: str = Field(..., min_length=1, max_length=200)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    picture: Optional[str] = None
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


class TokenResponse(BaseModel):
    token: str


class OAuthLoginResponse(BaseModel):
    auth_url: str


class SessionLoginResponse(BaseModel):
    user: UserResponse
    expires_at: datetime


class MessageResponse(BaseModel):
    success: bool = True
    message: str
