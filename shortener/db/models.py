"""
Database Models for URL Shortener Service

This module defines the SQLModel database schemas for:
- User: Accounts for the password and OAuth login flows
- ShortURL: Stores the mapping between short codes / aliases and original URLs
- Click: Stores individual clicks for analytics

Design Decisions:
- short_code and custom_alias are UNIQUE at the storage layer; this
  constraint is the final arbiter of code allocation under concurrency
- A custom alias is stored as both short_code and custom_alias, so aliases
  and random codes share one namespace
- URLs are soft-deleted (is_active=False) to keep their click history
- Click rows are append-only facts
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, String, DateTime, Integer, Text, ForeignKey


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class User(SQLModel, table=True):
    """
    Registered user.

    password is NULL for accounts created through OAuth.
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True, index=True))
    name: str = Field(sa_column=Column(String(200), nullable=False))
    password: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    picture: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


class ShortURL(SQLModel, table=True):
    """
    Main table storing URL shortening mappings.

    Fields:
    - original_url: Normalized absolute http/https URL
    - short_code: Random code or custom alias (unique)
    - custom_alias: Set only when the caller chose the code (unique)
    - user_id: Owner, NULL for anonymous links
    - expires_at: Checked at read time, NULL means never
    - is_active: False once deleted by the owner
    """
    __tablename__ = "urls"

    id: Optional[int] = Field(default=None, primary_key=True)
    original_url: str = Field(sa_column=Column(Text, nullable=False))
    short_code: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True, index=True)
    )
    custom_alias: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True, unique=True)
    )
    user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    )
    title: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))
    description: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


class Click(SQLModel, table=True):
    """
    Click log table for detailed analytics.

    One row per redirect. Written by the click recorder's worker, never
    updated.
    """
    __tablename__ = "clicks"

    id: Optional[int] = Field(default=None, primary_key=True)
    url_id: int = Field(
        sa_column=Column(Integer, ForeignKey("urls.id"), nullable=False, index=True)
    )
    ip_address: str = Field(sa_column=Column(String(45), nullable=False))  # IPv6 max length
    user_agent: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    referrer: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    device: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    os: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    browser: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    clicked_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
