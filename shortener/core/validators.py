"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
These functions help prevent security issues and ensure data integrity.

Security Considerations:
- Input validation prevents injection attacks
- Only http/https targets can be shortened
- Length limits prevent DoS attacks
"""

import re
from typing import Optional
from urllib.parse import urlparse, urlunparse

from shortener.core.exceptions import InvalidAliasError

ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 50

RESERVED_ALIASES = frozenset({
    "api",
    "admin",
    "www",
    "app",
    "dashboard",
    "login",
    "register",
    "logout",
    "profile",
    "settings",
})

_ALIAS_PATTERN = re.compile(r'^[0-9a-zA-Z_-]+$')


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize and validate the format of a short code or custom alias
    taken from a request path.

    Generated codes are base62 ([0-9a-zA-Z]); aliases may also contain
    '-' and '_'. Anything else cannot exist in the database, so it is
    rejected before a query is made.

    Args:
        short_code: The short code to sanitize

    Returns:
        Sanitized short code if valid, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    if len(short_code) > ALIAS_MAX_LENGTH:
        return None

    if not _ALIAS_PATTERN.match(short_code):
        return None

    return short_code


def alias_rejection_reason(alias: str) -> Optional[str]:
    """Return why ``alias`` fails the alias policy, or None if it passes."""
    if not isinstance(alias, str):
        return "Custom alias must be a string"
    if len(alias) < ALIAS_MIN_LENGTH or len(alias) > ALIAS_MAX_LENGTH:
        return f"Custom alias must be {ALIAS_MIN_LENGTH}-{ALIAS_MAX_LENGTH} characters long"
    if not _ALIAS_PATTERN.match(alias):
        return "Custom alias may only contain letters, digits, '-' and '_'"
    if alias.lower() in RESERVED_ALIASES:
        return "Custom alias is a reserved word"
    return None


def is_valid_custom_alias(alias: str) -> bool:
    return alias_rejection_reason(alias) is None


def validate_custom_alias(alias: str) -> str:
    """
    Check a caller-supplied alias against the alias policy.

    Raises:
        InvalidAliasError: With the specific reason the alias was rejected
    """
    reason = alias_rejection_reason(alias)
    if reason is not None:
        raise InvalidAliasError(alias, reason=reason)
    return alias


def validate_url_length(url: str, max_length: int = 2048) -> bool:
    """
    Validate URL length to prevent DoS attacks.

    Args:
        url: The URL to validate
        max_length: Maximum allowed length (default: 2048 per RFC 7230)

    Returns:
        True if URL length is valid, False otherwise
    """
    return bool(url) and len(url) <= max_length


def is_valid_url(url: str, max_length: int = 2048) -> bool:
    """
    Validate URL format.

    Only absolute http/https URLs with a host are accepted, which also keeps
    out javascript:, data:, file: and similar schemes.

    Args:
        url: The URL string to validate
        max_length: Maximum allowed length

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(url, str) or not validate_url_length(url, max_length):
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    if result.scheme.lower() not in {"http", "https"}:
        return False

    return bool(result.netloc) and bool(result.hostname)


def normalize_url(url: str) -> str:
    """
    Normalize an already validated URL.

    - Scheme and host are lower-cased
    - An empty path becomes "/"

    Example:
        normalize_url("HTTPS://Example.COM") -> "https://example.com/"
    """
    parsed = urlparse(url.strip())
    userinfo, at, host = parsed.netloc.rpartition("@")
    path = parsed.path or "/"
    return urlunparse((
        parsed.scheme.lower(),
        userinfo + at + host.lower(),
        path,
        parsed.params,
        parsed.query,
        parsed.fragment,
    ))
