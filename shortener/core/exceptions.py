"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Every exception carries the HTTP status and the machine-readable error code
it is rendered with, so the application needs a single exception handler.
"""

from typing import Optional


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    status_code = 500
    error_code = "internal_server_error"


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""
    status_code = 400
    error_code = "invalid_url"

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class InvalidAliasError(URLShortenerException):
    """Raised when a custom alias violates the alias policy."""
    status_code = 400
    error_code = "invalid_alias"

    def __init__(self, alias: str, reason: str = "Invalid custom alias"):
        self.alias = alias
        self.reason = reason
        super().__init__(f"{reason}: '{alias}'")


class AliasTakenError(URLShortenerException):
    """Raised when a custom alias collides with an existing code or alias."""
    status_code = 409
    error_code = "alias_taken"

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"Custom alias '{alias}' already exists")


class ExhaustedRetriesError(URLShortenerException):
    """Raised when no free random short code was found within the attempt cap."""
    status_code = 500
    error_code = "code_allocation_failed"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique short code after {attempts} attempts")


class NotFoundError(URLShortenerException):
    """Raised when a short code does not resolve to an active URL."""
    status_code = 404
    error_code = "url_not_found"

    def __init__(self, short_code: str, message: Optional[str] = None):
        self.short_code = short_code
        super().__init__(message or f"Short code '{short_code}' not found")


class ExpiredError(URLShortenerException):
    """Raised when a short code resolves to a URL whose expiry has passed."""
    status_code = 410
    error_code = "url_expired"

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' has expired")


class RateLimitExceeded(URLShortenerException):
    """Raised when a client exceeds its request quota."""
    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(self, key: str):
        self.key = key
        super().__init__("Too many requests, please try again later")


class AuthenticationError(URLShortenerException):
    """Raised when a protected route is called without valid credentials."""
    status_code = 401
    error_code = "unauthorized"


class SessionInvalidOrExpired(AuthenticationError):
    """Raised when a session cookie is unknown, destroyed or past its TTL."""

    def __init__(self):
        super().__init__("Invalid or expired session")


class SessionCreationError(URLShortenerException):
    """Raised when a session token cannot be minted."""
    status_code = 500
    error_code = "session_creation_failed"


class InvalidCredentialsError(URLShortenerException):
    """Raised when email/password do not match a user."""
    status_code = 401
    error_code = "login_failed"

    def __init__(self):
        super().__init__("invalid credentials")


class UserAlreadyExistsError(URLShortenerException):
    """Raised on registration with an email that is already in use."""
    status_code = 409
    error_code = "registration_failed"

    def __init__(self, email: str):
        self.email = email
        super().__init__("user with this email already exists")


class OAuthError(URLShortenerException):
    """Raised when the OAuth callback cannot be completed."""
    status_code = 400
    error_code = "oauth_failed"


class DatabaseError(URLShortenerException):
    """Raised when database operations fail."""
    error_code = "database_error"

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class UniqueConstraintViolation(Exception):
    """
    Raised by a URL registry when an insert hits the storage-level
    uniqueness constraint on short code or alias.

    Never rendered as a response: the allocator turns it into a retry or
    into AliasTakenError.
    """

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Short code or alias '{value}' already taken")
