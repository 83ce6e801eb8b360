"""
Security Helpers

Thin wrappers over the cryptographic libraries:
- bcrypt for password hashing
- PyJWT for signed access tokens
- secrets for OAuth state tokens
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from shortener.core.exceptions import AuthenticationError
from shortener.core.setting import settings


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    expires_at: datetime


BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    # bcrypt ignores (newer releases reject) input past 72 bytes
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(
    user_id: int,
    email: str,
    secret: str = settings.JWT_SECRET,
    expires_in: timedelta = timedelta(hours=settings.JWT_EXPIRY_HOURS),
    algorithm: str = settings.JWT_ALGORITHM,
) -> str:
    """Sign a JWT carrying the user's id and email."""
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "email": email,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(
    token: str,
    secret: str = settings.JWT_SECRET,
    algorithm: str = settings.JWT_ALGORITHM,
) -> TokenClaims:
    """
    Verify a JWT and return its claims.

    Raises:
        AuthenticationError: If the token is malformed, tampered with or expired
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
        return TokenClaims(
            user_id=int(payload["user_id"]),
            email=str(payload["email"]),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token") from e


def generate_state_token() -> str:
    """Random OAuth ``state`` value (256 bits, URL-safe)."""
    return secrets.token_urlsafe(32)


def state_matches(expected: str, received: str) -> bool:
    if not expected or not received:
        return False
    return secrets.compare_digest(expected, received)
