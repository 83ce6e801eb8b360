"""
Tests for password hashing, access tokens and the account service.
"""

from datetime import timedelta

import pytest

from shortener.core.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    NotFoundError,
    UserAlreadyExistsError,
)
from shortener.core.security import (
    create_access_token,
    decode_access_token,
    generate_state_token,
    hash_password,
    state_matches,
    verify_password,
)
from shortener.services.auth_service import AuthService


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_missing_or_malformed_hash(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestAccessTokens:

    def test_roundtrip_claims(self):
        claims = decode_access_token(create_access_token(42, "a@example.com"))
        assert claims.user_id == 42
        assert claims.email == "a@example.com"

    def test_expired_token_rejected(self):
        token = create_access_token(1, "a@example.com", expires_in=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_wrong_secret_rejected(self):
        token = create_access_token(1, "a@example.com", secret="other-secret")
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("not.a.jwt")


class TestStateTokens:

    def test_state_compare(self):
        state = generate_state_token()
        assert state_matches(state, state)
        assert not state_matches(state, generate_state_token())
        assert not state_matches("", "")


class TestAuthService:

    async def test_register_and_login(self, db_session):
        service = AuthService(db_session)

        user = await service.register("New.User@Example.com", "password123", "New User")
        logged_in = await service.login("new.user@example.com", "password123")

        assert user.email == "new.user@example.com"
        assert logged_in.id == user.id
        assert user.password != "password123"

    async def test_duplicate_email(self, db_session):
        service = AuthService(db_session)
        await service.register("dup@example.com", "password123", "First")

        with pytest.raises(UserAlreadyExistsError):
            await service.register("DUP@example.com", "password456", "Second")

    async def test_bad_credentials(self, db_session):
        service = AuthService(db_session)
        await service.register("user@example.com", "password123", "User")

        with pytest.raises(InvalidCredentialsError):
            await service.login("user@example.com", "wrong-password")
        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody@example.com", "password123")

    async def test_oauth_user_created_then_refreshed(self, db_session):
        service = AuthService(db_session)

        created = await service.login_or_register_oauth("g@example.com", "G User", "https://img/1.png")
        refreshed = await service.login_or_register_oauth("g@example.com", "G Renamed", None)

        assert created.id == refreshed.id
        assert refreshed.name == "G Renamed"
        assert refreshed.picture == "https://img/1.png"
        assert refreshed.password is None

    async def test_oauth_account_cannot_password_login(self, db_session):
        service = AuthService(db_session)
        await service.login_or_register_oauth("g@example.com", "G User")

        with pytest.raises(InvalidCredentialsError):
            await service.login("g@example.com", "")

    async def test_unknown_user_id(self, db_session):
        with pytest.raises(NotFoundError):
            await AuthService(db_session).get_user_by_id(999)
