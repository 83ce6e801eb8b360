"""
Authentication Service

User registration and credential checks for both login flows:
- Password login (bcrypt hash stored on the user)
- OAuth login (user created or refreshed from the provider's profile)
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shortener.core.exceptions import (
    DatabaseError,
    InvalidCredentialsError,
    NotFoundError,
    UserAlreadyExistsError,
)
from shortener.core.security import hash_password, verify_password
from shortener.db.models import User, utcnow

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service for user accounts.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_email(self, email: str) -> Optional[User]:
        statement = select(User).where(User.email == email.lower())
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def get_user_by_id(self, user_id: int) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError(str(user_id), message="user not found")
        return user

    async def register(self, email: str, password: str, name: str) -> User:
        """
        Create a password account.

        Raises:
            UserAlreadyExistsError: If the email is taken
        """
        if await self.get_user_by_email(email) is not None:
            raise UserAlreadyExistsError(email)

        user = User(email=email.lower(), name=name, password=hash_password(password))
        try:
            return await self._save(user)
        except IntegrityError:
            # lost a race with a concurrent registration of the same email
            raise UserAlreadyExistsError(email)

    async def login(self, email: str, password: str) -> User:
        """
        Raises:
            InvalidCredentialsError: Unknown email, OAuth-only account or wrong password
        """
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password):
            raise InvalidCredentialsError()
        return user

    async def login_or_register_oauth(
        self,
        email: str,
        name: str,
        picture: Optional[str] = None,
    ) -> User:
        """Return the user for an OAuth profile, creating or refreshing it."""
        user = await self.get_user_by_email(email)
        if user is None:
            user = User(email=email.lower(), name=name or email, picture=picture)
            logger.info(f"Creating account for OAuth user {email}")
        else:
            user.name = name or user.name
            user.picture = picture or user.picture
            user.updated_at = utcnow()
        try:
            return await self._save(user)
        except IntegrityError as e:
            raise DatabaseError("failed to save OAuth user", original_error=e)

    async def _save(self, user: User) -> User:
        try:
            self.session.add(user)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(user)
            return user
        except IntegrityError:
            await self.session.rollback()
            raise
