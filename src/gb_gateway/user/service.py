"""User service: signup, login, refresh.

Emails are normalised (trimmed, lower-cased) before storage and before every
lookup, so login is case-insensitive on the address.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import atomic
from src.gb_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
)
from src.gb_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.gb_gateway.auth.password import hash_password, verify_password
from src.gb_gateway.user.db_models import UserModel

logger = logging.getLogger("gb.auth")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Stateless service: instantiate once, reuse across requests."""

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        email = normalize_email(email)
        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
        try:
            async with atomic(db):
                db.add(user)
                await db.flush()
                await db.refresh(user)
        except IntegrityError:
            # Lost a race with a concurrent signup for the same address.
            raise EmailExistsError() from None
        logger.info("User signed up: %s", user.id)
        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        Unknown email and wrong password raise the same error so addresses
        cannot be enumerated.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.email == normalize_email(email))
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id)),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate a refresh token and issue a new access token."""
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))
