"""FastAPI dependency: get_current_user.

Usage in any protected router:
    from src.gb_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: UserModel = Depends(get_current_user)):
        ...
"""

import uuid
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import get_db_session
from src.gb_common.errors import AccountDisabledError, UnauthenticatedError
from src.gb_gateway.auth.jwt_handler import decode_token
from src.gb_gateway.user.db_models import UserModel

# tokenUrl drives the Swagger UI "Authorize" button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Validate the Bearer access token and load the user.

    Raises UnauthenticatedError (401) for a bad token or unknown user and
    AccountDisabledError (403) for a deactivated account.
    """
    payload = decode_token(token, expected_type="access")

    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise UnauthenticatedError() from None

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthenticatedError()

    if not user.is_active:
        raise AccountDisabledError()

    return user


CurrentUser = Annotated[UserModel, Depends(get_current_user)]
