"""JWT token creation and verification.

HS256 with the single shared JWT_SECRET. Tokens are not revocable: once
issued, an access token is valid until it expires.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.gb_common.errors import InvalidRefreshTokenError, UnauthenticatedError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def _encode(user_id: str, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str) -> str:
    """Issue a short-lived access token (JWT_EXPIRE_MINUTES)."""
    return _encode(user_id, "access", _ACCESS_EXPIRE)


def create_refresh_token(user_id: str) -> str:
    """Issue a long-lived refresh token (JWT_REFRESH_EXPIRE_DAYS)."""
    return _encode(user_id, "refresh", _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT.

    Args:
        token: Raw JWT string.
        expected_type: "access" or "refresh". A refresh token is never
                       accepted where an access token is expected, and
                       vice versa.

    Raises:
        UnauthenticatedError: invalid/expired access token.
        InvalidRefreshTokenError: invalid/expired refresh token.
    """
    payload: dict[str, str] = {}
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],
        )
    except JWTError:
        _raise_auth_error(expected_type)

    if payload.get("type") != expected_type or not payload.get("sub"):
        _raise_auth_error(expected_type)

    return payload


def _raise_auth_error(expected_type: str) -> None:
    if expected_type == "access":
        raise UnauthenticatedError()
    raise InvalidRefreshTokenError()
