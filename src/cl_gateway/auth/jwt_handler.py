"""JWT access-token verification.

Identity is delegated: tokens are issued by the identity provider and this
service only verifies them. Both sides share JWT_SECRET (HS256).
create_access_token() exists for local development and tests.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import Settings
from src.cl_common.errors import InvalidCredentialsError


def create_access_token(user_id: str, settings: Settings) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))


def decode_token(token: str, settings: Settings) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature, expiry or token type is wrong.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
