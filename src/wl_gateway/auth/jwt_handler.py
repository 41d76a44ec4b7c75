"""JWT access/refresh tokens (HS256, shared JWT_SECRET).

Tokens carry ``sub`` (user id) and ``type``; there is no revocation list,
so a token stays valid until ``exp``.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.wl_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_EXPIRY = {
    "access": timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    "refresh": timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
}


def _issue(user_id: str, token_type: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + _EXPIRY[token_type],
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str) -> str:
    return _issue(user_id, "access")


def create_refresh_token(user_id: str) -> str:
    return _issue(user_id, "refresh")


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a token of ``expected_type`` ("access" or "refresh").

    Raises:
        InvalidCredentialsError: bad/expired token where an access token was expected.
        InvalidRefreshTokenError: bad/expired token where a refresh token was expected.
    """
    error = InvalidCredentialsError if expected_type == "access" else InvalidRefreshTokenError
    try:
        # Explicit algorithm list prevents algorithm confusion
        payload: dict[str, str] = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[_ALGORITHM]
        )
    except JWTError:
        raise error() from None
    if payload.get("type") != expected_type:
        raise error()
    return payload
