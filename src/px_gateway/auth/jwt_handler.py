"""Admin session tokens (HS256 JWT).

No token revocation: a token stays valid until it expires
(settings.JWT_EXPIRE_MINUTES).
"""

from datetime import timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.px_common.datetime_utils import utc_now
from src.px_common.errors import InvalidAdminTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_TOKEN_TYPE = "admin"


def create_admin_token(expires_in: timedelta | None = None) -> str:
    now = utc_now()
    payload = {
        "sub": "admin",
        "type": _TOKEN_TYPE,
        "iat": now,
        "exp": now + (expires_in or timedelta(minutes=settings.JWT_EXPIRE_MINUTES)),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_admin_token(token: str) -> dict[str, str]:
    """Decode and validate an admin token.

    Raises:
        InvalidAdminTokenError: bad signature, expired, or not an admin token.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidAdminTokenError() from None

    if payload.get("type") != _TOKEN_TYPE:
        raise InvalidAdminTokenError()
    return payload
