"""FastAPI dependency: require_admin.

Usage in any admin router:
    router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.px_common.errors import InvalidAdminTokenError
from src.px_gateway.auth.jwt_handler import decode_admin_token

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/admin/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def require_admin(token: str = Depends(oauth2_scheme)) -> dict[str, str]:
    """Raises HTTP 401 if the Bearer token is missing, invalid, or expired."""
    try:
        return decode_admin_token(token)
    except InvalidAdminTokenError:
        raise _CREDENTIALS_EXCEPTION from None
