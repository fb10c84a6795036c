"""Auth API router: administrator login.

POST /auth/admin/login  {"password": "..."}  -> {"access_token", "token_type", "expires_in"}
"""

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from config.settings import settings
from src.px_common.errors import InvalidAdminPasswordError
from src.px_common.response import ApiResponse, success_response
from src.px_gateway.auth.jwt_handler import create_admin_token
from src.px_gateway.auth.password import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=256)


class AdminLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


@router.post("/admin/login", response_model=ApiResponse, summary="Administrator login")
async def admin_login(request: Request, body: AdminLoginRequest) -> ApiResponse:
    if not verify_password(body.password, settings.ADMIN_PASSWORD_HASH):
        client = request.client.host if request.client else "?"
        logger.warning("Failed admin login from %s", client)
        raise InvalidAdminPasswordError()

    data = AdminLoginResponse(
        access_token=create_admin_token(),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    resp = success_response(data.model_dump(), message="Login successful")
    resp.request_id = getattr(request.state, "request_id", "req_unknown")
    return resp
