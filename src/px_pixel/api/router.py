"""px_pixel REST endpoints.

GET /pixels         : canvas map of non-free pixels
GET /pixels/stats   : free / reserved / sold counts
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.px_common.database import get_db_session
from src.px_common.response import ApiResponse, success_response
from src.px_pixel.application.schemas import ClaimedStatus
from src.px_pixel.application.service import PixelQueryService
from src.px_pixel.infrastructure.stats_cache import PixelStatsCache

router = APIRouter(prefix="/pixels", tags=["pixels"])

_service = PixelQueryService(cache=PixelStatsCache())


@router.get("")
async def list_pixels(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: ClaimedStatus | None = Query(
        None, description="Restrict to reserved or sold. Default: both."
    ),
) -> ApiResponse:
    result = await _service.list_pixels(db, status)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/stats")
async def pixel_stats(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_stats(db)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
