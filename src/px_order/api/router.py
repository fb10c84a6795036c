# src/px_order/api/router.py
"""Public order endpoints (no login; the reference is the buyer's handle).

POST /orders                      : reserve pixels, start the payment window
GET  /orders/recent               : ticker of latest paid orders
GET  /orders/{reference}          : status poll
POST /orders/{reference}/proof    : attach payment evidence (pending only)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.px_common.database import get_db_session
from src.px_common.response import ApiResponse, success_response
from src.px_order.application.schemas import AttachProofRequest, CreateOrderRequest
from src.px_order.application.service import OrderApplicationService

router = APIRouter(prefix="/orders", tags=["orders"])
_service = OrderApplicationService()


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def create_order(
    request: Request,
    body: CreateOrderRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_order(db, body)
    resp = success_response(result.model_dump(), message="Pixels reserved")
    resp.request_id = _get_request_id(request)
    return resp


# Registered before /{reference} so "recent" is not taken as a reference
@router.get("/recent", response_model=ApiResponse)
async def recent_purchases(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(10, ge=1, le=50),
) -> ApiResponse:
    result = await _service.list_recent_purchases(db, limit)
    resp = success_response(result.model_dump())
    resp.request_id = _get_request_id(request)
    return resp


@router.get("/{reference}", response_model=ApiResponse)
async def order_status(
    request: Request,
    reference: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_order_status(db, reference)
    resp = success_response(result.model_dump())
    resp.request_id = _get_request_id(request)
    return resp


@router.post("/{reference}/proof", response_model=ApiResponse)
async def submit_proof(
    request: Request,
    reference: str,
    body: AttachProofRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.attach_proof(db, body, reference=reference)
    resp = success_response(result.model_dump(), message="Proof received")
    resp.request_id = _get_request_id(request)
    return resp
